# test that we can talk to the real CLD1015 and MPM-210H.

import pytest

from lasersweep.system import CURRENT_SOURCE, POWER_METER
from lasersweep.types import SafetyViolation


@pytest.mark.hardware
@pytest.mark.usefixtures("client_log")
class TestInstruments:
    def test_identity(self, hw_system):
        assert "CLD1015" in hw_system.cld.get_idn()
        assert "MPM" in hw_system.mpm.get_idn()

    def test_error_queues_drain(self, hw_system):
        for name in (CURRENT_SOURCE, POWER_METER):
            assert isinstance(hw_system.clear_errors(name), list)

    def test_current_setpoint(self, hw_system):
        hw_system.set_current_mA(0.0)
        assert hw_system.get_current_mA() == pytest.approx(0.0, abs=1e-3)

    def test_wavelength(self, hw_system):
        hw_system.set_wavelength(980)
        assert float(hw_system.get_wavelength()) == pytest.approx(980)

    def test_power_reading(self, hw_system):
        float(hw_system.read_power(0))

    def test_laser_guard(self, hw_system):
        if hw_system.get_tec_state():
            pytest.skip("TEC is on, guard not exercised")
        with pytest.raises(SafetyViolation):
            hw_system.set_laser_output(True)


@pytest.mark.hardware
@pytest.mark.slow
@pytest.mark.usefixtures("client_log")
class TestHardwareSweep:
    def test_short_sweep(self, hw_system, tmp_path):
        if not hw_system.get_tec_state():
            pytest.skip("TEC is off")
        hw_system.save_dir = str(tmp_path)
        ok, msg = hw_system.run_sweep(0, 0.0, 2.0, 1.0, 100.0)
        assert ok, msg
        assert not hw_system.get_laser_output()
