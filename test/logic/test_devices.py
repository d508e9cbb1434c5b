"""Tests for the instrument session and the CLD1015 / MPM210H drivers."""

import pytest

from lasersweep.device import (
    CLD1015,
    MPM210H,
    InstrumentSession,
    MockCLD1015,
    MockMPM210H,
)
from lasersweep.device.device import is_no_error, parse_on_off
from lasersweep.device.mock import MockTransport
from lasersweep.types import IoError, NotConnected, ParseError


class ScriptedTransport(MockTransport):
    """Replies from a fixed script, one entry per query."""

    def __init__(self, replies):
        super().__init__("SCRIPTED")
        self.script = list(replies)

    def handle(self, command):
        if command == "*IDN?":
            return "SCRIPTED,0,0,0"
        if "?" in command:
            return self.script.pop(0)
        return None


@pytest.fixture
def cld():
    dev = MockCLD1015()
    dev.open()
    yield dev
    dev.close()


@pytest.fixture
def mpm(cld):
    dev = MockMPM210H(laser=cld)
    dev.open()
    yield dev
    dev.close()


def scripted_cld(replies, **config):
    dev = CLD1015(visa_addr="MOCK", transport=ScriptedTransport(replies), **config)
    dev.open()
    return dev


def scripted_mpm(replies, **config):
    dev = MPM210H(transport=ScriptedTransport(replies), query_delay=0.0, **config)
    dev.open()
    return dev


class TestReplyParsing:
    @pytest.mark.parametrize("reply", ["0,No error", '+0,"No error"', "0", "-0", "00"])
    def test_no_error_sentinel(self, reply):
        assert is_no_error(reply)

    @pytest.mark.parametrize(
        "reply", ['-113,"Undefined header"', "1,Command error", "0123", "-05,Bad"]
    )
    def test_real_errors(self, reply):
        assert not is_no_error(reply)

    @pytest.mark.parametrize("reply", ["1", "ON", "on", " 1 "])
    def test_on(self, reply):
        assert parse_on_off(reply)

    @pytest.mark.parametrize("reply", ["0", "OFF", "", "2", "TRUE"])
    def test_off(self, reply):
        assert not parse_on_off(reply)


@pytest.mark.usefixtures("client_log")
class TestInstrumentSession:
    def test_connect_identifies(self):
        transport = MockTransport()
        session = InstrumentSession(transport, "TEST")
        assert session.connect() == "MOCK,INSTRUMENT,0,0"
        assert session.is_connected()
        assert transport.log == ["*IDN?"]

    def test_failed_open_stays_disconnected(self):
        transport = MockTransport()
        transport.fail_open = True
        session = InstrumentSession(transport, "TEST")
        with pytest.raises(NotConnected):
            session.connect()
        assert not session.is_connected()

    def test_failed_identify_disconnects(self):
        transport = MockTransport()
        transport.fail_on.add("*IDN?")
        session = InstrumentSession(transport, "TEST")
        with pytest.raises(IoError):
            session.connect()
        assert not session.is_connected()
        assert not transport.is_open()

    def test_commands_require_connection(self):
        session = InstrumentSession(MockTransport(), "TEST")
        with pytest.raises(NotConnected):
            session.write("ZERO")
        with pytest.raises(NotConnected):
            session.query("*IDN?")

    def test_disconnect_is_idempotent(self):
        session = InstrumentSession(MockTransport(), "TEST")
        session.connect()
        session.disconnect()
        session.disconnect()
        assert not session.is_connected()

    def test_query_float_parse_error(self):
        session = InstrumentSession(ScriptedTransport(["abc"]), "TEST")
        session.connect()
        with pytest.raises(ParseError):
            session.query_float("VAL?")

    def test_read_timeout(self):
        session = InstrumentSession(MockTransport(), "TEST")
        session.connect()
        with pytest.raises(IoError):
            session.read()


@pytest.mark.usefixtures("client_log")
class TestCLD1015:
    def test_identity(self, cld):
        assert cld.get_idn().startswith("Thorlabs,CLD1015")

    def test_metadata(self, cld):
        assert cld.unroll_metadata() == {
            "idn": cld.get_idn(),
            "visa_addr": "MOCK::CLD1015",
            "timeout": cld.timeout,
        }

    def test_current_roundtrip(self, cld):
        cld.set_current(0.025)
        assert cld.mock.log[-1] == "SOURce:CURRent:LEVel:IMMediate:AMPLitude 0.025"
        assert cld.get_current() == pytest.approx(0.025)

    def test_current_mode(self, cld):
        cld.set_current_mode()
        assert cld.mock.log[-1] == "SOURce:FUNCtion:MODE CURRent"
        assert cld.get_current_mode() == "CURR"

    def test_laser_output(self, cld):
        cld.set_laser_output(True)
        assert cld.mock.log[-1] == "OUTPut:STATe ON"
        assert cld.get_laser_output()
        cld.set_laser_output(False)
        assert cld.mock.log[-1] == "OUTPut:STATe OFF"
        assert not cld.get_laser_output()

    def test_tec(self, cld):
        cld.mock.tec_on = False
        assert not cld.get_tec_state()
        cld.enable_tec()
        assert cld.mock.log[-1] == "OUTPut2:STATe ON"
        assert cld.get_tec_state()

    def test_unparseable_current(self):
        dev = scripted_cld(["not-a-number"])
        with pytest.raises(ParseError):
            dev.get_current()

    def test_not_connected(self):
        dev = MockCLD1015()
        with pytest.raises(NotConnected):
            dev.get_tec_state()

    def test_missing_config(self):
        with pytest.raises(ValueError):
            CLD1015(visa_addr=None, transport=MockTransport())

    def test_drain_empty_queue(self, cld):
        assert cld.drain_error_queue() == []
        assert cld.mock.log[-1] == "SYSTem:ERRor?"

    def test_drain_returns_errors_in_order(self, cld):
        cld.mock.errors = ['-222,"Data out of range"', '-113,"Undefined header"']
        assert cld.drain_error_queue() == [
            '-222,"Data out of range"',
            '-113,"Undefined header"',
        ]
        assert cld.drain_error_queue() == []

    def test_unknown_command_lands_in_error_queue(self, cld):
        cld.session.write("BOGUS")
        assert cld.drain_error_queue() == ['-113,"Undefined header"']

    def test_drain_is_bounded(self):
        dev = scripted_cld(['-350,"Queue overflow"'] * 3, max_error_reads=3)
        with pytest.raises(IoError):
            dev.drain_error_queue()

    def test_single_error_read(self, cld):
        assert cld.get_errors() == '+0,"No error"'


@pytest.mark.usefixtures("client_log")
class TestMPM210H:
    def test_identity(self, mpm):
        assert mpm.get_idn().startswith("santec,MPM-210H")

    def test_metadata(self, mpm):
        metadata = mpm.unroll_metadata()
        assert metadata["idn"].startswith("santec")
        assert metadata["host"] == "127.0.0.1"
        assert metadata["port"] == 5000
        assert set(metadata) == {"idn", "host", "port", "timeout"}

    def test_modules(self, mpm):
        assert mpm.get_recognized_modules() == "1,0,0,0,0"
        assert mpm.mock.log[-1] == "IDIS?"

    def test_wavelength(self, mpm):
        mpm.set_wavelength(980)
        assert mpm.mock.log[-1] == "WAV 980"
        assert mpm.get_wavelength() == "980"

    def test_zeroing(self, mpm):
        mpm.perform_zeroing()
        assert mpm.mock.log[-1] == "ZERO"
        assert mpm.mock.zero_count == 1

    def test_read_power_is_raw(self, mpm, cld):
        assert mpm.read_power(0) == "-60.000"
        assert mpm.mock.log[-1] == "READ? 0"
        cld.set_current(0.1)
        cld.set_laser_output(True)
        assert mpm.read_power(0) == "-50.000"

    @pytest.mark.parametrize("module", [-1, 1.5, "0", True])
    def test_read_power_rejects_bad_module(self, mpm, module):
        with pytest.raises(ValueError):
            mpm.read_power(module)

    def test_drain_empty_queue(self, mpm):
        assert mpm.drain_error_queue() == []
        assert mpm.mock.log[-1] == "ERR?"

    def test_drain_returns_errors(self, mpm):
        mpm.session.write("BOGUS")
        assert mpm.drain_error_queue() == ["1,Command error"]

    def test_drain_skips_empty_replies(self):
        dev = scripted_mpm(["", "2,Parameter error", "0,No error"])
        assert dev.drain_error_queue() == ["2,Parameter error"]

    def test_query_settle_delay(self):
        dev = MPM210H(transport=MockTransport())
        assert dev.session.settle_delay == pytest.approx(0.01)

    def test_write_failure(self, mpm):
        mpm.mock.fail_on.add("WAV")
        with pytest.raises(IoError):
            mpm.set_wavelength(980)

    def test_close(self, mpm):
        mpm.close()
        assert not mpm.is_connected()
        with pytest.raises(NotConnected):
            mpm.read_power(0)
