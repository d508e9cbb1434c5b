import os

import pytest

from lasersweep.system import LaserSystem

HW_SYSTEM = os.environ.get("LASERSWEEP_HW_SYSTEM", "lab")


@pytest.fixture(scope="session")
def hw_system():
    """The real-hardware system, connected; skips if an instrument is absent."""
    system = LaserSystem(HW_SYSTEM)
    dev_status = system.startup()
    missing = [name for name, dev in dev_status.items() if not dev["status"]]
    if missing:
        system.packdown()
        pytest.skip(f"System {HW_SYSTEM} not available: {', '.join(missing)}")
    yield system
    system.packdown()
