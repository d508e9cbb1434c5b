from lasersweep.device.cld1015 import CLD1015
from lasersweep.device.mpm210h import MPM210H

from .mock_transport import (
    MockCLD1015Transport,
    MockMPM210HTransport,
    MockTransport,
)


class MockCLD1015(CLD1015):
    """CLD1015 driver wired to an in-memory simulated instrument."""

    def __init__(self, **config):
        self.mock = MockCLD1015Transport()
        super().__init__(visa_addr="MOCK::CLD1015", transport=self.mock, **config)


class MockMPM210H(MPM210H):
    """MPM210H driver wired to an in-memory simulated instrument.

    Pass the `MockCLD1015` it should "see" so power follows the laser current.
    """

    def __init__(self, laser: MockCLD1015 | None = None, **config):
        self.mock = MockMPM210HTransport(laser=laser.mock if laser else None)
        config.setdefault("query_delay", 0.0)
        super().__init__(host="127.0.0.1", port=5000, transport=self.mock, **config)


__all__ = [
    "MockTransport",
    "MockCLD1015Transport",
    "MockMPM210HTransport",
    "MockCLD1015",
    "MockMPM210H",
]
