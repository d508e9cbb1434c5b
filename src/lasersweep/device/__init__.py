# -*- coding: utf-8 -*-
"""
Hardware device implementations for lasersweep.

Layers, leaf first:

- `transport`: one blocking connection per instrument (`VisaTransport`,
  `SocketTransport`), both framed on newline.
- `session`: `InstrumentSession`, connect/write/read/query over a transport,
  with the per-instrument lock.
- drivers: `CLD1015` (laser diode / TEC current source, VISA) and `MPM210H`
  (optical power meter, TCP socket).
- `mock`: simulated instruments for tests and the "mock" system.

Examples
--------
```python
from lasersweep.device import CLD1015
cld = CLD1015(visa_addr="USB0::4883::32847::M01053290::0::INSTR")
cld.open()
cld.get_tec_state()
```
"""

from .cld1015 import CLD1015
from .device import Device, SCPIDevice
from .mock import MockCLD1015, MockMPM210H
from .mpm210h import MPM210H
from .session import InstrumentSession
from .transport import SocketTransport, Transport, VisaTransport

__all__ = [
    "Device",
    "SCPIDevice",
    "InstrumentSession",
    "Transport",
    "VisaTransport",
    "SocketTransport",
    "CLD1015",
    "MPM210H",
    "MockCLD1015",
    "MockMPM210H",
]
