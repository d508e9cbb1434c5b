"""
System configuration and the coordinating context for both instruments.

- `LaserSystem`: owns the CLD1015 and MPM210H drivers, exposes their
  operations and runs sweeps.
- `SystemConfig`, `load_system_config`, `list_available_systems`: INI based
  configuration.
"""

from .base_config import SystemConfig
from .sysconfig import list_available_systems, load_system_config, save_system_config
from .system import CURRENT_SOURCE, POWER_METER, LaserSystem

__all__ = [
    "CURRENT_SOURCE",
    "POWER_METER",
    "LaserSystem",
    "SystemConfig",
    "list_available_systems",
    "load_system_config",
    "save_system_config",
]
