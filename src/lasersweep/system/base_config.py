"""Base configuration class for lasersweep systems."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from mashumaro import DataClassDictMixin

from lasersweep.util.defaults import (
    DEFAULT_CLD_RESOURCE,
    DEFAULT_CLD_TIMEOUT,
    DEFAULT_MAX_ERROR_READS,
    DEFAULT_MPM_HOST,
    DEFAULT_MPM_PORT,
    DEFAULT_MPM_TIMEOUT,
    DEFAULT_OPERATING_WAVELENGTH_NM,
    DEFAULT_SAVE_DIR,
    ZEROING_SETTLE_TIME,
)


class ConfigVersion(str, Enum):
    """Configuration version enumeration."""

    CURRENT = "v1"


CURRENT_SOURCE_TYPES = ("CLD1015", "MockCLD1015")
POWER_METER_TYPES = ("MPM210H", "MockMPM210H")


@dataclass(kw_only=True)
class SystemConfig(DataClassDictMixin):
    """System configuration loaded from INI files.

    Connection parameters are fixed here for the lifetime of a `LaserSystem`.

    Attributes
    ----------
    system_name : str
        Name of the system configuration
    save_dir : str
        Directory for sweep CSV files
    current_source_type : str
        Driver class name for the current source
    current_source_resource : str
        VISA resource string of the current source
    power_meter_type : str
        Driver class name for the power meter
    power_meter_host, power_meter_port : str, int
        TCP address of the power meter
    operating_wavelength_nm : int
        Laser wavelength written to the power meter before each sweep
    zeroing_settle_s : float
        Wait after power meter zeroing
    max_error_reads : int
        Bound on error queue draining
    """

    system_name: str
    save_dir: str = DEFAULT_SAVE_DIR
    current_source_type: str = "CLD1015"
    current_source_resource: str = DEFAULT_CLD_RESOURCE
    current_source_timeout: float = DEFAULT_CLD_TIMEOUT
    power_meter_type: str = "MPM210H"
    power_meter_host: str = DEFAULT_MPM_HOST
    power_meter_port: int = DEFAULT_MPM_PORT
    power_meter_timeout: float = DEFAULT_MPM_TIMEOUT
    operating_wavelength_nm: int = DEFAULT_OPERATING_WAVELENGTH_NM
    zeroing_settle_s: float = ZEROING_SETTLE_TIME
    max_error_reads: int = DEFAULT_MAX_ERROR_READS

    def validate(self) -> tuple[bool, str]:
        validators = {
            "current_source_type": (
                self.current_source_type in CURRENT_SOURCE_TYPES,
                f"Invalid current source type, use one of {CURRENT_SOURCE_TYPES}",
            ),
            "power_meter_type": (
                self.power_meter_type in POWER_METER_TYPES,
                f"Invalid power meter type, use one of {POWER_METER_TYPES}",
            ),
            "power_meter_port": (
                0 < self.power_meter_port < 65536,
                "Power meter port must be in 1-65535",
            ),
            "current_source_timeout": (
                self.current_source_timeout > 0,
                "Timeout must be positive",
            ),
            "power_meter_timeout": (
                self.power_meter_timeout > 0,
                "Timeout must be positive",
            ),
            "zeroing_settle_s": (
                self.zeroing_settle_s >= 0,
                "Zeroing settle time cannot be negative",
            ),
            "max_error_reads": (
                self.max_error_reads > 0,
                "max_error_reads must be positive",
            ),
        }
        for param, (valid, message) in validators.items():
            if not valid:
                return False, f"{message} (got {param}={getattr(self, param)})"
        return True, ""
