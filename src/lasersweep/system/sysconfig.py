"""System configuration handling for lasersweep.

Systems are described in INI files, one section per system:

[lab]
save_dir = ./logs/
operating_wavelength_nm = 980
zeroing_settle_s = 3.0
max_error_reads = 32

device.current_source.type = CLD1015
device.current_source.resource = USB0::4883::32847::M01053290::0::INSTR
device.current_source.timeout = 1.0

device.power_meter.type = MPM210H
device.power_meter.host = 192.168.1.161
device.power_meter.port = 5000
device.power_meter.timeout = 2.0

Search order: ~/.lasersweep/systems.ini, then the package defaults in
lasersweep/system/systems/<system_name>.ini. Section names are matched
case-insensitively.
"""

from __future__ import annotations

from configparser import ConfigParser, SectionProxy
from pathlib import Path

from loguru import logger

from lasersweep.system.base_config import ConfigVersion, SystemConfig

# ini key -> (SystemConfig field, converter)
_KEY_MAP = {
    "save_dir": ("save_dir", str),
    "operating_wavelength_nm": ("operating_wavelength_nm", int),
    "zeroing_settle_s": ("zeroing_settle_s", float),
    "max_error_reads": ("max_error_reads", int),
    "device.current_source.type": ("current_source_type", str),
    "device.current_source.resource": ("current_source_resource", str),
    "device.current_source.timeout": ("current_source_timeout", float),
    "device.power_meter.type": ("power_meter_type", str),
    "device.power_meter.host": ("power_meter_host", str),
    "device.power_meter.port": ("power_meter_port", int),
    "device.power_meter.timeout": ("power_meter_timeout", float),
}


def user_systems_file() -> Path:
    return Path.home() / ".lasersweep" / "systems.ini"


def package_systems_dir() -> Path:
    return Path(__file__).parent / "systems"


def _create_system_config(section: SectionProxy) -> SystemConfig:
    kwargs = {"system_name": section.name}
    for key, value in section.items():
        if key == "version":
            continue
        if key not in _KEY_MAP:
            raise ValueError(f"Unknown key '{key}' in system '{section.name}'")
        field_name, convert = _KEY_MAP[key]
        try:
            kwargs[field_name] = convert(value)
        except ValueError as e:
            raise ValueError(
                f"Invalid value for '{key}' in system '{section.name}': {value}"
            ) from e
    config = SystemConfig(**kwargs)
    is_valid, msg = config.validate()
    if not is_valid:
        raise ValueError(f"Invalid system configuration '{section.name}': {msg}")
    return config


def load_system_config(system_name: str) -> SystemConfig:
    """Load system configuration from INI file.

    Parameters
    ----------
    system_name : str
        Name of the system configuration to load

    Returns
    -------
    SystemConfig
        Loaded and validated system configuration object
    """
    user_file = user_systems_file()
    package_file = package_systems_dir() / f"{system_name.lower()}.ini"

    for source in (user_file, package_file):
        if not source.exists():
            continue
        config = ConfigParser()
        config.read(source)
        for section in config.sections():
            if section.lower() == system_name.lower():
                logger.debug("Loading system '{}' from {}", section, source)
                return _create_system_config(config[section])

    raise ValueError(
        f"System '{system_name}' not found in:\n"
        f"- User config: {user_file}\n"
        f"- Package config: {package_file}"
    )


def list_available_systems() -> dict[str, str]:
    """List all available system configurations.

    Returns
    -------
    dict[str, str]
        Dictionary mapping system names to their source ('user' or 'package')
    """
    systems = {}
    package_dir = package_systems_dir()
    if package_dir.exists():
        for file in package_dir.glob("*.ini"):
            config = ConfigParser()
            config.read(file)
            for section in config.sections():
                systems[section] = "package"

    # user sysconfig overrides package defaults
    user_file = user_systems_file()
    if user_file.exists():
        config = ConfigParser()
        config.read(user_file)
        for section in config.sections():
            systems[section] = "user"

    return systems


def save_system_config(config: SystemConfig, file_path: Path | None = None) -> Path:
    """Write (or replace) the section for `config` in a systems INI file."""
    if file_path is None:
        file_path = user_systems_file()
    file_path.parent.mkdir(parents=True, exist_ok=True)

    parser = ConfigParser()
    if file_path.exists():
        parser.read(file_path)
    parser["DEFAULT"]["version"] = ConfigVersion.CURRENT.value

    values = config.to_dict()
    parser[config.system_name] = {
        key: str(values[field_name]) for key, (field_name, _) in _KEY_MAP.items()
    }
    with file_path.open("w") as f:
        parser.write(f)
    logger.info("Saved system '{}' to {}", config.system_name, file_path)
    return file_path
