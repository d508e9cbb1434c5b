# -*- coding: utf-8 -*-
"""
Utility functions and constants for lasersweep.

- Logging configuration and management
- Saving and loading sweep records

Examples
--------
```python
from lasersweep.util import start_client_log, load_sweep_records
start_client_log(log_to_stdout=True)
records = load_sweep_records("logs/experiment_data_2024-01-01_12-00-00.csv")
```
"""

from .defaults import (
    DEFAULT_LOGLEVEL,
    DEFAULT_SAVE_DIR,
    TEST_LOGLEVEL,
)
from .logging import (
    clear_log,
    log_default_path_client,
    shutdown_client_log,
    start_client_log,
)
from .save import load_sweep_records, save_sweep_metadata, save_sweep_records

__all__ = [
    "DEFAULT_LOGLEVEL",
    "DEFAULT_SAVE_DIR",
    "TEST_LOGLEVEL",
    "clear_log",
    "log_default_path_client",
    "shutdown_client_log",
    "start_client_log",
    "load_sweep_records",
    "save_sweep_metadata",
    "save_sweep_records",
]
