# -*- coding: utf-8 -*-
"""Saving sweep records and their metadata.

One CSV file per sweep run, named after the local time the run was saved:

    <save_dir>/experiment_data_<YYYY-MM-DD>_<HH-MM-SS>.csv

with a header row `timestamp,current_mA,power,module` and one row per
measurement, in acquisition order. The power column is written exactly as the
power meter returned it. A `<stem>_metadata.json` sidecar records the sweep
parameters, the instruments used and the outcome.
"""

from __future__ import annotations

import csv
import time
from pathlib import Path
from typing import Any, Sequence

import numpy as np
import simplejson as json
from loguru import logger

from lasersweep.types.messages import RECORD_FIELDS, MeasurementRecord

from .defaults import DEFAULT_SAVE_DIR


class NumpyEncoder(json.JSONEncoder):
    """Special json encoder for numpy types"""

    def default(self, o):
        if isinstance(o, np.integer):
            return int(o)
        if isinstance(o, np.floating):
            return float(o)
        if isinstance(o, np.ndarray):
            return o.tolist()
        if isinstance(o, Path):
            return str(o)
        return json.JSONEncoder.default(self, o)


def _unique_path(save_dir: Path) -> Path:
    """Timestamped file name in `save_dir`, suffixed with a counter if taken."""
    stem = time.strftime("experiment_data_%Y-%m-%d_%H-%M-%S")
    path = save_dir / f"{stem}.csv"
    counter = 1
    while path.exists():
        path = save_dir / f"{stem}_{counter}.csv"
        counter += 1
    return path


def save_sweep_records(
    records: Sequence[MeasurementRecord], save_dir: str | Path = DEFAULT_SAVE_DIR
) -> Path:
    """Write `records` to a new CSV file.

    Parameters
    ----------
    records : Sequence[MeasurementRecord]
        Records in acquisition order. May be empty (header only).
    save_dir : str | Path
        Directory, created if absent. Relative paths are relative to the
        current working directory.

    Returns
    -------
    Path
        Absolute path of the file written.
    """
    save_dir = Path(save_dir).absolute()
    save_dir.mkdir(parents=True, exist_ok=True)
    path = _unique_path(save_dir)
    # "x" so two runs saved in the same second never share a file
    with open(path, "x", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=RECORD_FIELDS)
        writer.writeheader()
        for record in records:
            writer.writerow(record.as_row())
    logger.info("Saved {} sweep records to {}", len(records), path)
    return path


def load_sweep_records(path: str | Path) -> list[MeasurementRecord]:
    """Read back a file written by `save_sweep_records`."""
    with open(path, newline="") as f:
        reader = csv.DictReader(f)
        return [
            MeasurementRecord(
                timestamp=row["timestamp"],
                current_mA=float(row["current_mA"]),
                power=row["power"],
                module=int(row["module"]),
            )
            for row in reader
        ]


def save_sweep_metadata(path: str | Path, metadata: dict[str, Any]) -> Path:
    """Write `metadata` next to the data file at `path`."""
    path = Path(path)
    meta_path = path.with_name(path.stem + "_metadata.json")
    with open(meta_path, "w") as f:
        json.dump(metadata, f, cls=NumpyEncoder, indent=4, allow_nan=True)
    return meta_path
