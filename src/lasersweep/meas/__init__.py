"""
Measurements built on the instrument drivers.

Currently a single one: `CurrentSweep`, the laser current (L-I) sweep.
"""

from .sweep import SWEEP_STATE, CurrentSweep, SweepResult

__all__ = ["SWEEP_STATE", "CurrentSweep", "SweepResult"]
