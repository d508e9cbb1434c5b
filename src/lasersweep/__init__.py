# -*- coding: utf-8 -*-
"""# LaserSweep Documentation

Control software for a laser-diode/TEC current source (Thorlabs CLD1015) and
an optical power meter (Santec MPM-210H), plus an automated current sweep
(L-I characterisation) built on top of them.

The package is organised as:

- `lasersweep.device`: transports, instrument sessions and the two drivers.
- `lasersweep.meas`: the current sweep state machine.
- `lasersweep.system`: the context that owns both instruments and their locks.
- `lasersweep.types`: errors, configuration and data records.
- `lasersweep.util`: logging and persistence helpers.
- `lasersweep.cli`: the `lasersweep` command line.
"""

from ._version import __version__
