"""
Command-line interface for lasersweep.

Built with Click. The command tree:

```
$ lasersweep --tree
cli
└── dev
    └── cld
        └── current
        └── errors
        └── output
        └── status
        └── tec
    └── mpm
        └── errors
        └── power
        └── status
        └── wavelength
        └── zero
└── sweep
└── system
    └── list
```

Examples
--------
Running a sweep against the simulated instruments:
```bash
$ lasersweep sweep -n mock --start 0 --stop 50 --step 5 --delay 10
```
"""

from .base import cli, tree_option

from .dev import dev  # isort: skip

cli.add_command(dev)

__all__ = ["cli", "tree_option"]
