import click

from .cld import cld
from .mpm import mpm


@click.group()
def dev():
    """Hardware device control tools."""
    pass


dev.add_command(cld)
dev.add_command(mpm)
