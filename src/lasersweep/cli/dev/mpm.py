import time

import click

from lasersweep.cli.base import open_system, system_option, tree_option
from lasersweep.system import POWER_METER
from lasersweep.types import DeviceError


@click.group()
@tree_option
def mpm():
    """MPM-210H optical power meter commands."""
    pass


@mpm.command()
@system_option
def status(system_name):
    """Show identity, recognised modules and wavelength."""
    with open_system(system_name, POWER_METER) as laser_system:
        try:
            click.echo(f"Identity: {laser_system.mpm.get_idn()}")
            click.echo(f"Modules: {laser_system.get_recognized_modules()}")
            click.echo(f"Wavelength: {laser_system.get_wavelength()} nm")
        except DeviceError as e:
            raise click.ClickException(str(e))


@mpm.command()
@system_option
@click.argument("wavelength_nm", type=int, required=False)
def wavelength(system_name, wavelength_nm):
    """Get, or set (in nm), the calibration wavelength."""
    with open_system(system_name, POWER_METER) as laser_system:
        try:
            if wavelength_nm is not None:
                laser_system.set_wavelength(wavelength_nm)
            click.echo(f"Wavelength: {laser_system.get_wavelength()} nm")
        except DeviceError as e:
            raise click.ClickException(str(e))


@mpm.command()
@system_option
@click.option("--module", "-m", type=int, default=0, help="Module index")
@click.option(
    "--watch/--no-watch", "-w/", default=False, help="Continuously monitor power"
)
@click.option(
    "--interval",
    "-i",
    type=float,
    default=1.0,
    help="Update interval for watch mode (seconds)",
)
def power(system_name, module, watch, interval):
    """Read the power of one module."""
    with open_system(system_name, POWER_METER) as laser_system:
        try:
            if not watch:
                click.echo(laser_system.read_power(module))
                return
            click.echo("Press Ctrl+C to stop monitoring")
            try:
                while True:
                    click.echo(laser_system.read_power(module))
                    time.sleep(interval)
            except KeyboardInterrupt:
                click.echo("\nMonitoring stopped")
        except DeviceError as e:
            raise click.ClickException(str(e))


@mpm.command()
@system_option
@click.option(
    "--settle",
    type=float,
    default=3.0,
    show_default=True,
    help="Wait after zeroing (s)",
)
def zero(system_name, settle):
    """Zero the power meter offsets (all laser light must be blocked)."""
    with open_system(system_name, POWER_METER) as laser_system:
        try:
            laser_system.perform_zeroing()
        except DeviceError as e:
            raise click.ClickException(str(e))
        time.sleep(settle)
    click.echo("Zeroing complete")


@mpm.command()
@system_option
def errors(system_name):
    """Drain and print the instrument error queue."""
    with open_system(system_name, POWER_METER) as laser_system:
        try:
            errs = laser_system.clear_errors(POWER_METER)
        except DeviceError as e:
            raise click.ClickException(str(e))
    if not errs:
        click.echo("No errors")
    for err in errs:
        click.echo(err)
