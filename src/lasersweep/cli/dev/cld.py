import click

from lasersweep.cli.base import open_system, system_option, tree_option
from lasersweep.system import CURRENT_SOURCE
from lasersweep.types import DeviceError, SafetyViolation


@click.group()
@tree_option
def cld():
    """CLD1015 laser diode / TEC controller commands."""
    pass


@cld.command()
@system_option
def status(system_name):
    """Show identity, TEC, laser output and current setpoint."""
    with open_system(system_name, CURRENT_SOURCE) as laser_system:
        try:
            click.echo(f"Identity: {laser_system.cld.get_idn()}")
            click.echo(f"TEC: {'ON' if laser_system.get_tec_state() else 'OFF'}")
            laser_on = laser_system.get_laser_output()
            click.echo(f"Laser output: {'ON' if laser_on else 'OFF'}")
            click.echo(f"Current setpoint: {laser_system.get_current_mA():.3f} mA")
        except DeviceError as e:
            raise click.ClickException(str(e))


@cld.command()
@system_option
@click.argument("current_ma", type=float, required=False)
def current(system_name, current_ma):
    """Get, or set (in mA), the laser current setpoint."""
    with open_system(system_name, CURRENT_SOURCE) as laser_system:
        try:
            if current_ma is not None:
                laser_system.set_current_mA(current_ma)
            click.echo(f"Current setpoint: {laser_system.get_current_mA():.3f} mA")
        except DeviceError as e:
            raise click.ClickException(str(e))


@cld.command()
@system_option
@click.option("--on/--off", "enabled", default=None, help="Switch the laser output")
def output(system_name, enabled):
    """Get or switch the laser output. Refuses to switch on with the TEC off."""
    with open_system(system_name, CURRENT_SOURCE) as laser_system:
        try:
            if enabled is not None:
                laser_system.set_laser_output(enabled)
            laser_on = laser_system.get_laser_output()
            click.echo(f"Laser output: {'ON' if laser_on else 'OFF'}")
        except (DeviceError, SafetyViolation) as e:
            raise click.ClickException(str(e))


@cld.command()
@system_option
@click.option("--enable", is_flag=True, help="Switch the TEC on")
def tec(system_name, enable):
    """Get the TEC state, optionally switching it on first."""
    with open_system(system_name, CURRENT_SOURCE) as laser_system:
        try:
            if enable:
                laser_system.enable_tec()
            click.echo(f"TEC: {'ON' if laser_system.get_tec_state() else 'OFF'}")
        except DeviceError as e:
            raise click.ClickException(str(e))


@cld.command()
@system_option
def errors(system_name):
    """Drain and print the instrument error queue."""
    with open_system(system_name, CURRENT_SOURCE) as laser_system:
        try:
            errs = laser_system.clear_errors(CURRENT_SOURCE)
        except DeviceError as e:
            raise click.ClickException(str(e))
    if not errs:
        click.echo("No errors")
    for err in errs:
        click.echo(err)
