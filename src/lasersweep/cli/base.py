from contextlib import contextmanager

import click
from loguru import logger

from lasersweep.system import (
    CURRENT_SOURCE,
    POWER_METER,
    LaserSystem,
    list_available_systems,
)
from lasersweep.types import DeviceError
from lasersweep.util import (
    DEFAULT_LOGLEVEL,
    shutdown_client_log,
    start_client_log,
)
from lasersweep.util.defaults import DEFAULT_STABILIZATION_DELAY_MS


def print_tree(cmd, prefix="", parent_ctx=None):
    """Print command tree starting from given command."""
    ctx = click.Context(cmd, info_name=cmd.name, parent=parent_ctx)

    # Only print root name if no parent
    if not parent_ctx:
        click.echo(cmd.name)

    for sub in sorted(cmd.list_commands(ctx)):
        sub_cmd = cmd.get_command(ctx, sub)
        click.echo(f"{prefix}└── {sub}")
        if isinstance(sub_cmd, click.Group):
            print_tree(sub_cmd, prefix + "    ", ctx)


def tree_option(f):
    """Add --tree option to command."""

    def callback(ctx, param, value):
        if not value or ctx.resilient_parsing:
            return
        print_tree(ctx.command)
        ctx.exit()

    return click.option(
        "--tree",
        is_flag=True,
        help="Show command tree from this point",
        expose_value=False,
        is_eager=True,
        callback=callback,
    )(f)


def system_option(f):
    """Add --system-name option to command."""
    return click.option(
        "--system-name",
        "-n",
        default="lab",
        show_default=True,
        help='Name of the system configuration to use (e.g. "mock", "lab")',
    )(f)


@contextmanager
def open_system(system_name: str, *devices: str):
    """Create a `LaserSystem`, connect the named devices, and pack down after.

    Raises click.ClickException if a required device fails to connect.
    """
    try:
        system = LaserSystem(system_name)
    except ValueError as e:
        raise click.ClickException(str(e))
    try:
        for name in devices:
            try:
                idn = system.get_device(name).open()
            except DeviceError as e:
                raise click.ClickException(f"Could not connect {name}: {e}")
            logger.debug("Connected {}: {}", name, idn)
        yield system
    finally:
        system.packdown()


@click.group()
@tree_option
def cli():
    """LaserSweep - laser diode L-I characterisation.

    Controls a CLD1015 laser diode/TEC controller and an MPM-210H optical
    power meter, and runs automated current sweeps.
    """
    pass


@cli.group()
def system():
    """Manage system configurations."""
    pass


@system.command("list")
def list_systems():
    """List available system configurations."""
    systems = list_available_systems()
    if not systems:
        click.echo("No system configurations found")
        return
    for name, source in sorted(systems.items()):
        click.echo(f"{name} ({source})")


@cli.command()
@system_option
@click.option("--module", "-m", type=int, default=0, help="Power meter module index")
@click.option("--start", type=float, required=True, help="Start current (mA)")
@click.option("--stop", type=float, required=True, help="Stop current (mA)")
@click.option("--step", type=float, required=True, help="Current step (mA)")
@click.option(
    "--delay",
    type=float,
    default=DEFAULT_STABILIZATION_DELAY_MS,
    show_default=True,
    help="Stabilization delay per step (ms)",
)
@click.option(
    "--log-to-file/--no-log-to-file",
    default=True,
    help="Write log to ~/.lasersweep/client.log",
)
@click.option("--log-to-stdout/--no-log-to-stdout", default=False, help="Log to stderr")
@click.option(
    "--log-level",
    default=DEFAULT_LOGLEVEL,
    type=click.Choice(["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
def sweep(
    system_name, module, start, stop, step, delay, log_to_file, log_to_stdout, log_level
):
    """Run a laser current sweep and save the results to CSV."""
    start_client_log(
        log_to_file=log_to_file,
        log_to_stdout=log_to_stdout,
        clear_prev=log_to_file,
        log_level=log_level,
    )

    def echo_point(record):
        click.echo(f"{record.current_mA:10.3f} mA  {record.power}")

    try:
        with open_system(
            system_name, CURRENT_SOURCE, POWER_METER
        ) as laser_system:
            ok, msg = laser_system.run_sweep(
                module,
                start,
                stop,
                step,
                stabilization_delay_ms=delay,
                on_point=echo_point,
            )
    finally:
        shutdown_client_log()
    if not ok:
        raise click.ClickException(msg)
    click.echo(f"Data saved to: {msg}")
