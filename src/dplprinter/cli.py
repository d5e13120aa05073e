"""
Command-Line Interface for Datamax DPL Printers.

Usage:
    dpl encode TEXT            - Write the DPL for a text label to stdout
    dpl print TEXT -t TARGET   - Print a text label
    dpl raw HEX -t TARGET      - Send raw hex data
    dpl measure MM             - Convert millimeters to device units
    dpl config                 - Show or clear the saved printer target
"""

import sys
from typing import Optional

import click

from .config import clear_config, load_config, save_config
from .dpl import FeedSpeed, Rotation, ScalableFont, ScaleSize, SystemFont
from .printer import DatamaxPrinter, PrinterError, TransportError
from .sink import STDOUT_TARGET, MemorySink, open_sink, parse_tcp_target
from .units import MeasurementContext


def validate_target(ctx, param, value):
    """Validate a printer target.

    Accepts:
        - tcp://host[:port] for network printers (default port 9100)
        - "-" for stdout
        - Any other value as a file or device path

    Raises:
        click.BadParameter: If a tcp:// target is malformed or the value is empty
    """
    if value is None:
        return None
    if not value.strip():
        raise click.BadParameter("Printer target must not be empty")
    try:
        parse_tcp_target(value)
    except ValueError as e:
        raise click.BadParameter(
            f"{e}. Expected format tcp://host[:port]"
        ) from e
    return value


def label_options(func):
    """Options shared by commands that build a text label."""
    options = [
        click.option("--row", type=float, default=0.0, help="Row position in mm"),
        click.option("--col", type=float, default=0.0, help="Column position in mm"),
        click.option(
            "--font", type=click.IntRange(0, 8), default=0,
            help="Resident font (0-8, ignored with --scalable)",
        ),
        click.option(
            "--rotation",
            type=click.Choice(["0", "90", "180", "270"]),
            default="0",
            help="Rotation in degrees",
        ),
        click.option("--hexpand", type=click.IntRange(1, 24), default=1,
                     help="Horizontal expansion (1-24)"),
        click.option("--vexpand", type=click.IntRange(1, 24), default=1,
                     help="Vertical expansion (1-24)"),
        click.option("--scalable", is_flag=True, help="Use the scalable font"),
        click.option(
            "--size",
            type=click.Choice([str(int(s)) for s in ScaleSize]),
            default="12",
            help="Scalable font point size",
        ),
        click.option("--bold", is_flag=True, help="Bold scalable font"),
        click.option("--copies", type=click.IntRange(0, 9999), default=1,
                     help="Number of copies"),
        click.option("--density", type=click.IntRange(0, 30), default=None,
                     help="Print density (0-30, printer default if omitted)"),
        click.option(
            "--speed",
            type=click.Choice([str(int(s)) for s in FeedSpeed]),
            default=None,
            help="Print speed in mm/s",
        ),
        click.option("--metric/--imperial", default=None,
                     help="Position units sent to the printer"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_label(printer: DatamaxPrinter, text: str, metric: bool, row: float,
                col: float, font: int, rotation: str, hexpand: int, vexpand: int,
                scalable: bool, size: str, bold: bool, copies: int,
                density: Optional[int], speed: Optional[str]):
    """Write one text label to the printer."""
    printer.start_label()
    if metric:
        printer.metric()
    if density is not None:
        printer.print_density(density)
    if speed is not None:
        printer.printable_speed(FeedSpeed(int(speed)))

    row_units = printer.mm(row)
    col_units = printer.mm(col)
    if scalable:
        style = ScalableFont(
            rotation=Rotation(int(rotation)),
            hor_expand=hexpand,
            vert_expand=vexpand,
            bold=bold,
            size=ScaleSize(int(size)),
        )
        printer.text_scale(style, row_units, col_units, text)
    else:
        style = SystemFont(
            rotation=Rotation(int(rotation)),
            font=font,
            hor_expand=hexpand,
            vert_expand=vexpand,
        )
        printer.text_sys(style, row_units, col_units, text)

    printer.copies(copies)
    printer.end_label()


@click.group()
@click.option("--debug/--no-debug", default=False, help="Enable debug output")
@click.pass_context
def main(ctx, debug):
    """Datamax DPL Label Printer CLI."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


def encode_text_label(text: str, metric: bool, debug: bool = False, **label) -> bytes:
    """Encode one text label in memory.

    Every field is validated before any byte leaves the process.

    Raises:
        PrinterError: If a field cannot be encoded
    """
    sink = MemorySink()
    printer = DatamaxPrinter(sink)
    printer.set_debug(debug)
    build_label(printer, text, metric, **label)
    return sink.getvalue()


def status(message: str):
    """Status text goes to stderr so stdout only ever carries label bytes."""
    click.echo(message, err=True)


@main.command()
@click.argument("text")
@label_options
@click.option("--hex", "as_hex", is_flag=True, help="Show output as hex")
@click.pass_context
def encode(ctx, text, metric, as_hex, **label):
    """Encode a text label and write it to stdout."""
    try:
        # Debug lines would corrupt binary output
        data = encode_text_label(
            text, bool(metric), ctx.obj["debug"] and as_hex, **label
        )
    except PrinterError as e:
        click.echo(f"Encoding error: {e}", err=True)
        sys.exit(1)

    if as_hex:
        click.echo(data.hex())
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()


def resolve_target(target: Optional[str]) -> str:
    """Use the given target or fall back to the saved one."""
    if target:
        return target
    config = load_config()
    if config is None:
        click.echo("No printer target given and none saved. Use --target.", err=True)
        sys.exit(1)
    status(f"Using saved printer: {config.target}")
    return config.target


@main.command("print")
@click.argument("text")
@click.option(
    "--target",
    "-t",
    callback=validate_target,
    help="tcp://host[:port], device path or - for stdout (default: last used)",
)
@label_options
@click.option("--timeout", default=5.0, help="Network timeout in seconds")
@click.pass_context
def print_label(ctx, text, target, metric, timeout, **label):
    """Print a text label."""
    target = resolve_target(target)
    if metric is None:
        saved = load_config(target)
        metric = saved.metric if saved else False

    try:
        data = encode_text_label(text, metric, **label)
    except PrinterError as e:
        click.echo(f"Printer error: {e}", err=True)
        sys.exit(1)

    try:
        sink = open_sink(target, timeout=timeout)
    except ValueError as e:
        click.echo(f"Invalid target: {e}", err=True)
        sys.exit(1)

    to_stdout = target == STDOUT_TARGET
    status(f"Printing to {target}...")
    try:
        with DatamaxPrinter(sink) as printer:
            printer.set_debug(ctx.obj["debug"] and not to_stdout)
            printer.write(data)
    except TransportError as e:
        click.echo(f"Transport error: {e}", err=True)
        sys.exit(1)
    except PrinterError as e:
        click.echo(f"Printer error: {e}", err=True)
        sys.exit(1)

    if not to_stdout:
        save_config(target, metric)
    status("Print complete!")


@main.command()
@click.argument("hex_data")
@click.option(
    "--target",
    "-t",
    callback=validate_target,
    help="tcp://host[:port], device path or - for stdout (default: last used)",
)
@click.pass_context
def raw(ctx, hex_data, target):
    """Send raw hex data to the printer (for testing)."""
    try:
        data = bytes.fromhex(hex_data)
    except ValueError:
        click.echo("Invalid hex data!", err=True)
        sys.exit(1)

    target = resolve_target(target)
    try:
        sink = open_sink(target)
    except ValueError as e:
        click.echo(f"Invalid target: {e}", err=True)
        sys.exit(1)

    try:
        with DatamaxPrinter(sink) as printer:
            # Always debug for raw commands, unless the bytes go to stdout
            printer.set_debug(target != STDOUT_TARGET)
            status(f"Sending: {data.hex()}")
            printer.write(data)
    except PrinterError as e:
        click.echo(f"Printer error: {e}", err=True)
        sys.exit(1)



@main.command()
@click.argument("millimeters", type=float)
@click.option("--metric/--imperial", default=False, help="Printer measurement mode")
def measure(millimeters, metric):
    """Convert millimeters to device units."""
    units = MeasurementContext(metric)
    click.echo(f"{units.measure(millimeters)} ({units.unit_name})")


@main.command()
@click.option("--clear", is_flag=True, help="Forget the saved printer")
def config(clear):
    """Show or clear the saved printer target."""
    if clear:
        if clear_config():
            click.echo("Saved printer cleared.")
        else:
            click.echo("No saved printer.")
        return

    saved = load_config()
    if saved is None:
        click.echo("No saved printer.")
        return
    mode = "metric" if saved.metric else "imperial"
    click.echo(f"Target: {saved.target} ({mode})")


if __name__ == "__main__":
    main()
