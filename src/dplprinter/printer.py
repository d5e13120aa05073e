"""
High-Level Datamax Printer Interface.

Wraps an open print job (a Sink) and writes DPL commands to it as they
are issued. Every command is encoded and written immediately, in order,
because the printer's command processor is order sensitive.
"""

from enum import Enum
from typing import Optional

from .dpl import (
    Command,
    DPLCommands,
    FeedSpeed,
    ScalableFont,
    SetMetric,
    SystemFont,
)
from .errors import EncodingError, LabelStateError, PrinterError, TransportError
from .sink import Sink
from .units import MeasurementContext

__all__ = [
    "DatamaxPrinter",
    "LabelState",
    "PrinterError",
    "LabelStateError",
    "EncodingError",
    "TransportError",
]


class LabelState(Enum):
    """Where the printer is in the label framing."""
    IDLE = "idle"            # Between labels
    OPEN = "open"            # start_label() sent, accepting commands
    ABANDONED = "abandoned"  # A write failed mid-label
    CLOSED = "closed"        # Job closed


class DatamaxPrinter:
    """
    Job-level interface to a Datamax label printer.

    Usage:
        with DatamaxPrinter(open_sink("tcp://10.0.0.5")) as printer:
            printer.start_label()
            printer.metric()
            printer.text_sys(SystemFont(), printer.mm(5), printer.mm(10), "Hello")
            printer.end_label()
    """

    def __init__(self, sink: Sink, metric: bool = False):
        """
        Initialize printer interface.

        Args:
            sink: Open print job to write to
            metric: Start in metric mode for mm() conversions. The printer
                itself only switches once metric() is sent.
        """
        self.sink = sink
        self.units = MeasurementContext(metric)
        self._state = LabelState.IDLE
        self._debug = False

    def set_debug(self, enabled: bool):
        """Enable/disable debug output."""
        self._debug = enabled

    def _log(self, message: str):
        """Print debug message if enabled."""
        if self._debug:
            print(f"[DPL] {message}")

    @property
    def state(self) -> LabelState:
        return self._state

    @property
    def is_metric(self) -> bool:
        return self.units.metric

    def _write(self, data: bytes):
        """Write to the sink, abandoning the open label on failure."""
        self._log(f"TX: {data.hex() if len(data) < 50 else data[:50].hex() + '...'}")
        try:
            self.sink.write(data)
        except Exception as e:
            # Partial output may have reached the printer
            self._state = LabelState.ABANDONED
            self._log(f"Write failed, label abandoned: {e}")
            raise

    def _emit(self, data: bytes):
        """Write one label command."""
        if self._state != LabelState.OPEN:
            raise LabelStateError(
                f"Command outside of a label (state: {self._state.value})"
            )
        self._write(data)

    def _check_open_job(self):
        if self._state == LabelState.CLOSED:
            raise LabelStateError("Print job is closed")

    # ---- Framing ----

    def start_label(self):
        """
        Begin a label format.

        Allowed between labels and after an abandoned label.

        Raises:
            LabelStateError: If a label is already open or the job is closed
        """
        self._check_open_job()
        if self._state == LabelState.OPEN:
            raise LabelStateError("Label already started")
        if self._state == LabelState.ABANDONED:
            self._log("Starting over after abandoned label")
        self._log("Starting label")
        self._write(DPLCommands.start_label())
        self._state = LabelState.OPEN

    def end_label(self):
        """
        End the label format and print it.

        Raises:
            LabelStateError: If no label is open
        """
        if self._state != LabelState.OPEN:
            raise LabelStateError("No label started")
        self._write(DPLCommands.end_label())
        self._state = LabelState.IDLE
        self._log("Label sent")

    # ---- Label Commands ----

    def print_density(self, density: int):
        """Heat setting (0-30)."""
        self._emit(DPLCommands.print_density(density))

    def metric(self):
        """Switch to metric. Affects mm() from here on."""
        self._emit(DPLCommands.metric())
        self.units = MeasurementContext(metric=True)

    def printable_speed(self, speed: FeedSpeed):
        """Speed while printing."""
        self._emit(DPLCommands.printable_speed(speed))

    def unprintable_speed(self, speed: FeedSpeed):
        """Speed over empty label areas."""
        self._emit(DPLCommands.unprintable_speed(speed))

    def backfeed_speed(self, speed: FeedSpeed):
        """Speed for backfeed."""
        self._emit(DPLCommands.backfeed_speed(speed))

    def pixel_size(self, size_hor: int, size_vert: int):
        """Dot size. Horizontal (1,2) and vertical (1,2,3)."""
        self._emit(DPLCommands.pixel_size(size_hor, size_vert))

    def copies(self, copies: int):
        """Copies to print (0-9999)."""
        self._emit(DPLCommands.copies(copies))

    def spacing(self, space: int):
        """Spacing between characters (0-99)."""
        self._emit(DPLCommands.spacing(space))

    def reverse(self):
        """Print reverse."""
        self._emit(DPLCommands.reverse())

    def normal(self):
        """Print overlayed."""
        self._emit(DPLCommands.normal())

    def offset_x(self, dist: int):
        """Horizontal offset (0-9999)."""
        self._emit(DPLCommands.offset_x(dist))

    def text_sys(self, style: SystemFont, row: int, col: int, data: str):
        """
        Text in a resident font.

        Args:
            style: Rotation, font (0-8), expansion (1-24)
            row, col: Position (0-9999) in 0.01" or 0.1 mm after metric()
            data: Text to print
        """
        self._emit(DPLCommands.text_sys(style, row, col, data))

    def text_scale(self, style: ScalableFont, row: int, col: int, data: str):
        """
        Text in the scalable font.

        Args:
            style: Rotation, expansion (1-24), boldness, size (4-72pt)
            row, col: Position (0-9999) in 0.01" or 0.1 mm after metric()
            data: Text to print
        """
        self._emit(DPLCommands.text_scale(style, row, col, data))

    def send(self, command: Command):
        """Write any command variant."""
        self._emit(command.encode())
        if isinstance(command, SetMetric):
            self.units = MeasurementContext(metric=True)

    def mm(self, width: float) -> int:
        """Millimeters to device units in the current measurement mode."""
        return self.units.measure(width)

    # ---- Job Pass-Through ----

    def write(self, data: bytes) -> int:
        """Send raw bytes, bypassing label framing checks."""
        self._check_open_job()
        self._write(data)
        return len(data)

    def flush(self):
        """Flush the sink."""
        self._check_open_job()
        self.sink.flush()

    def start_page(self):
        """Page boundary hint to the print job."""
        self._check_open_job()
        self.sink.start_page()

    def end_page(self):
        """Page boundary hint to the print job."""
        self._check_open_job()
        self.sink.end_page()

    def close(self):
        """Close the print job. Safe to call more than once."""
        if self._state == LabelState.CLOSED:
            return
        if self._state == LabelState.OPEN:
            self._log("Closing with an unfinished label")
        self._state = LabelState.CLOSED
        self.sink.close()
        self._log("Job closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def print_text_label(
    sink: Sink,
    text: str,
    row: int = 0,
    col: int = 0,
    style: Optional[SystemFont] = None,
    copies: int = 1,
) -> None:
    """
    Convenience function to print a single line of text.

    Args:
        sink: Open print job
        text: Text to print
        row, col: Position in device units
        style: Font style (default: font 0, no rotation or expansion)
        copies: Number of copies
    """
    with DatamaxPrinter(sink) as printer:
        printer.start_label()
        printer.text_sys(style or SystemFont(), row, col, text)
        printer.copies(copies)
        printer.end_label()
