"""
DPL (Datamax Programming Language) Protocol Implementation.

DPL is a line-oriented command language used by Datamax label printers.
A label format is opened with STX L, filled with one command per line and
closed with E, which prints it. Every line is terminated with CR (\\r).

Numeric fields are zero-padded decimals of fixed width with no separators.
Values that do not fit their field raise EncodingError instead of being
truncated.

Reference: DPL Programmer's Manual
"""

import codecs
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Union

from .errors import EncodingError

STX = b"\x02"
ESC = b"\x1b"
CR = b"\r"

# Printer code page for text payloads
CODE_PAGE = "cp850"
REPLACEMENT = "_"


def _underscore_errors(exc: UnicodeError):
    """Replace each unencodable character with a single underscore."""
    if isinstance(exc, UnicodeEncodeError):
        return REPLACEMENT * (exc.end - exc.start), exc.end
    raise exc


codecs.register_error("dpl-underscore", _underscore_errors)


class Rotation(IntEnum):
    """Text rotation in degrees."""
    ROTATE_0 = 0
    ROTATE_90 = 90
    ROTATE_180 = 180
    ROTATE_270 = 270


class FeedSpeed(IntEnum):
    """Feed speeds in mm/s, slowest to fastest."""
    SPEED_50MM = 50
    SPEED_76MM = 76
    SPEED_101MM = 101
    SPEED_127MM = 127
    SPEED_152MM = 152
    SPEED_177MM = 177
    SPEED_203MM = 203
    SPEED_228MM = 228
    SPEED_254MM = 254
    SPEED_279MM = 279
    SPEED_304MM = 304


class SpeedKind(Enum):
    """Which feed movement a speed command applies to."""
    PRINTABLE = "P"    # While printing
    UNPRINTABLE = "S"  # Slewing over empty space
    BACKFEED = "p"     # Reverse feed


class ScaleSize(IntEnum):
    """Point sizes of the scalable font."""
    S4 = 4
    S6 = 6
    S8 = 8
    S10 = 10
    S12 = 12
    S14 = 14
    S18 = 18
    S24 = 24
    S30 = 30
    S36 = 36
    S48 = 48
    S72 = 72


class PrintMode(IntEnum):
    """Label formatting attribute."""
    NORMAL = 3   # Overlay
    REVERSE = 5  # Inverse image


ROTATION_CODES = {
    Rotation.ROTATE_0: b"1",
    Rotation.ROTATE_90: b"2",
    Rotation.ROTATE_180: b"3",
    Rotation.ROTATE_270: b"4",
}

# No code 2 on this printer line
FEED_SPEED_CODES = {
    FeedSpeed.SPEED_50MM: b"1",
    FeedSpeed.SPEED_76MM: b"3",
    FeedSpeed.SPEED_101MM: b"4",
    FeedSpeed.SPEED_127MM: b"5",
    FeedSpeed.SPEED_152MM: b"6",
    FeedSpeed.SPEED_177MM: b"7",
    FeedSpeed.SPEED_203MM: b"8",
    FeedSpeed.SPEED_228MM: b"9",
    FeedSpeed.SPEED_254MM: b"a",
    FeedSpeed.SPEED_279MM: b"b",
    FeedSpeed.SPEED_304MM: b"c",
}

SCALABLE_FONT = b"9"
SYSTEM_TEXT_FILLER = b"000"
BOLD_CODE = b"C"
NORMAL_CODE = b"A"

MAX_FONT = 8
MAX_DENSITY = 30


def _member(enum_cls, value, name: str):
    """Coerce a value into a closed enumeration."""
    try:
        return enum_cls(value)
    except ValueError as e:
        raise EncodingError(f"Invalid {name}: {value!r}") from e


def _digits(value: int, width: int, name: str, maximum: Optional[int] = None) -> bytes:
    """Zero-padded decimal field of fixed width."""
    limit = 10 ** width - 1 if maximum is None else maximum
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{name} must be an integer, got {value!r}")
    if not 0 <= value <= limit:
        raise EncodingError(f"{name} out of range 0-{limit}: {value}")
    return f"{value:0{width}d}".encode("ascii")


def expansion(value: int) -> str:
    """
    Encode a horizontal or vertical expansion factor.

    1-9 map to the digits '1'-'9', 10-24 map to 'J'-'X' ('@' + value).
    Anything else falls back to '1'.
    """
    if 1 <= value <= 9:
        return chr(ord("0") + value)
    if 10 <= value <= 24:
        return chr(ord("@") + value)
    return "1"


def encode_text(text: str) -> bytes:
    """Translate text to code page 850, replacing unmappable characters with '_'."""
    return text.encode(CODE_PAGE, errors="dpl-underscore")


@dataclass(frozen=True)
class SystemFont:
    """Style for text in one of the resident bitmap fonts."""
    rotation: Rotation = Rotation.ROTATE_0
    font: int = 0         # 0-8
    hor_expand: int = 1   # 1-24
    vert_expand: int = 1  # 1-24


@dataclass(frozen=True)
class ScalableFont:
    """Style for text in the scalable font."""
    rotation: Rotation = Rotation.ROTATE_0
    hor_expand: int = 1
    vert_expand: int = 1
    bold: bool = False
    size: ScaleSize = ScaleSize.S4


@dataclass(frozen=True)
class TextPlacement:
    """Where a text field goes and what it says.

    Row and column are in device units: 0.01" or 0.1 mm in metric mode.
    """
    row: int
    col: int
    text: str


class DPLCommands:
    """
    DPL command encoders.

    Every method is a pure function returning the complete command line,
    terminator included.
    """

    @staticmethod
    def line(body: bytes) -> bytes:
        """Terminate a command body. Empty bodies still get their CR."""
        return body + CR

    # ---- Framing ----

    @staticmethod
    def start_label() -> bytes:
        """Enter label formatting mode."""
        return STX + DPLCommands.line(b"L")

    @staticmethod
    def end_label() -> bytes:
        """Leave label formatting mode and print."""
        return DPLCommands.line(b"E")

    # ---- Setup Commands ----

    @staticmethod
    def print_density(density: int) -> bytes:
        """Heat setting (0-30)."""
        return DPLCommands.line(b"H" + _digits(density, 2, "density", MAX_DENSITY))

    @staticmethod
    def metric() -> bytes:
        """Interpret row/column values as 0.1 mm."""
        return DPLCommands.line(b"m")

    @staticmethod
    def feed_speed(kind: SpeedKind, speed: FeedSpeed) -> bytes:
        """Speed for one kind of feed movement."""
        kind = _member(SpeedKind, kind, "speed kind")
        speed = _member(FeedSpeed, speed, "feed speed")
        return DPLCommands.line(kind.value.encode("ascii") + FEED_SPEED_CODES[speed])

    @staticmethod
    def printable_speed(speed: FeedSpeed) -> bytes:
        """Speed while printing."""
        return DPLCommands.feed_speed(SpeedKind.PRINTABLE, speed)

    @staticmethod
    def unprintable_speed(speed: FeedSpeed) -> bytes:
        """Speed over empty label areas."""
        return DPLCommands.feed_speed(SpeedKind.UNPRINTABLE, speed)

    @staticmethod
    def backfeed_speed(speed: FeedSpeed) -> bytes:
        """Speed for backfeed."""
        return DPLCommands.feed_speed(SpeedKind.BACKFEED, speed)

    @staticmethod
    def pixel_size(size_hor: int, size_vert: int) -> bytes:
        """
        Dot size multipliers.

        Printers accept horizontal 1-2 and vertical 1-3; only the
        single-digit field width is enforced here.
        """
        return DPLCommands.line(
            b"D"
            + _digits(size_hor, 1, "horizontal pixel size")
            + _digits(size_vert, 1, "vertical pixel size")
        )

    @staticmethod
    def copies(copies: int) -> bytes:
        """Quantity of labels to print (0-9999)."""
        return DPLCommands.line(b"Q" + _digits(copies, 4, "copies"))

    @staticmethod
    def spacing(space: int) -> bytes:
        """Extra dots between characters (0-99)."""
        return DPLCommands.line(ESC + b"P" + _digits(space, 2, "spacing"))

    @staticmethod
    def print_mode(mode: PrintMode) -> bytes:
        """Set the formatting attribute."""
        mode = _member(PrintMode, mode, "print mode")
        return DPLCommands.line(b"A" + str(int(mode)).encode("ascii"))

    @staticmethod
    def reverse() -> bytes:
        """Print following fields inverted."""
        return DPLCommands.print_mode(PrintMode.REVERSE)

    @staticmethod
    def normal() -> bytes:
        """Print following fields overlayed."""
        return DPLCommands.print_mode(PrintMode.NORMAL)

    @staticmethod
    def offset_x(dist: int) -> bytes:
        """Column offset for all fields (0-9999)."""
        return DPLCommands.line(b"C" + _digits(dist, 4, "offset"))

    # ---- Text Commands ----

    @staticmethod
    def text_sys(style: SystemFont, row: int, col: int, data: str) -> bytes:
        """
        Text in a resident font.

        Args:
            style: Rotation, font (0-8) and expansion (1-24)
            row, col: Position in device units (0-9999)
            data: Text to print, translated to code page 850
        """
        rotation = _member(Rotation, style.rotation, "rotation")
        return DPLCommands.line(
            ROTATION_CODES[rotation]
            + _digits(style.font, 1, "font", MAX_FONT)
            + expansion(style.hor_expand).encode("ascii")
            + expansion(style.vert_expand).encode("ascii")
            + SYSTEM_TEXT_FILLER
            + _digits(row, 4, "row")
            + _digits(col, 4, "column")
            + encode_text(data)
        )

    @staticmethod
    def text_scale(style: ScalableFont, row: int, col: int, data: str) -> bytes:
        """
        Text in the scalable font.

        Args:
            style: Rotation, expansion (1-24), boldness and point size
            row, col: Position in device units (0-9999)
            data: Text to print, translated to code page 850
        """
        rotation = _member(Rotation, style.rotation, "rotation")
        size = _member(ScaleSize, style.size, "point size")
        return DPLCommands.line(
            ROTATION_CODES[rotation]
            + SCALABLE_FONT
            + expansion(style.hor_expand).encode("ascii")
            + expansion(style.vert_expand).encode("ascii")
            + (BOLD_CODE if style.bold else NORMAL_CODE)
            + _digits(int(size), 2, "point size")
            + _digits(row, 4, "row")
            + _digits(col, 4, "column")
            + encode_text(data)
        )


# ---- Command Variants ----


@dataclass(frozen=True)
class SetDensity:
    density: int

    def encode(self) -> bytes:
        return DPLCommands.print_density(self.density)


@dataclass(frozen=True)
class SetMetric:
    def encode(self) -> bytes:
        return DPLCommands.metric()


@dataclass(frozen=True)
class SetFeedSpeed:
    kind: SpeedKind
    speed: FeedSpeed

    def encode(self) -> bytes:
        return DPLCommands.feed_speed(self.kind, self.speed)


@dataclass(frozen=True)
class SetPixelSize:
    size_hor: int
    size_vert: int

    def encode(self) -> bytes:
        return DPLCommands.pixel_size(self.size_hor, self.size_vert)


@dataclass(frozen=True)
class SetCopies:
    copies: int

    def encode(self) -> bytes:
        return DPLCommands.copies(self.copies)


@dataclass(frozen=True)
class SetSpacing:
    space: int

    def encode(self) -> bytes:
        return DPLCommands.spacing(self.space)


@dataclass(frozen=True)
class SetPrintMode:
    mode: PrintMode

    def encode(self) -> bytes:
        return DPLCommands.print_mode(self.mode)


@dataclass(frozen=True)
class SetOffset:
    dist: int

    def encode(self) -> bytes:
        return DPLCommands.offset_x(self.dist)


@dataclass(frozen=True)
class SystemText:
    style: SystemFont
    placement: TextPlacement

    def encode(self) -> bytes:
        p = self.placement
        return DPLCommands.text_sys(self.style, p.row, p.col, p.text)


@dataclass(frozen=True)
class ScalableText:
    style: ScalableFont
    placement: TextPlacement

    def encode(self) -> bytes:
        p = self.placement
        return DPLCommands.text_scale(self.style, p.row, p.col, p.text)


Command = Union[
    SetDensity,
    SetMetric,
    SetFeedSpeed,
    SetPixelSize,
    SetCopies,
    SetSpacing,
    SetPrintMode,
    SetOffset,
    SystemText,
    ScalableText,
]


def encode_label(commands: list) -> bytes:
    """
    Encode a complete label format.

    Args:
        commands: Command variants in issue order

    Returns:
        STX L, every command line, then E
    """
    parts = [DPLCommands.start_label()]
    parts.extend(command.encode() for command in commands)
    parts.append(DPLCommands.end_label())
    return b"".join(parts)
