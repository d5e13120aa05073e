"""Datamax DPL Label Printer Driver."""

__version__ = "0.1.0"

from .printer import (
    DatamaxPrinter,
    LabelState,
    PrinterError,
    LabelStateError,
    EncodingError,
    TransportError,
    print_text_label,
)
from .dpl import (
    DPLCommands,
    Rotation,
    FeedSpeed,
    SpeedKind,
    ScaleSize,
    PrintMode,
    SystemFont,
    ScalableFont,
    TextPlacement,
    expansion,
    encode_text,
    encode_label,
)
from .sink import Sink, MemorySink, FileSink, NetworkSink, open_sink
from .units import MeasurementContext, measure

__all__ = [
    "DatamaxPrinter",
    "LabelState",
    "PrinterError",
    "LabelStateError",
    "EncodingError",
    "TransportError",
    "print_text_label",
    "DPLCommands",
    "Rotation",
    "FeedSpeed",
    "SpeedKind",
    "ScaleSize",
    "PrintMode",
    "SystemFont",
    "ScalableFont",
    "TextPlacement",
    "expansion",
    "encode_text",
    "encode_label",
    "Sink",
    "MemorySink",
    "FileSink",
    "NetworkSink",
    "open_sink",
    "MeasurementContext",
    "measure",
]
