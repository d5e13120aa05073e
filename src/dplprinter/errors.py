"""Exception classes shared by the encoder, the sinks and the printer."""


class PrinterError(Exception):
    """Base exception for all printer errors."""

    pass


class LabelStateError(PrinterError):
    """Command issued outside of a label, or label framing misused."""

    pass


class EncodingError(PrinterError, ValueError):
    """Value cannot be represented in its DPL field."""

    pass


class TransportError(PrinterError):
    """Error writing to the printer's data channel."""

    pass
