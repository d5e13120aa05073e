"""
Physical measurement to device unit conversion.

Row and column values are 0.01" by default and 0.1 mm once the label
has been switched to metric mode.
"""

import math
from dataclasses import dataclass

MM_PER_INCH = 25.4


def measure(width_mm: float, metric: bool) -> int:
    """
    Convert millimeters to device units.

    Args:
        width_mm: Distance in millimeters
        metric: True if the printer interprets positions as 0.1 mm

    Returns:
        Tenths of a millimeter in metric mode, hundredths of an inch
        otherwise. Halves round up.
    """
    if metric:
        units = width_mm * 10
    else:
        units = width_mm / MM_PER_INCH * 100
    return int(math.floor(units + 0.5))


@dataclass(frozen=True)
class MeasurementContext:
    """Measurement mode of a printer session."""
    metric: bool = False

    def measure(self, width_mm: float) -> int:
        """Convert millimeters using this context's mode."""
        return measure(width_mm, self.metric)

    @property
    def unit_name(self) -> str:
        return "0.1 mm" if self.metric else "0.01 in"
