"""
Saved printer settings.

Remembers every printer target that printed successfully, with the unit
mode last used on it, and which of them is the default. The file looks
like::

    {
      "default": "tcp://10.0.0.5:9100",
      "printers": {
        "tcp://10.0.0.5:9100": {"metric": true, "saved_at": 1700000000.0},
        "/dev/usb/lp0": {"metric": false, "saved_at": 1690000000.0}
      }
    }
"""

import json
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from .sink import STDOUT_TARGET, parse_tcp_target

# Config directory location
CONFIG_DIR = Path.home() / ".config" / "dplprinter"
CONFIG_FILE = CONFIG_DIR / "printer.json"


@dataclass
class PrinterConfig:
    """Saved settings for one printer target."""

    target: str       # tcp://host[:port] or device path
    metric: bool
    saved_at: float   # Unix timestamp

    def to_dict(self) -> dict:
        data = asdict(self)
        del data["target"]
        return data

    @classmethod
    def from_dict(cls, target: str, data: dict) -> "PrinterConfig":
        return cls(
            target=target,
            metric=bool(data.get("metric", False)),
            saved_at=float(data["saved_at"]),
        )


def is_saveable(target: str) -> bool:
    """Whether a target may be remembered.

    Standard output and malformed tcp:// targets are never saved.
    """
    if not isinstance(target, str) or not target.strip():
        return False
    if target == STDOUT_TARGET:
        return False
    try:
        parse_tcp_target(target)
    except ValueError:
        return False
    return True


def _read() -> dict:
    """Read the settings file, dropping anything unusable."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        data = json.loads(CONFIG_FILE.read_text())
    except json.JSONDecodeError:
        return {}
    if not isinstance(data, dict) or not isinstance(data.get("printers"), dict):
        return {}
    return data


def load_config(target: Optional[str] = None) -> Optional[PrinterConfig]:
    """Load saved settings.

    Args:
        target: Printer target to look up, or None for the default printer

    Returns:
        PrinterConfig if valid settings exist, None otherwise.
    """
    data = _read()
    if target is None:
        target = data.get("default")
    if not is_saveable(target):
        return None

    entry = data.get("printers", {}).get(target)
    if not isinstance(entry, dict):
        return None
    try:
        return PrinterConfig.from_dict(target, entry)
    except (KeyError, TypeError, ValueError):
        return None


def save_config(target: str, metric: bool = False) -> PrinterConfig:
    """Save settings for a target and make it the default printer.

    Args:
        target: Printer target string
        metric: Whether labels on this target use metric units

    Raises:
        ValueError: If the target cannot be saved (stdout or malformed)
    """
    if not is_saveable(target):
        raise ValueError(f"Cannot save printer target: {target!r}")

    data = _read()
    config = PrinterConfig(target=target, metric=metric, saved_at=time.time())
    printers = data.get("printers", {})
    printers[target] = config.to_dict()

    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(
        json.dumps({"default": target, "printers": printers}, indent=2)
    )
    return config


def clear_config() -> bool:
    """Remove all saved settings.

    Returns:
        True if settings were removed, False if none existed.
    """
    if CONFIG_FILE.exists():
        CONFIG_FILE.unlink()
        return True
    return False
