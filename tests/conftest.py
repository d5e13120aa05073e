"""
Pytest configuration for DPL printer tests.

Provides in-memory printers and an isolated config directory.
"""

import pytest

from dplprinter import DatamaxPrinter, MemorySink


@pytest.fixture
def sink():
    """Provide an in-memory sink."""
    return MemorySink()


@pytest.fixture
def printer(sink):
    """Provide a printer writing to the in-memory sink."""
    return DatamaxPrinter(sink)


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point the saved printer config at a temporary directory."""
    test_config_dir = tmp_path / ".config" / "dplprinter"
    test_config_file = test_config_dir / "printer.json"

    monkeypatch.setattr("dplprinter.config.CONFIG_DIR", test_config_dir)
    monkeypatch.setattr("dplprinter.config.CONFIG_FILE", test_config_file)

    return test_config_dir
