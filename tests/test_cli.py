"""Tests for CLI functionality."""

from unittest.mock import MagicMock

import click
import pytest
from click.testing import CliRunner

from dplprinter.cli import main, validate_target
from dplprinter.config import load_config, save_config
from dplprinter.errors import TransportError

START = b"\x02L\r"
END = b"E\r"
LABEL_AB = START + b"1011000" + b"00000000" + b"AB\r" + b"Q0001\r" + END


class TestTargetValidation:
    """Test CLI printer target validation."""

    def test_tcp_target(self):
        """Test a valid tcp target is returned unchanged."""
        assert validate_target(None, None, "tcp://10.0.0.5:9100") == "tcp://10.0.0.5:9100"

    def test_path_target(self):
        """Test device paths are accepted."""
        assert validate_target(None, None, "/dev/usb/lp0") == "/dev/usb/lp0"

    def test_none_target(self):
        """Test None is allowed (falls back to saved config)."""
        assert validate_target(None, None, None) is None

    def test_bad_tcp_target(self):
        """Test malformed tcp target raises click.BadParameter."""
        with pytest.raises(click.BadParameter) as exc_info:
            validate_target(None, None, "tcp://host:port")
        assert "Invalid TCP target" in str(exc_info.value)
        assert "tcp://host[:port]" in str(exc_info.value)

    def test_empty_target(self):
        """Test blank target raises click.BadParameter."""
        with pytest.raises(click.BadParameter):
            validate_target(None, None, "  ")


class TestEncodeCommand:
    """Test the encode command."""

    @pytest.fixture
    def runner(self):
        """Create CLI test runner."""
        return CliRunner()

    def test_hex_output(self, runner):
        """Test encoding a default text label."""
        result = runner.invoke(main, ["encode", "AB", "--hex"])
        assert result.exit_code == 0
        assert result.output.strip() == LABEL_AB.hex()

    def test_binary_output(self, runner):
        """Test raw bytes on stdout."""
        result = runner.invoke(main, ["encode", "AB"])
        assert result.exit_code == 0
        assert result.stdout_bytes == LABEL_AB

    def test_binary_output_with_debug(self, runner):
        """Test --debug leaves binary output untouched."""
        result = runner.invoke(main, ["--debug", "encode", "AB"])
        assert result.exit_code == 0
        assert result.stdout_bytes == LABEL_AB

    def test_position_in_mm(self, runner):
        """Test row and column are converted from millimeters."""
        result = runner.invoke(main, ["encode", "x", "--row", "25.4", "--col", "12.7", "--hex"])
        assert result.exit_code == 0
        assert (b"000" + b"0100" + b"0050" + b"x\r").hex() in result.output

    def test_metric(self, runner):
        """Test metric mode sends m and converts to 0.1 mm."""
        result = runner.invoke(main, ["encode", "x", "--metric", "--row", "25.4", "--hex"])
        assert result.exit_code == 0
        data = bytes.fromhex(result.output.strip())
        assert data.startswith(START + b"m\r")
        assert b"0254" + b"0000" + b"x\r" in data

    def test_setup_options(self, runner):
        """Test density, speed and copies."""
        result = runner.invoke(main, [
            "encode", "x", "--density", "12", "--speed", "101", "--copies", "3", "--hex",
        ])
        assert result.exit_code == 0
        data = bytes.fromhex(result.output.strip())
        assert data.startswith(START + b"H12\r" + b"P4\r")
        assert data.endswith(b"Q0003\r" + END)

    def test_scalable(self, runner):
        """Test scalable font options."""
        result = runner.invoke(main, [
            "encode", "Hi", "--scalable", "--bold", "--size", "24",
            "--rotation", "90", "--hexpand", "2", "--vexpand", "10", "--hex",
        ])
        assert result.exit_code == 0
        data = bytes.fromhex(result.output.strip())
        assert b"292JC24" + b"00000000" + b"Hi\r" in data

    def test_out_of_range_position(self, runner):
        """Test a position beyond the row field is reported."""
        result = runner.invoke(main, ["encode", "x", "--row", "3000"])
        assert result.exit_code == 1
        assert "Encoding error" in result.output

    def test_density_range_checked(self, runner):
        """Test click rejects density above 30."""
        result = runner.invoke(main, ["encode", "x", "--density", "31"])
        assert result.exit_code != 0


class TestPrintCommand:
    """Test the print command."""

    @pytest.fixture
    def runner(self, config_dir):
        """Create CLI test runner with an isolated config."""
        return CliRunner()

    def test_print_to_file(self, runner, tmp_path):
        """Test printing to a device path."""
        device = tmp_path / "lp0"
        result = runner.invoke(main, ["print", "AB", "--target", str(device)])

        assert result.exit_code == 0
        assert "Print complete!" in result.output
        data = device.read_bytes()
        assert data.startswith(START)
        assert data.endswith(END)

    def test_saves_target(self, runner, tmp_path):
        """Test a successful print saves the target."""
        device = tmp_path / "lp0"
        runner.invoke(main, ["print", "AB", "--target", str(device), "--metric"])

        config = load_config()
        assert config.target == str(device)
        assert config.metric is True

    def test_uses_saved_target(self, runner, tmp_path):
        """Test the saved target is used when --target is omitted."""
        device = tmp_path / "lp0"
        save_config(str(device), metric=True)

        result = runner.invoke(main, ["print", "AB"])

        assert result.exit_code == 0
        assert f"Using saved printer: {device}" in result.output
        assert device.read_bytes().startswith(START + b"m\r")

    def test_no_target(self, runner):
        """Test failure when no target is given or saved."""
        result = runner.invoke(main, ["print", "AB"])
        assert result.exit_code == 1
        assert "No printer target" in result.output

    def test_rejects_invalid_target(self, runner):
        """Test malformed tcp target is rejected before printing."""
        result = runner.invoke(main, ["print", "AB", "--target", "tcp://:abc"])
        assert result.exit_code != 0
        assert "Invalid TCP target" in result.output

    def test_transport_error(self, runner, mocker):
        """Test transport failure is reported and nothing is saved."""
        sink = MagicMock()
        sink.write.side_effect = TransportError("connection reset")
        mocker.patch("dplprinter.cli.open_sink", return_value=sink)

        result = runner.invoke(main, ["print", "AB", "--target", "tcp://10.0.0.5"])

        assert result.exit_code == 1
        assert "Transport error: connection reset" in result.output
        assert load_config() is None
        sink.close.assert_called_once()

    def test_network_target(self, runner, mocker):
        """Test tcp targets open a network sink with the timeout."""
        sink = MagicMock()
        sink.write.side_effect = lambda data: len(data)
        open_sink = mocker.patch("dplprinter.cli.open_sink", return_value=sink)

        result = runner.invoke(main, [
            "print", "AB", "--target", "tcp://10.0.0.5:9100", "--timeout", "2",
        ])

        assert result.exit_code == 0
        open_sink.assert_called_once_with("tcp://10.0.0.5:9100", timeout=2.0)
        written = b"".join(c.args[0] for c in sink.write.call_args_list)
        assert written.startswith(START)

    def test_debug_flag(self, runner, tmp_path):
        """Test --debug shows transmitted commands."""
        device = tmp_path / "lp0"
        result = runner.invoke(main, ["--debug", "print", "AB", "--target", str(device)])
        assert result.exit_code == 0
        assert "[DPL] TX: 024c0d" in result.output

    def test_stdout_target_carries_only_label(self, runner):
        """Test '-' writes exactly the label bytes and is not remembered."""
        result = runner.invoke(main, ["print", "AB", "--target", "-"])

        assert result.exit_code == 0
        assert result.stdout_bytes == LABEL_AB
        assert "Print complete!" in result.stderr
        assert load_config() is None

    def test_stdout_target_with_debug(self, runner):
        """Test --debug does not mix log lines into stdout labels."""
        result = runner.invoke(main, ["--debug", "print", "AB", "-t", "-"])
        assert result.exit_code == 0
        assert result.stdout_bytes == LABEL_AB

    def test_rejected_field_sends_nothing(self, runner, tmp_path):
        """Test a label with an invalid field never reaches the device."""
        device = tmp_path / "lp0"
        result = runner.invoke(main, ["print", "AB", "--row", "3000", "-t", str(device)])

        assert result.exit_code == 1
        assert "Printer error" in result.output
        assert not device.exists()
        assert load_config() is None

    def test_saved_metric_is_per_target(self, runner, tmp_path):
        """Test units saved for one target don't leak to another."""
        metric_device = tmp_path / "lp0"
        imperial_device = tmp_path / "lp1"
        save_config(str(metric_device), metric=True)
        save_config(str(imperial_device), metric=False)

        runner.invoke(main, ["print", "AB", "-t", str(metric_device)])
        runner.invoke(main, ["print", "AB", "-t", str(imperial_device)])

        assert metric_device.read_bytes().startswith(START + b"m\r")
        assert not imperial_device.read_bytes().startswith(START + b"m\r")


class TestRawCommand:
    """Test the raw command."""

    @pytest.fixture
    def runner(self, config_dir):
        """Create CLI test runner with an isolated config."""
        return CliRunner()

    def test_invalid_hex(self, runner):
        """Test invalid hex data is rejected."""
        result = runner.invoke(main, ["raw", "zz", "--target", "/dev/null"])
        assert result.exit_code == 1
        assert "Invalid hex data!" in result.output

    def test_sends_bytes(self, runner, tmp_path):
        """Test raw bytes are written as given."""
        device = tmp_path / "lp0"
        result = runner.invoke(main, ["raw", "024c0d450d", "--target", str(device)])
        assert result.exit_code == 0
        assert "Sending: 024c0d450d" in result.output
        assert device.read_bytes() == b"\x02L\rE\r"

    def test_stdout_target(self, runner):
        """Test raw bytes on stdout are not mixed with status or debug text."""
        result = runner.invoke(main, ["raw", "024c0d", "-t", "-"])
        assert result.exit_code == 0
        assert result.stdout_bytes == b"\x02L\r"
        assert "Sending: 024c0d" in result.stderr


class TestMeasureCommand:
    """Test the measure command."""

    def test_imperial(self):
        """Test default conversion."""
        result = CliRunner().invoke(main, ["measure", "25.4"])
        assert result.exit_code == 0
        assert result.output.strip() == "100 (0.01 in)"

    def test_metric(self):
        """Test metric conversion."""
        result = CliRunner().invoke(main, ["measure", "25.4", "--metric"])
        assert result.output.strip() == "254 (0.1 mm)"


class TestConfigCommand:
    """Test the config command."""

    @pytest.fixture
    def runner(self, config_dir):
        """Create CLI test runner with an isolated config."""
        return CliRunner()

    def test_show_empty(self, runner):
        """Test output with nothing saved."""
        result = runner.invoke(main, ["config"])
        assert "No saved printer." in result.output

    def test_show_saved(self, runner):
        """Test output with a saved target."""
        save_config("tcp://10.0.0.5", metric=True)
        result = runner.invoke(main, ["config"])
        assert "Target: tcp://10.0.0.5 (metric)" in result.output

    def test_clear(self, runner):
        """Test clearing the saved target."""
        save_config("tcp://10.0.0.5")
        result = runner.invoke(main, ["config", "--clear"])
        assert "Saved printer cleared." in result.output
        assert load_config() is None
