"""Tests for toolchain process execution."""

from unittest.mock import MagicMock, patch

import pytest

from sketchbridge.output import OutputChannel
from sketchbridge.process import ProcessFailure, spawn


def _proc(lines, returncode):
    proc = MagicMock()
    proc.stdout = iter(lines)
    proc.returncode = returncode
    return proc


class TestSpawn:
    @patch("sketchbridge.process.subprocess.Popen")
    def test_success_returns_zero(self, mock_popen):
        mock_popen.return_value = _proc(["ok\n"], 0)
        assert spawn("arduino", ["--verify", "x.ino"]) == 0
        argv = mock_popen.call_args[0][0]
        assert argv == ["arduino", "--verify", "x.ino"]

    @patch("sketchbridge.process.subprocess.Popen")
    def test_streams_output_lines(self, mock_popen):
        mock_popen.return_value = _proc(["Compiling...\n", "Done\r\n"], 0)
        channel = OutputChannel()
        spawn("arduino", [], channel)
        assert channel.lines == ["Compiling...", "Done"]

    @patch("sketchbridge.process.subprocess.Popen")
    def test_non_zero_exit_raises_with_code(self, mock_popen):
        mock_popen.return_value = _proc([], 3)
        with pytest.raises(ProcessFailure) as exc_info:
            spawn("arduino", ["--upload"])
        assert exc_info.value.exit_code == 3
        assert "code=3" in str(exc_info.value)

    def test_launch_failure_raises(self, tmp_path):
        with pytest.raises(ProcessFailure) as exc_info:
            spawn(tmp_path / "no-such-binary", [])
        assert exc_info.value.exit_code == -1
        assert isinstance(exc_info.value.__cause__, OSError)
