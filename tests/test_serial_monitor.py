"""Tests for serial monitor sessions."""

from unittest.mock import MagicMock, patch

import pytest
import serial

from sketchbridge.serial.monitor import SerialError, SerialMonitor, list_serial_ports, open_serial


class TestListSerialPorts:
    @patch("sketchbridge.serial.monitor.comports")
    def test_list_ports(self, mock_comports):
        port = MagicMock()
        port.device = "/dev/ttyACM0"
        port.description = "Arduino Uno"
        port.hwid = "USB VID:PID=2341:0043"
        mock_comports.return_value = [port]
        result = list_serial_ports()
        assert len(result) == 1
        assert result[0].device == "/dev/ttyACM0"


class TestOpenSerial:
    @patch("sketchbridge.serial.monitor.serial.Serial")
    def test_open_success(self, mock_serial_class):
        open_serial("/dev/ttyACM0", 9600)
        mock_serial_class.assert_called_once_with("/dev/ttyACM0", 9600, timeout=1)

    @patch("sketchbridge.serial.monitor.serial.Serial")
    def test_not_found(self, mock_serial_class):
        mock_serial_class.side_effect = serial.SerialException("could not open port")
        with pytest.raises(SerialError) as exc_info:
            open_serial("/dev/nonexistent", 9600)
        assert exc_info.value.exit_code == 2

    @patch("sketchbridge.serial.monitor.serial.Serial")
    def test_busy(self, mock_serial_class):
        mock_serial_class.side_effect = serial.SerialException("Device or resource busy")
        with pytest.raises(SerialError) as exc_info:
            open_serial("/dev/ttyACM0", 9600)
        assert exc_info.value.exit_code == 3

    @patch("sketchbridge.serial.monitor.serial.Serial")
    def test_permission(self, mock_serial_class):
        mock_serial_class.side_effect = PermissionError("denied")
        with pytest.raises(SerialError) as exc_info:
            open_serial("/dev/ttyACM0", 9600)
        assert exc_info.value.exit_code == 4


class TestSerialMonitor:
    @patch("sketchbridge.serial.monitor.serial.Serial")
    def test_open_and_close(self, mock_serial_class):
        sessions = SerialMonitor()
        ser = sessions.open("/dev/ttyACM0")
        assert sessions.is_open("/dev/ttyACM0")
        assert sessions.close("/dev/ttyACM0") is True
        ser.close.assert_called_once()
        assert not sessions.is_open("/dev/ttyACM0")

    @patch("sketchbridge.serial.monitor.serial.Serial")
    def test_open_twice_reuses_session(self, mock_serial_class):
        sessions = SerialMonitor()
        assert sessions.open("COM3") is sessions.open("COM3")
        mock_serial_class.assert_called_once()

    def test_close_without_session(self):
        sessions = SerialMonitor()
        assert sessions.close("/dev/ttyACM0") is False
        assert sessions.close(None) is False

    @patch("sketchbridge.serial.monitor.serial.Serial")
    def test_close_all(self, mock_serial_class):
        sessions = SerialMonitor()
        sessions.open("COM3")
        sessions.open("COM4")
        sessions.close_all()
        assert not sessions.is_open("COM3")
        assert not sessions.is_open("COM4")

    @patch("sketchbridge.serial.monitor.time.monotonic", side_effect=[0, 0, 0, 0, 5])
    @patch("sketchbridge.serial.monitor.serial.Serial")
    def test_read_lines(self, mock_serial_class, mock_time):
        mock_serial_class.return_value.readline.side_effect = [b"hello\r\n", b"", b"world\n"]
        sessions = SerialMonitor()
        sessions.open("COM3")
        assert list(sessions.read_lines("COM3", duration=1)) == ["hello", "world"]
