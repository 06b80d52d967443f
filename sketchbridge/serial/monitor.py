"""Serial monitor sessions, closed before an upload takes the port."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterator

import serial
from serial.tools.list_ports import comports

logger = logging.getLogger(__name__)

DEFAULT_BAUD_RATE = 115200


@dataclass
class PortInfo:
    device: str
    description: str
    hwid: str


class SerialError(Exception):
    """Structured serial error with exit code."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


def list_serial_ports() -> list[PortInfo]:
    """List available serial ports."""
    return [PortInfo(device=p.device, description=p.description, hwid=p.hwid) for p in comports()]


def open_serial(port: str, baud_rate: int, timeout: float = 1) -> serial.Serial:
    """Open a serial port with structured error handling.

    Exit codes:
        2: port not found / device disconnected
        3: port busy
        4: permission denied
    """
    try:
        return serial.Serial(port, baud_rate, timeout=timeout)
    except PermissionError as e:
        raise SerialError(str(e), exit_code=4) from e
    except serial.SerialException as e:
        msg = str(e).lower()
        if "busy" in msg or "resource" in msg:
            raise SerialError(str(e), exit_code=3) from e
        raise SerialError(str(e), exit_code=2) from e


class SerialMonitor:
    """Open monitor sessions, keyed by port."""

    def __init__(self):
        self._sessions: dict[str, serial.Serial] = {}

    def is_open(self, port: str) -> bool:
        return port in self._sessions

    def open(self, port: str, baud_rate: int = DEFAULT_BAUD_RATE) -> serial.Serial:
        if port in self._sessions:
            return self._sessions[port]
        ser = open_serial(port, baud_rate)
        self._sessions[port] = ser
        logger.debug("Opened serial monitor on %s at %d baud", port, baud_rate)
        return ser

    def close(self, port: str | None) -> bool:
        """Close the session on ``port``. Returns False if none was open."""
        ser = self._sessions.pop(port, None) if port else None
        if ser is None:
            return False
        ser.close()
        logger.debug("Closed serial monitor on %s", port)
        return True

    def close_all(self) -> None:
        for port in list(self._sessions):
            self.close(port)

    def read_lines(self, port: str, duration: float) -> Iterator[str]:
        """Yield decoded lines from an open session for ``duration`` seconds."""
        ser = self._sessions[port]
        start = time.monotonic()
        while time.monotonic() - start < duration:
            raw = ser.readline()
            if raw:
                yield raw.decode("utf-8", errors="ignore").rstrip("\r\n")
