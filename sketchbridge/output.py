"""Output channel for toolchain progress and user-facing notifications."""

from __future__ import annotations

import logging

import click

logger = logging.getLogger(__name__)

NO_BOARD_SELECTED = "Please select the board type first."
ARDUINO_FILE_ERROR = "The C/C++ configuration file is not valid JSON. Fix or remove it and try again."


class OutputChannel:
    """Line-oriented sink for toolchain runs.

    Progress messages (start/end/error) are always echoed. Raw toolchain
    output appended through ``append_line`` is echoed only after ``show()``
    and goes to the debug log otherwise.
    """

    def __init__(self, name: str = "Arduino"):
        self.name = name
        self.visible = False
        self.lines: list[str] = []

    def show(self) -> None:
        self.visible = True

    def start(self, message: str) -> None:
        self._emit(f"[Starting] {message}")

    def end(self, message: str) -> None:
        self._emit(f"[Done] {message}")

    def error(self, message: str) -> None:
        line = f"[Error] {message}"
        self.lines.append(line)
        logger.error("%s: %s", self.name, message)
        click.echo(line, err=True)

    def append_line(self, line: str) -> None:
        self.lines.append(line)
        if self.visible:
            click.echo(line)
        else:
            logger.debug("%s: %s", self.name, line)

    def _emit(self, line: str) -> None:
        self.lines.append(line)
        logger.info("%s: %s", self.name, line)
        click.echo(line)


def notify_user_error(code: str, message: str) -> None:
    """Report an expected, recoverable error to the user."""
    logger.warning("%s: %s", code, message)
    click.echo(f"Error: {message}", err=True)
