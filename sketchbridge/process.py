"""Run the external toolchain binary and classify its outcome."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from sketchbridge.output import OutputChannel

logger = logging.getLogger(__name__)


class ProcessFailure(Exception):
    """The toolchain exited non-zero or could not be launched.

    ``exit_code`` is the process return code, or -1 when launching failed.
    """

    def __init__(self, exit_code: int, message: str = ""):
        super().__init__(message or f"Exit with code={exit_code}")
        self.exit_code = exit_code
        self.message = message or f"Exit with code={exit_code}"


def spawn(
    command: Path | str,
    args: list[str],
    output: OutputChannel | None = None,
) -> int:
    """Run ``command`` with ``args`` to completion.

    Combined stdout/stderr is streamed line by line to ``output`` when given.
    There is no timeout: a hung toolchain blocks the caller.
    """
    argv = [str(command), *args]
    logger.debug("Running %s", argv)
    try:
        proc = subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )
    except OSError as e:
        raise ProcessFailure(-1, f"Could not launch {command}: {e}") from e

    with proc:
        for line in proc.stdout:
            if output is not None:
                output.append_line(line.rstrip("\r\n"))
    code = proc.returncode
    if code != 0:
        logger.debug("%s exited with code=%d", command, code)
        raise ProcessFailure(code)
    return code
