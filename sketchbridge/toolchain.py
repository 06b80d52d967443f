"""Board descriptors and toolchain target strings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from sketchbridge.output import NO_BOARD_SELECTED, notify_user_error


class NoTargetSelected(Exception):
    """Raised when an operation needs a board but none is selected."""

    def __init__(self, message: str = NO_BOARD_SELECTED, exit_code: int = 1):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


@dataclass(frozen=True)
class Package:
    """A board package vendor (e.g. ``arduino``, ``esp32``)."""
    name: str


@dataclass(frozen=True)
class Platform:
    """An installed hardware platform of a package."""
    package: Package
    architecture: str
    root_board_path: Path
    version: str = ""


@dataclass(frozen=True)
class Board:
    """A selectable target: a board id on an installed platform."""
    platform: Platform
    board: str
    name: str = ""


def resolve_target(
    board: Board | None,
    notify: Callable[[str, str], None] = notify_user_error,
) -> str:
    """Return the ``package:architecture:board`` string for a board.

    When no board is selected the user is notified and NoTargetSelected is
    raised. The combination is not validated; the toolchain reports unknown
    targets itself.
    """
    if board is None:
        notify("getBoardDescriptorError", NO_BOARD_SELECTED)
        raise NoTargetSelected()
    return f"{board.platform.package.name}:{board.platform.architecture}:{board.board}"
