"""Installed board platforms and the current board selection."""

from __future__ import annotations

import logging
from pathlib import Path

from sketchbridge.settings import ArduinoSettings
from sketchbridge.toolchain import Board, Package, Platform

logger = logging.getLogger(__name__)


class BoardNotFoundError(Exception):
    """Raised when a board selection does not match an installed platform."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


def _version_key(version: str) -> tuple:
    parts = []
    for part in version.split("."):
        parts.append((0, int(part), "") if part.isdigit() else (1, 0, part))
    return tuple(parts)


def parse_boards_txt(path: Path) -> dict[str, str]:
    """Return ``{board_id: display name}`` from a platform's boards.txt."""
    names: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        board_id, _, prop = key.partition(".")
        if prop == "name":
            names[board_id] = value.strip()
    return names


class BoardManager:
    """Finds installed platforms and holds the selected board."""

    def __init__(self, settings: ArduinoSettings):
        self._settings = settings
        self._current_board: Board | None = None

    @property
    def current_board(self) -> Board | None:
        return self._current_board

    @current_board.setter
    def current_board(self, board: Board | None) -> None:
        self._current_board = board

    def installed_platforms(self) -> list[Platform]:
        """All installed platforms, highest version per package:architecture."""
        found: dict[tuple[str, str], Platform] = {}

        if self._settings.arduino_path:
            bundled = self._settings.arduino_path / "hardware"
            if bundled.is_dir():
                for pkg_dir in sorted(p for p in bundled.iterdir() if p.is_dir()):
                    for arch_dir in sorted(p for p in pkg_dir.iterdir() if p.is_dir()):
                        if (arch_dir / "boards.txt").exists():
                            found[(pkg_dir.name, arch_dir.name)] = Platform(
                                package=Package(pkg_dir.name),
                                architecture=arch_dir.name,
                                root_board_path=arch_dir,
                            )

        packages = self._settings.package_path / "packages"
        if packages.is_dir():
            for pkg_dir in sorted(p for p in packages.iterdir() if p.is_dir()):
                hardware = pkg_dir / "hardware"
                if not hardware.is_dir():
                    continue
                for arch_dir in sorted(p for p in hardware.iterdir() if p.is_dir()):
                    versions = [v for v in arch_dir.iterdir() if (v / "boards.txt").exists()]
                    if not versions:
                        continue
                    latest = max(versions, key=lambda v: _version_key(v.name))
                    found[(pkg_dir.name, arch_dir.name)] = Platform(
                        package=Package(pkg_dir.name),
                        architecture=arch_dir.name,
                        root_board_path=latest,
                        version=latest.name,
                    )

        return list(found.values())

    def find_platform(self, package: str, architecture: str) -> Platform | None:
        for platform in self.installed_platforms():
            if platform.package.name == package and platform.architecture == architecture:
                return platform
        return None

    def removable_platform(self, package: str, architecture: str) -> Platform:
        """Installed platform that may be deleted.

        Platforms bundled with the IDE (no version, outside the package path)
        are never removable.
        """
        platform = self.find_platform(package, architecture)
        if platform is None:
            raise BoardNotFoundError(f"Platform {package}:{architecture} is not installed.")
        if not platform.version:
            raise BoardNotFoundError(
                f"Platform {package}:{architecture} is bundled with the Arduino IDE and cannot be uninstalled."
            )
        return platform

    def list_boards(self, platform: Platform) -> list[Board]:
        boards_txt = platform.root_board_path / "boards.txt"
        if not boards_txt.exists():
            return []
        return [
            Board(platform=platform, board=board_id, name=name)
            for board_id, name in parse_boards_txt(boards_txt).items()
        ]

    def select(self, selection: str) -> Board:
        """Select a board from a ``package:architecture:board`` string."""
        parts = selection.split(":")
        if len(parts) < 3 or not all(parts[:3]):
            raise BoardNotFoundError(
                f"Invalid board: {selection}. Expected package:architecture:board."
            )
        package, architecture, board_id = parts[:3]

        platform = self.find_platform(package, architecture)
        if platform is None:
            raise BoardNotFoundError(
                f"Platform {package}:{architecture} is not installed. "
                f"Use 'sketchbridge install-board {package} {architecture}'."
            )

        for board in self.list_boards(platform):
            if board.board == board_id:
                self._current_board = board
                logger.debug("Selected board %s", selection)
                return board
        raise BoardNotFoundError(f"Unknown board: {board_id} on {package}:{architecture}.")
