"""Arduino IDE command-line orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from sketchbridge.boards import BoardManager
from sketchbridge.config import DeviceContext
from sketchbridge.cpp_config import CPP_CONFIG_FILE, reconcile
from sketchbridge.output import OutputChannel, notify_user_error
from sketchbridge.preferences import PreferenceStore
from sketchbridge.process import ProcessFailure, spawn
from sketchbridge.serial.monitor import SerialMonitor
from sketchbridge.settings import ArduinoSettings
from sketchbridge.toolchain import Board, NoTargetSelected, resolve_target
from sketchbridge.util import FilesystemError, directory_exists, normalize_path, rmdir_recursively

logger = logging.getLogger(__name__)

NO_PORT_SELECTED = "Please select the serial port first."


def _versioned(name: str, version: str) -> str:
    return f"{name}:{version}" if version else name


def pref_args(key: str, value: str) -> list[str]:
    return ["--pref", f"{key}={value}"]


def install_board_args(package_name: str, arch: str, version: str = "") -> list[str]:
    return ["--install-boards", _versioned(f"{package_name}:{arch}", version)]


def install_library_args(lib_name: str, version: str = "") -> list[str]:
    return ["--install-library", _versioned(lib_name, version)]


def sketch_args(
    action: str,
    target: str,
    port: str | None,
    sketch_path: Path | str,
    verbose: bool = False,
) -> list[str]:
    """Arguments for ``--verify`` or ``--upload`` of a sketch."""
    args = [f"--{action}", "--board", target]
    if port:
        args += ["--port", port]
    args.append(str(sketch_path))
    if verbose:
        args.append("--verbose")
    return args


@dataclass
class BootstrapResult:
    """Outcome of a first-run index bootstrap.

    ``status`` is "skipped" (index already present), "ok", or "ignored"
    when the toolchain failed; ``cause`` then holds the suppressed failure.
    """
    status: str
    cause: Exception | None = None

    @property
    def attempted(self) -> bool:
        return self.status != "skipped"


class ArduinoApp:
    """Runs the Arduino IDE binary on behalf of a project."""

    def __init__(
        self,
        settings: ArduinoSettings,
        board_manager: BoardManager,
        project_dir: Path | str,
        device: DeviceContext | None = None,
        output: OutputChannel | None = None,
        monitor: SerialMonitor | None = None,
    ):
        self._settings = settings
        self._board_manager = board_manager
        self.project_dir = Path(project_dir)
        self.device = device or DeviceContext()
        self.output = output or OutputChannel()
        self.monitor = monitor or SerialMonitor()
        self._preferences: PreferenceStore | None = None

    @property
    def settings(self) -> ArduinoSettings:
        return self._settings

    @property
    def board_manager(self) -> BoardManager:
        return self._board_manager

    @property
    def preferences(self) -> PreferenceStore:
        if self._preferences is None:
            self._preferences = PreferenceStore(self._settings.package_path / "preferences.txt")
        return self._preferences

    # -- Bootstrap ------------------------------------------------------------

    def initialize(self, force: bool = False) -> BootstrapResult:
        """Populate the board package index by installing a dummy package."""
        if not force and (self._settings.package_path / "package_index.json").exists():
            return BootstrapResult("skipped")
        return self._bootstrap(lambda: self.install_board("dummy", "dummy", "", False))

    def initialize_library(self) -> BootstrapResult:
        """Populate the library index by installing a dummy library."""
        if (self._settings.package_path / "library_index.json").exists():
            return BootstrapResult("skipped")
        return self._bootstrap(lambda: self.install_library("dummy", "", False))

    def _bootstrap(self, install) -> BootstrapResult:
        try:
            install()
        except ProcessFailure as e:
            # The dummy install always fails once the index is fetched; offline fails too.
            logger.info("Index bootstrap ignored failure: %s", e)
            return BootstrapResult("ignored", e)
        return BootstrapResult("ok")

    # -- Toolchain operations ---------------------------------------------------

    def set_pref(self, key: str, value: str) -> bool:
        """Write an IDE preference. Best effort: failures are logged, not raised."""
        try:
            spawn(self._settings.command_path, pref_args(key, value))
        except ProcessFailure as e:
            logger.warning("Could not set preference %s: %s", key, e)
            return False
        if self._preferences is not None:
            self._preferences.reload()
        return True

    def verify(self, board: Board | None = None) -> bool:
        """Compile the sketch. Returns False when no board is selected."""
        return self._run_sketch("verify", board)

    def upload(self, board: Board | None = None) -> bool:
        """Compile and upload the sketch, closing any monitor on the port first."""
        return self._run_sketch("upload", board)

    def _run_sketch(self, action: str, board: Board | None) -> bool:
        board = board or self._board_manager.current_board
        try:
            target = resolve_target(board)
        except NoTargetSelected:
            return False

        sketch = self.device.sketch
        port = self.device.port
        if action == "upload":
            if not port:
                notify_user_error("uploadPortError", NO_PORT_SELECTED)
                return False
            self.output.show()
            self.output.start(f"Upload sketch - {sketch}")
            if self.monitor.close(port):
                self.output.append_line(f"Closed serial monitor on {port}")
        else:
            self.output.start(f"Verify sketch - {sketch}")
            self.output.show()

        args = sketch_args(action, target, port, self.project_dir / sketch, self._settings.verbose)
        try:
            spawn(self._settings.command_path, args, self.output)
        except ProcessFailure as e:
            self.output.error(f"Exit with code={e.exit_code}")
            raise
        if action == "upload":
            self.output.end(f"Uploaded the sketch: {sketch}")
        else:
            self.output.end(f"Finished verify sketch - {sketch}")
        return True

    def install_board(
        self, package_name: str, arch: str, version: str = "", show_output: bool = True
    ) -> None:
        """Install a board package with ``--install-boards``."""
        self.output.show()
        self.output.start(f"Install package - {package_name}...")
        self._spawn_or_report(install_board_args(package_name, arch, version), show_output)
        self.output.end(f"Installed board package - {package_name}")

    def uninstall_board(self, board_name: str, package_path: Path | str) -> None:
        """Remove an installed board package directory."""
        self.output.start(f"Uninstall board package - {board_name}...")
        self._remove_or_report(package_path)
        self.output.end(f"Uninstalled board package - {board_name}")

    def install_library(self, lib_name: str, version: str = "", show_output: bool = True) -> None:
        """Install a library with ``--install-library``."""
        self.output.show()
        self.output.start(f"Install library - {lib_name}")
        self._spawn_or_report(install_library_args(lib_name, version), show_output)
        self.output.end(f"Installed library - {lib_name}")

    def uninstall_library(self, lib_name: str, lib_path: Path | str) -> None:
        """Remove an installed library directory."""
        self.output.start(f"Remove library - {lib_name}")
        self._remove_or_report(lib_path)
        self.output.end(f"Removed library - {lib_name}")

    def _remove_or_report(self, path: Path | str) -> None:
        try:
            rmdir_recursively(path)
        except FilesystemError as e:
            self.output.error(e.message)
            raise

    def _spawn_or_report(self, args: list[str], show_output: bool) -> None:
        try:
            spawn(self._settings.command_path, args, self.output if show_output else None)
        except ProcessFailure as e:
            self.output.error(f"Exit with code={e.exit_code}")
            raise

    # -- Library locations ------------------------------------------------------

    def sketchbook_path(self) -> Path:
        """Sketchbook directory from the IDE preferences."""
        return Path(self.preferences.get("sketchbook.path") or Path.home() / "Arduino")

    def library_path(self, lib_name: str) -> Path:
        return self.sketchbook_path() / "libraries" / lib_name

    # -- C/C++ include paths ----------------------------------------------------

    def add_lib_path(self, library_path: Path | str | None = None) -> list[str]:
        """Add a library path, or the board's core paths, to the C/C++ config."""
        if library_path:
            lib_paths = [library_path]
        else:
            lib_paths = self.default_package_lib_paths()
        return reconcile(self.project_dir / CPP_CONFIG_FILE, lib_paths)

    def default_package_lib_paths(self) -> list[str]:
        """Subdirectories of the selected platform's cores directory."""
        board = self._board_manager.current_board
        if board is None:
            return []
        cores = board.platform.root_board_path / "cores"
        if not directory_exists(cores):
            return []
        return [normalize_path(p) for p in sorted(cores.iterdir()) if p.is_dir()]
