"""CLI entry point for sketchbridge."""

import logging
from pathlib import Path

import click

from sketchbridge.arduino import ArduinoApp
from sketchbridge.boards import BoardManager, BoardNotFoundError
from sketchbridge.config import (
    get_config_value, list_config, load_device_context, set_config_value,
)
from sketchbridge.cpp_config import ConfigParseError
from sketchbridge.output import OutputChannel
from sketchbridge.preferences import PreferencesError
from sketchbridge.process import ProcessFailure
from sketchbridge.serial.monitor import (
    DEFAULT_BAUD_RATE, SerialError, SerialMonitor, list_serial_ports,
)
from sketchbridge.settings import load_settings
from sketchbridge.util import FilesystemError

_HANDLED = (FilesystemError, PreferencesError, BoardNotFoundError, SerialError)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--project", "project_dir", type=click.Path(file_okay=False), default=".",
              help="Project directory (default: current directory).")
@click.pass_context
def main(ctx, verbose, project_dir):
    """Drive the Arduino toolchain and keep C/C++ include paths in sync."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = Path(project_dir)


def _build_app(project_dir: Path, select: bool = True) -> ArduinoApp:
    """Build an ArduinoApp, selecting the board named in the project file."""
    try:
        settings = load_settings(project_dir)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    device = load_device_context(project_dir)
    manager = BoardManager(settings)
    if select and device.board:
        _run(lambda: manager.select(device.board))
    return ArduinoApp(settings, manager, project_dir, device=device, output=OutputChannel())


def _run(operation):
    """Run an operation, turning structured errors into exit codes."""
    try:
        return operation()
    except ProcessFailure as e:
        if e.exit_code > 0:
            raise SystemExit(e.exit_code)
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)
    except ConfigParseError as e:
        # Already reported when the file was read.
        raise SystemExit(e.exit_code)
    except _HANDLED as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(e.exit_code)


@main.command()
@click.option("--force", is_flag=True, help="Refresh the board index even if present.")
@click.pass_obj
def init(project_dir, force):
    """Download the board and library indexes on first run."""
    app = _build_app(project_dir, select=False)
    for label, result in (("Board index", app.initialize(force)),
                          ("Library index", app.initialize_library())):
        if result.status == "ignored":
            click.echo(f"{label}: bootstrap failed ({result.cause}); continuing.")
        else:
            click.echo(f"{label}: {result.status}")


@main.command()
@click.pass_obj
def verify(project_dir):
    """Compile the sketch for the selected board."""
    app = _build_app(project_dir)
    if not _run(app.verify):
        raise SystemExit(1)


@main.command()
@click.option("--port", type=str, help="Serial port (overrides device.port).")
@click.pass_obj
def upload(project_dir, port):
    """Compile and upload the sketch to the selected board.

    A monitor opened by another sketchbridge process is not closed
    automatically; stop it before uploading.
    """
    app = _build_app(project_dir)
    if port:
        app.device.port = port
    if not _run(app.upload):
        raise SystemExit(1)


@main.command("select")
@click.argument("board")
@click.pass_obj
def select_board(project_dir, board):
    """Select BOARD (package:architecture:board) and add its core headers."""
    app = _build_app(project_dir, select=False)
    selected = _run(lambda: app.board_manager.select(board))
    set_config_value(project_dir, "device.board", board)
    added = _run(app.add_lib_path)
    click.echo(f"Selected {selected.name or selected.board}. Added {len(added)} include path(s).")


@main.command()
@click.pass_obj
def boards(project_dir):
    """List boards of the installed platforms."""
    app = _build_app(project_dir, select=False)
    platforms = app.board_manager.installed_platforms()
    if not platforms:
        click.echo("No board platforms installed.")
        return
    for platform in platforms:
        version = f" ({platform.version})" if platform.version else ""
        click.echo(f"  {platform.package.name}:{platform.architecture}{version}:")
        for b in app.board_manager.list_boards(platform):
            fqbn = f"{platform.package.name}:{platform.architecture}:{b.board}"
            click.echo(f"    {fqbn:<40} {b.name}")


@main.command("install-board")
@click.argument("package")
@click.argument("arch")
@click.argument("version", required=False, default="")
@click.pass_obj
def install_board(project_dir, package, arch, version):
    """Install a board package."""
    app = _build_app(project_dir, select=False)
    _run(lambda: app.install_board(package, arch, version))


@main.command("uninstall-board")
@click.argument("package")
@click.argument("arch")
@click.pass_obj
def uninstall_board(project_dir, package, arch):
    """Remove an installed board package."""
    app = _build_app(project_dir, select=False)
    platform = _run(lambda: app.board_manager.removable_platform(package, arch))
    _run(lambda: app.uninstall_board(f"{package}:{arch}", platform.root_board_path))


@main.command("install-library")
@click.argument("name")
@click.argument("version", required=False, default="")
@click.pass_obj
def install_library(project_dir, name, version):
    """Install a library and add it to the include paths."""
    app = _build_app(project_dir)
    _run(lambda: app.install_library(name, version))
    lib_path = _run(lambda: app.library_path(name))
    if lib_path.is_dir():
        _run(lambda: app.add_lib_path(lib_path))


@main.command("uninstall-library")
@click.argument("name")
@click.pass_obj
def uninstall_library(project_dir, name):
    """Remove an installed library from the sketchbook."""
    app = _build_app(project_dir)
    lib_path = _run(lambda: app.library_path(name))
    _run(lambda: app.uninstall_library(name, lib_path))


@main.command("add-lib-path")
@click.argument("path", required=False)
@click.pass_obj
def add_lib_path(project_dir, path):
    """Add PATH (default: the selected board's cores) to the C/C++ include paths."""
    app = _build_app(project_dir)
    added = _run(lambda: app.add_lib_path(path))
    if added:
        for p in added:
            click.echo(f"Added {p}")
    else:
        click.echo("Include paths already up to date.")


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

@main.group()
def pref():
    """Read and write Arduino IDE preferences."""
    pass


@pref.command("get")
@click.argument("key")
@click.pass_obj
def pref_get(project_dir, key):
    """Print a preference value."""
    app = _build_app(project_dir, select=False)
    value = _run(lambda: app.preferences.get(key))
    if value is None:
        click.echo(f"Error: Preference not set: {key}", err=True)
        raise SystemExit(1)
    click.echo(value)


@pref.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def pref_set(project_dir, key, value):
    """Set a preference through the IDE."""
    app = _build_app(project_dir, select=False)
    if not app.set_pref(key, value):
        click.echo(f"Error: Could not set preference {key}", err=True)
        raise SystemExit(1)


@pref.command("list")
@click.pass_obj
def pref_list(project_dir):
    """List all preferences."""
    app = _build_app(project_dir, select=False)
    prefs = _run(lambda: app.preferences.preferences)
    for k in sorted(prefs):
        click.echo(f"{k}={prefs[k]}")


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------

@main.group()
def config():
    """Read and write sketchbridge.toml."""
    pass


@config.command("get")
@click.argument("key")
@click.pass_obj
def config_get(project_dir, key):
    """Print a config value (dotted key, e.g. device.port)."""
    value = get_config_value(project_dir, key)
    if value is None:
        click.echo(f"Error: Key not found: {key}", err=True)
        raise SystemExit(1)
    click.echo(value)


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def config_set(project_dir, key, value):
    """Set a config value (dotted key, e.g. device.port)."""
    try:
        set_config_value(project_dir, key, value)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Set {key} = {value}")


@config.command("list")
@click.pass_obj
def config_list(project_dir):
    """List all config values."""
    for k, v in list_config(project_dir).items():
        click.echo(f"{k} = {v}")


# ---------------------------------------------------------------------------
# Serial monitor
# ---------------------------------------------------------------------------

@main.command()
@click.option("--port", type=str, help="Serial port (default: device.port).")
@click.option("--baud", type=int, default=DEFAULT_BAUD_RATE, help="Baud rate.")
@click.option("--duration", type=float, default=10, help="Monitor duration in seconds.")
@click.option("--list", "list_ports", is_flag=True, help="List serial ports and exit.")
@click.pass_obj
def monitor(project_dir, port, baud, duration, list_ports):
    """Print serial output from the board."""
    if list_ports:
        for p in list_serial_ports():
            click.echo(f"{p.device:<24} {p.description}")
        return
    port = port or load_device_context(project_dir).port
    if not port:
        click.echo("Error: No serial port specified. Use --port or set device.port.", err=True)
        raise SystemExit(1)
    sessions = SerialMonitor()
    _run(lambda: sessions.open(port, baud))
    try:
        for line in sessions.read_lines(port, duration):
            click.echo(line)
    finally:
        sessions.close(port)


@main.command()
@click.pass_obj
def doctor(project_dir):
    """Check the Arduino installation."""
    app = _build_app(project_dir, select=False)
    settings = app.settings
    ok = True

    if settings.command_path.exists():
        click.echo(f"[OK] Arduino binary: {settings.command_path}")
    else:
        click.echo(f"[!!] Arduino binary not found: {settings.command_path}")
        ok = False

    prefs = settings.package_path / "preferences.txt"
    if prefs.exists():
        click.echo(f"[OK] Preferences: {prefs}")
    else:
        click.echo(f"[!!] Preferences not found: {prefs}. Run the IDE once or 'sketchbridge init'.")
        ok = False

    for index in ("package_index.json", "library_index.json"):
        if (settings.package_path / index).exists():
            click.echo(f"[OK] {index}")
        else:
            click.echo(f"[--] {index} missing. Run 'sketchbridge init'.")

    if ok:
        click.echo("\nAll checks passed.")
    else:
        click.echo("\nSome checks failed. Fix the issues above.")
