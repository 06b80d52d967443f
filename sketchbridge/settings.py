"""Arduino IDE installation settings."""

from __future__ import annotations

import os
import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

from sketchbridge.config import load_project_config

ENV_PREFIX = "SKETCHBRIDGE_"
LOG_LEVELS = ("info", "verbose")

# Settings keys whose environment variable differs from the upper-cased key.
_ENV_NAMES = {"path": "ARDUINO_PATH"}

# Executable names tried on PATH, in order.
_COMMAND_NAMES = {
    "Windows": ["arduino_debug.exe", "arduino.exe"],
    "Darwin": ["arduino", "Arduino"],
}


def default_package_path() -> Path:
    """Directory where the IDE keeps preferences.txt and package indexes."""
    system = platform.system()
    home = Path.home()
    if system == "Windows":
        local = os.environ.get("LOCALAPPDATA")
        return Path(local) / "Arduino15" if local else home / "AppData" / "Local" / "Arduino15"
    if system == "Darwin":
        return home / "Library" / "Arduino15"
    return home / ".arduino15"


def default_command_path(arduino_path: Path | None = None) -> Path:
    """Locate the IDE command-line binary."""
    names = _COMMAND_NAMES.get(platform.system(), ["arduino"])
    if arduino_path:
        if platform.system() == "Darwin":
            candidate = arduino_path / "Arduino.app" / "Contents" / "MacOS" / "Arduino"
            if candidate.exists():
                return candidate
        for name in names:
            candidate = arduino_path / name
            if candidate.exists():
                return candidate
    for name in names:
        found = shutil.which(name)
        if found:
            return Path(found)
    return Path(names[0])


@dataclass
class ArduinoSettings:
    command_path: Path
    package_path: Path
    arduino_path: Path | None = None
    log_level: str = "info"

    @property
    def verbose(self) -> bool:
        return self.log_level == "verbose"


def load_settings(project_dir: Path | str, **overrides) -> ArduinoSettings:
    """Build settings for a project.

    Resolution order: explicit overrides > SKETCHBRIDGE_* environment >
    [arduino] section of sketchbridge.toml > platform defaults.
    """
    try:
        file_values = dict(load_project_config(project_dir).arduino)
    except FileNotFoundError:
        file_values = {}

    def pick(key: str):
        if overrides.get(key) is not None:
            return overrides[key]
        env = os.environ.get(ENV_PREFIX + _ENV_NAMES.get(key, key.upper()))
        if env:
            return env
        return file_values.get(key)

    arduino_path = pick("path")
    arduino_path = Path(arduino_path).expanduser() if arduino_path else None

    command_path = pick("command_path")
    command_path = Path(command_path).expanduser() if command_path else default_command_path(arduino_path)

    package_path = pick("package_path")
    package_path = Path(package_path).expanduser() if package_path else default_package_path()

    log_level = str(pick("log_level") or "info").lower()
    if log_level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {log_level}. Use one of: {', '.join(LOG_LEVELS)}")

    return ArduinoSettings(
        command_path=command_path,
        package_path=package_path,
        arduino_path=arduino_path,
        log_level=log_level,
    )
