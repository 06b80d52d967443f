"""Project file (sketchbridge.toml) access for sketchbridge."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]

PROJECT_FILE = "sketchbridge.toml"


@dataclass
class DeviceContext:
    sketch: str = "app/app.ino"
    port: str | None = None
    board: str | None = None


@dataclass
class ProjectConfig:
    device: DeviceContext = field(default_factory=DeviceContext)
    arduino: dict = field(default_factory=dict)


def _read_toml(project_dir: Path) -> dict | None:
    toml_path = project_dir / PROJECT_FILE
    if not toml_path.exists():
        return None
    with open(toml_path, "rb") as f:
        return tomllib.load(f)


def load_project_config(project_dir: Path | str) -> ProjectConfig:
    """Parse sketchbridge.toml and return a typed ProjectConfig."""
    project_dir = Path(project_dir)
    data = _read_toml(project_dir)
    if data is None:
        raise FileNotFoundError(f"{PROJECT_FILE} not found in {project_dir}")

    device_data = data.get("device", {})
    device = DeviceContext(
        sketch=device_data.get("sketch", DeviceContext.sketch),
        port=device_data.get("port"),
        board=device_data.get("board"),
    )
    return ProjectConfig(device=device, arduino=data.get("arduino", {}))


def load_device_context(project_dir: Path | str) -> DeviceContext:
    """Device section of the project file, or defaults if there is no file."""
    try:
        return load_project_config(project_dir).device
    except FileNotFoundError:
        return DeviceContext()


def _split_key(key: str) -> tuple[str, str]:
    section, sep, name = key.partition(".")
    if not sep or not section or not name:
        raise ValueError(f"Key must be dotted (section.key), got: {key}")
    return section, name


def _toml_value(value) -> str:
    """Render a scalar for the project file; integer-like strings become ints."""
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError:
            pass
    if isinstance(value, int):
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _section_span(lines: list[str], section: str) -> tuple[int, int] | None:
    """Line range ``[header, end)`` of a table, or None if it is absent."""
    header = f"[{section}]"
    start = next((i for i, line in enumerate(lines) if line.strip() == header), None)
    if start is None:
        return None
    for i in range(start + 1, len(lines)):
        if lines[i].lstrip().startswith("["):
            return start, i
    return start, len(lines)


def get_config_value(project_dir: Path | str, key: str):
    """Dotted key lookup, e.g. 'device.port', 'arduino.log_level'."""
    data = _read_toml(Path(project_dir)) or {}
    section, sep, name = key.partition(".")
    if not sep:
        return data.get(key)
    table = data.get(section)
    return table.get(name) if isinstance(table, dict) else None


def set_config_value(project_dir: Path | str, key: str, value) -> None:
    """Write one value to sketchbridge.toml, keeping the rest of the file as is."""
    section, name = _split_key(key)
    entry = f"{name} = {_toml_value(value)}\n"
    toml_path = Path(project_dir) / PROJECT_FILE
    lines = toml_path.read_text().splitlines(keepends=True) if toml_path.exists() else []

    span = _section_span(lines, section)
    if span is None:
        if lines and not lines[-1].endswith("\n"):
            lines[-1] += "\n"
        if lines:
            lines.append("\n")
        lines += [f"[{section}]\n", entry]
    else:
        start, end = span
        key_re = re.compile(rf"^\s*{re.escape(name)}\s*=")
        existing = next((i for i in range(start + 1, end) if key_re.match(lines[i])), None)
        if existing is not None:
            lines[existing] = entry
        else:
            lines.insert(end, entry)

    toml_path.write_text("".join(lines))


def list_config(project_dir: Path | str) -> dict:
    """Return a flat dotted-key dict of all config values."""
    result = {}
    for section, values in (_read_toml(Path(project_dir)) or {}).items():
        if isinstance(values, dict):
            result.update({f"{section}.{k}": v for k, v in values.items()})
        else:
            result[section] = values
    return result
