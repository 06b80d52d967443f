"""Merge include paths into the C/C++ language-analysis configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from sketchbridge.output import ARDUINO_FILE_ERROR, notify_user_error
from sketchbridge.util import (
    FilesystemError,
    file_exists,
    get_cpp_config_platform,
    mkdir_recursively,
    normalize_path,
    path_key,
)

logger = logging.getLogger(__name__)

CPP_CONFIG_FILE = Path(".vscode") / "c_cpp_properties.json"


class ConfigParseError(Exception):
    """The existing configuration file is not a JSON object. It is left untouched."""

    def __init__(self, message: str = ARDUINO_FILE_ERROR, exit_code: int = 1):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


def load_config_document(config_path: Path) -> dict:
    """Read the configuration document, or return ``{}`` if the file is absent.

    The parent directory is created for an absent file so the later write
    succeeds.
    """
    if not file_exists(config_path):
        mkdir_recursively(config_path.parent)
        return {}

    try:
        raw = config_path.read_bytes()
    except OSError as e:
        raise FilesystemError(f"Could not read {config_path}: {e}") from e

    try:
        document = json.loads(raw.decode("utf-8"))
    except ValueError:
        # Covers UnicodeDecodeError too.
        document = None
    if not isinstance(document, dict):
        notify_user_error("arduinoFileError", ARDUINO_FILE_ERROR)
        raise ConfigParseError()
    return document


def find_config_section(document: dict, platform: str) -> dict:
    """Return the active section for ``platform``, creating it if missing.

    Every section named ``platform`` gets ``browse.limitSymbolsToIncludedHeaders``
    forced off; the first one is the active section.
    """
    configurations = document.get("configurations")
    if not isinstance(configurations, list):
        configurations = []
        document["configurations"] = configurations

    matches = [s for s in configurations if isinstance(s, dict) and s.get("name") == platform]
    for section in matches:
        browse = section.get("browse")
        if not isinstance(browse, dict):
            browse = {}
            section["browse"] = browse
        browse["limitSymbolsToIncludedHeaders"] = False

    if len(matches) > 1:
        logger.warning(
            "%d configurations named %r; using the first one", len(matches), platform
        )
    if matches:
        return matches[0]

    section = {
        "name": platform,
        "includePath": [],
        "browse": {"limitSymbolsToIncludedHeaders": False},
    }
    configurations.append(section)
    return section


def merge_include_paths(section: dict, paths: Iterable[Path | str]) -> list[str]:
    """Append each path not already present (by normalized absolute form).

    Returns the paths that were added.
    """
    include_path = section.get("includePath")
    if not isinstance(include_path, list):
        include_path = []
        section["includePath"] = include_path

    seen = {path_key(p) for p in include_path if isinstance(p, str)}
    added = []
    for candidate in paths:
        normalized = normalize_path(candidate)
        key = path_key(normalized)
        if key in seen:
            continue
        seen.add(key)
        include_path.append(normalized)
        added.append(normalized)
    return added


def reconcile(
    config_path: Path | str,
    paths: Iterable[Path | str],
    platform: str | None = None,
) -> list[str]:
    """Merge ``paths`` into the configuration file at ``config_path``.

    Unrelated sections and fields are preserved. Repeating a call with the
    same paths leaves ``includePath`` unchanged. Returns the paths added.
    """
    config_path = Path(config_path)
    platform = platform or get_cpp_config_platform()

    document = load_config_document(config_path)
    section = find_config_section(document, platform)
    added = merge_include_paths(section, paths)

    try:
        config_path.write_text(json.dumps(document, indent=4), encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Could not write {config_path}: {e}") from e
    logger.debug("Added %d include path(s) to %s", len(added), config_path)
    return added
