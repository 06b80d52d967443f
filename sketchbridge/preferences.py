"""Arduino IDE preferences.txt reader."""

from __future__ import annotations

import re
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

_LINE_RE = re.compile(r"(\S+)=(\S+)")


class PreferencesError(Exception):
    """Raised when the preferences document cannot be read."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


def parse_preferences(text: str) -> dict[str, str]:
    """Parse ``key=value`` lines. Lines that don't match are skipped; later keys win."""
    result: dict[str, str] = {}
    for line in text.split("\n"):
        if not line:
            continue
        match = _LINE_RE.search(line)
        if match:
            result[match.group(1)] = match.group(2)
    return result


class PreferenceStore:
    """Lazily loaded, read-only view of a preferences document."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._preferences: Mapping[str, str] | None = None

    @property
    def preferences(self) -> Mapping[str, str]:
        if self._preferences is None:
            self._preferences = self._load()
        return self._preferences

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.preferences.get(key, default)

    def reload(self) -> Mapping[str, str]:
        """Drop the cached mapping and read the document again."""
        self._preferences = None
        return self.preferences

    def _load(self) -> Mapping[str, str]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PreferencesError(f"Could not read preferences from {self.path}: {e}") from e
        return MappingProxyType(parse_preferences(text))
