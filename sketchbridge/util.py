"""Filesystem helpers for sketchbridge."""

from __future__ import annotations

import os
import platform
import shutil
from pathlib import Path


class FilesystemError(Exception):
    """Directory creation, file I/O or recursive deletion failed."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


def file_exists(path: Path | str) -> bool:
    return Path(path).is_file()


def directory_exists(path: Path | str) -> bool:
    return Path(path).is_dir()


def mkdir_recursively(path: Path | str) -> None:
    """Create a directory and all missing parents."""
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Could not create directory {path}: {e}") from e


def rmdir_recursively(path: Path | str) -> None:
    """Remove a directory tree. A missing directory is an error."""
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError(f"Could not remove {path}: {e}") from e


def normalize_path(path: Path | str) -> str:
    """Return the absolute, normalized form of a path (symlinks are not followed)."""
    return os.path.abspath(os.path.normpath(os.fspath(path)))


def path_key(path: Path | str) -> str:
    """Comparison key for paths: normalized, case-folded where the OS ignores case."""
    return os.path.normcase(normalize_path(path))


def get_cpp_config_platform() -> str:
    """Configuration name the C/C++ tooling uses for this OS."""
    system = platform.system()
    if system == "Windows":
        return "Win32"
    if system == "Darwin":
        return "Mac"
    return "Linux"
