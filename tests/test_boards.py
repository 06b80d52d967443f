"""Tests for installed platform discovery and board selection."""

from pathlib import Path

import pytest

from sketchbridge.boards import BoardManager, BoardNotFoundError, parse_boards_txt
from sketchbridge.settings import ArduinoSettings

BOARDS_TXT = """\
# Arduino AVR boards
menu.cpu=Processor

uno.name=Arduino Uno
uno.upload.tool=avrdude
mega.name=Arduino Mega or Mega 2560
mega.menu.cpu.atmega2560=ATmega2560 (Mega 2560)
"""


def _platform(root: Path, boards_txt: str = BOARDS_TXT) -> Path:
    root.mkdir(parents=True)
    (root / "boards.txt").write_text(boards_txt)
    return root


@pytest.fixture
def settings(tmp_path):
    return ArduinoSettings(
        command_path=Path("arduino"),
        package_path=tmp_path / "arduino15",
        arduino_path=tmp_path / "ide",
    )


@pytest.fixture
def manager(settings):
    return BoardManager(settings)


class TestParseBoardsTxt:
    def test_names(self, tmp_path):
        path = tmp_path / "boards.txt"
        path.write_text(BOARDS_TXT)
        assert parse_boards_txt(path) == {"uno": "Arduino Uno", "mega": "Arduino Mega or Mega 2560"}


class TestInstalledPlatforms:
    def test_empty(self, manager):
        assert manager.installed_platforms() == []

    def test_bundled_platform(self, manager, settings):
        root = _platform(settings.arduino_path / "hardware" / "arduino" / "avr")
        platforms = manager.installed_platforms()
        assert len(platforms) == 1
        assert platforms[0].package.name == "arduino"
        assert platforms[0].architecture == "avr"
        assert platforms[0].root_board_path == root

    def test_latest_version_wins(self, manager, settings):
        hw = settings.package_path / "packages" / "esp32" / "hardware" / "esp32"
        _platform(hw / "1.0.6")
        _platform(hw / "2.0.11")
        _platform(hw / "2.0.9")
        platform = manager.find_platform("esp32", "esp32")
        assert platform.version == "2.0.11"
        assert platform.root_board_path == hw / "2.0.11"

    def test_package_overrides_bundled(self, manager, settings):
        _platform(settings.arduino_path / "hardware" / "arduino" / "avr")
        newer = _platform(settings.package_path / "packages" / "arduino" / "hardware" / "avr" / "1.8.6")
        assert manager.find_platform("arduino", "avr").root_board_path == newer

    def test_find_platform_missing(self, manager):
        assert manager.find_platform("arduino", "samd") is None


class TestSelect:
    def test_select_sets_current_board(self, manager, settings):
        _platform(settings.arduino_path / "hardware" / "arduino" / "avr")
        assert manager.current_board is None
        board = manager.select("arduino:avr:uno")
        assert board.board == "uno"
        assert board.name == "Arduino Uno"
        assert manager.current_board is board

    def test_select_ignores_board_options(self, manager, settings):
        _platform(settings.arduino_path / "hardware" / "arduino" / "avr")
        assert manager.select("arduino:avr:mega:cpu=atmega2560").board == "mega"

    def test_invalid_selection(self, manager):
        with pytest.raises(BoardNotFoundError):
            manager.select("uno")

    def test_platform_not_installed(self, manager):
        with pytest.raises(BoardNotFoundError) as exc_info:
            manager.select("arduino:samd:mkr1000")
        assert "install-board" in exc_info.value.message

    def test_unknown_board(self, manager, settings):
        _platform(settings.arduino_path / "hardware" / "arduino" / "avr")
        with pytest.raises(BoardNotFoundError):
            manager.select("arduino:avr:nano")
        assert manager.current_board is None


class TestRemovablePlatform:
    def test_bundled_platform_refused(self, manager, settings):
        root = _platform(settings.arduino_path / "hardware" / "arduino" / "avr")
        with pytest.raises(BoardNotFoundError) as exc_info:
            manager.removable_platform("arduino", "avr")
        assert "bundled" in exc_info.value.message
        assert root.exists()

    def test_package_platform_allowed(self, manager, settings):
        root = _platform(settings.package_path / "packages" / "esp32" / "hardware" / "esp32" / "2.0.11")
        assert manager.removable_platform("esp32", "esp32").root_board_path == root

    def test_not_installed(self, manager):
        with pytest.raises(BoardNotFoundError):
            manager.removable_platform("arduino", "samd")
