"""Tests for the preferences reader."""

import pytest

from sketchbridge.preferences import PreferenceStore, PreferencesError, parse_preferences


class TestParsePreferences:
    def test_skips_comment_lines(self):
        assert parse_preferences("FOO=bar\n# comment\nBAZ=1\n") == {"FOO": "bar", "BAZ": "1"}

    def test_last_duplicate_wins(self):
        assert parse_preferences("a=1\na=2\n") == {"a": "2"}

    def test_skips_lines_without_value(self):
        assert parse_preferences("key=\n=value\nplain text\n") == {}

    def test_dotted_keys_and_paths(self):
        prefs = parse_preferences("sketchbook.path=/home/me/Arduino\r\nupload.verify=true\n")
        assert prefs["sketchbook.path"] == "/home/me/Arduino"
        assert prefs["upload.verify"] == "true"

    def test_empty_document(self):
        assert parse_preferences("") == {}


class TestPreferenceStore:
    def test_lazy_load(self, tmp_path):
        path = tmp_path / "preferences.txt"
        store = PreferenceStore(path)
        # Nothing is read until first access.
        path.write_text("board=uno\n")
        assert store.get("board") == "uno"

    def test_get_missing_key(self, tmp_path):
        path = tmp_path / "preferences.txt"
        path.write_text("board=uno\n")
        store = PreferenceStore(path)
        assert store.get("nope") is None
        assert store.get("nope", "x") == "x"

    def test_cached_until_reload(self, tmp_path):
        path = tmp_path / "preferences.txt"
        path.write_text("board=uno\n")
        store = PreferenceStore(path)
        assert store.get("board") == "uno"
        path.write_text("board=mega\n")
        assert store.get("board") == "uno"
        store.reload()
        assert store.get("board") == "mega"

    def test_mapping_is_read_only(self, tmp_path):
        path = tmp_path / "preferences.txt"
        path.write_text("board=uno\n")
        store = PreferenceStore(path)
        with pytest.raises(TypeError):
            store.preferences["board"] = "mega"

    def test_invalid_utf8_raises(self, tmp_path):
        path = tmp_path / "preferences.txt"
        path.write_bytes(b"a=\xff\n")
        with pytest.raises(PreferencesError):
            PreferenceStore(path).get("a")

    def test_missing_file_raises(self, tmp_path):
        store = PreferenceStore(tmp_path / "missing.txt")
        with pytest.raises(PreferencesError):
            store.get("board")
