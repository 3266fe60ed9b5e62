"""Tests for json_utils module - shared JSON helpers."""
import json
from datetime import datetime, timezone, timedelta
from enum import Enum

import pytest

from utils.json_utils import load_json, dump_json, save_json


class Color(Enum):
    RED = "red"


class TestLoadJson:
    """Test load_json function."""

    def test_load_json_success(self, tmp_path):
        """Should successfully load valid JSON file."""
        json_file = tmp_path / "test.json"
        json_file.write_text('{"key": "value", "number": 42}')

        assert load_json(json_file) == {"key": "value", "number": 42}

    def test_load_json_with_string_path(self, tmp_path):
        """Should accept string path."""
        json_file = tmp_path / "test.json"
        json_file.write_text('[1, 2, 3]')

        assert load_json(str(json_file)) == [1, 2, 3]

    def test_load_json_utf8(self, tmp_path):
        json_file = tmp_path / "test.json"
        json_file.write_text('{"name": "北京站"}', encoding="utf-8")

        assert load_json(json_file)["name"] == "北京站"

    def test_load_json_file_not_found(self, tmp_path):
        """Should raise FileNotFoundError for missing file."""
        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")

    def test_load_json_empty_file(self, tmp_path):
        """Should raise JSONDecodeError for an empty file."""
        json_file = tmp_path / "empty.json"
        json_file.write_text("   \n")

        with pytest.raises(json.JSONDecodeError):
            load_json(json_file)


class TestDumpJson:
    """Test dump_json function."""

    def test_datetime_as_utc_text(self):
        plus8 = timezone(timedelta(hours=8))
        text = dump_json({"at": datetime(2024, 1, 1, 8, 0, tzinfo=plus8)})
        assert json.loads(text) == {"at": "2024-01-01T00:00:00Z"}

    def test_naive_datetime_treated_as_utc(self):
        assert json.loads(dump_json([datetime(2024, 1, 1, 12, 0)])) == ["2024-01-01T12:00:00Z"]

    def test_enum_and_tuple(self):
        assert json.loads(dump_json({"color": Color.RED, "pair": ("SAT-A", "GS-1")})) == {
            "color": "red", "pair": ["SAT-A", "GS-1"],
        }

    def test_non_ascii_kept(self):
        assert "成功" in dump_json({"status": "成功"})

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            dump_json({"value": object()})


class TestSaveJson:
    """Test save_json function."""

    def test_creates_parent_directories(self, tmp_path):
        target = tmp_path / "exports" / "windows.json"
        save_json([{"a": 1}], target)
        assert load_json(target) == [{"a": 1}]

    def test_overwrites_existing(self, tmp_path):
        target = tmp_path / "out.json"
        save_json({"v": 1}, target)
        save_json({"v": 2}, target)
        assert load_json(target) == {"v": 2}
