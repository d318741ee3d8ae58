"""
Unit tests for the JSON-backed configuration manager.
"""

import json
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from unified_goals.core.config import Config


class TestConfig:
    """Tests for loading, defaults and persistence."""

    def test_creates_default_files(self, tmp_path):
        config = Config(tmp_path / "config")

        assert (tmp_path / "config" / "settings.json").exists()
        assert (tmp_path / "config" / "preferences.json").exists()
        assert config.get("debt_trail_days") == 30
        assert config.get("default_metric_label", section="preferences") == "Target"

    def test_set_persists(self, tmp_path):
        config = Config(tmp_path)
        config.set("timezone_offset_minutes", 330)

        reloaded = Config(tmp_path)
        assert reloaded.get("timezone_offset_minutes") == 330

    def test_missing_keys_fall_back_to_defaults(self, tmp_path):
        (tmp_path / "settings.json").write_text(json.dumps({"debt_trail_days": 14}))

        config = Config(tmp_path)

        assert config.get("debt_trail_days") == 14
        assert config.get("default_sort") == "newest"

    def test_unknown_key_and_section(self, tmp_path):
        config = Config(tmp_path)
        assert config.get("nope", default="x") == "x"
        assert config.get("debt_trail_days", section="other", default=7) == 7

    def test_zero_window_is_kept(self, tmp_path):
        (tmp_path / "settings.json").write_text(json.dumps({"debt_trail_days": 0}))
        assert Config(tmp_path).get("debt_trail_days") == 0
