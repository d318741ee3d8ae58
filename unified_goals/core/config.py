"""
Configuration management for the Unified Goal Engine
Handles loading and saving engine settings and user preferences
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


class Config:
    """Configuration manager for the goal engine"""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration manager

        Args:
            config_dir: Path to configuration directory (defaults to ./config)
        """
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.settings_file = self.config_dir / "settings.json"
        self.preferences_file = self.config_dir / "preferences.json"

        # Load configurations
        self.settings = self._load_json(self.settings_file, self._default_settings())
        self.preferences = self._load_json(self.preferences_file, self._default_preferences())

    def _load_json(self, file_path: Path, default: Dict[str, Any]) -> Dict[str, Any]:
        """Load JSON file or return default if file doesn't exist"""
        if file_path.exists():
            with open(file_path, 'r') as f:
                loaded = json.load(f)
            # Keys added in newer versions fall back to their defaults
            merged = dict(default)
            merged.update(loaded)
            return merged
        else:
            # Create file with defaults
            logger.info(f"Writing default configuration to {file_path}")
            self._save_json(file_path, default)
            return default

    def _save_json(self, file_path: Path, data: Dict[str, Any]) -> None:
        """Save data to JSON file"""
        with open(file_path, 'w') as f:
            json.dump(data, f, indent=2)

    def _default_settings(self) -> Dict[str, Any]:
        """Default engine settings"""
        return {
            "timezone_offset_minutes": 0,
            "debt_trail_days": 30,
            "default_filter": "all",
            "default_sort": "newest",
            "occurrence_horizon_days": 0,
        }

    def _default_preferences(self) -> Dict[str, Any]:
        """Default user preferences"""
        return {
            "default_priority": "medium",
            "default_metric_label": "Target",
        }

    def get(self, key: str, section: str = "settings", default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            key: Configuration key
            section: Configuration section ('settings', 'preferences')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        section_map = {
            "settings": self.settings,
            "preferences": self.preferences
        }

        return section_map.get(section, {}).get(key, default)

    def set(self, key: str, value: Any, section: str = "settings") -> None:
        """
        Set configuration value and save to disk

        Args:
            key: Configuration key
            value: Value to set
            section: Configuration section ('settings', 'preferences')
        """
        section_map = {
            "settings": (self.settings, self.settings_file),
            "preferences": (self.preferences, self.preferences_file)
        }

        if section in section_map:
            config_dict, file_path = section_map[section]
            config_dict[key] = value
            self._save_json(file_path, config_dict)
