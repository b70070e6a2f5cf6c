"""
Configuration management for the holiday scoreboard.
Supports both JSON file configuration and environment variable overrides.
"""

import copy
import json
import os
from pathlib import Path
from typing import Dict, Any, List

from .models import GAMES


class ScoreboardConfig:
    """Configuration management for the holiday scoreboard."""

    DEFAULT_CONFIG = {
        "scoreboard_name": "Holiday Games Scoreboard",
        "games": [{"key": key, "name": name} for key, name in GAMES],
        "roster": {
            "default_rows": 30,  # placeholder rows shown for an empty roster
            "max_retries": 3,  # attempts when another writer got in first
        },
        "storage": {
            "backend": "sqlite",  # sqlite or memory
            "db_path": "scoreboard.db",
            "document_key": "scoreboard",
        },
        "web": {
            "host": "localhost",
            "port": 8081,
        },
    }

    def __init__(
        self,
        config_path: str = "scoreboard_config.json",
        create_missing: bool = True,
    ) -> None:
        """Initialize configuration from file, environment variables, or defaults."""
        self.config_path = Path(config_path)
        self.create_missing = create_missing
        self.config = self._load_config()
        self._repair_sections()
        self._apply_env_overrides()
        self._validate_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from JSON file or create default.

        @return: Dictionary containing the loaded configuration
        """
        config = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    loaded_config = json.load(f)

                # Merge with defaults to ensure all keys exist
                if isinstance(loaded_config, dict):
                    self._deep_merge(config, loaded_config)
                else:
                    print(f"Ignoring {self.config_path}: expected a JSON object")
                return config

            except (json.JSONDecodeError, IOError) as e:
                print(f"Error loading config from {self.config_path}: {e}")
                print("Using default configuration")
                return config

        if self.create_missing:
            self._create_default_config()
        return config

    def _deep_merge(
        self,
        base_dict: Dict[str, Any],
        update_dict: Dict[str, Any],
    ) -> None:
        """
        Recursively merge dictionaries.

        @param base_dict: Base dictionary to merge into
        @param update_dict: Dictionary with updates to merge
        """
        for key, value in update_dict.items():
            if (
                key in base_dict
                and isinstance(base_dict[key], dict)
                and isinstance(value, dict)
            ):
                self._deep_merge(base_dict[key], value)
            else:
                base_dict[key] = value

    def _apply_env_overrides(self) -> None:
        """
        Apply environment variable overrides to configuration.

        Environment variables follow the pattern: SECTION_KEY (e.g., STORAGE_BACKEND)
        """
        env_mappings = {
            "SCOREBOARD_NAME": ("scoreboard_name",),

            # Roster behaviour
            "DEFAULT_ROWS": ("roster", "default_rows"),
            "MAX_RETRIES": ("roster", "max_retries"),

            # Storage
            "STORAGE_BACKEND": ("storage", "backend"),
            "DB_PATH": ("storage", "db_path"),
            "DOCUMENT_KEY": ("storage", "document_key"),

            # Web server
            "WEB_HOST": ("web", "host"),
            "WEB_PORT": ("web", "port"),
        }

        for env_var, config_path in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                converted_value = self._convert_env_value(env_value)
                self._set_nested_config(config_path, converted_value)

    def _convert_env_value(self, value: str) -> Any:
        """
        Convert environment variable string to appropriate type.

        @param value: String value from environment variable
        @return: Converted value (bool, int, or string)
        """
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        return value

    def _set_nested_config(self, path: tuple, value: Any) -> None:
        """
        Set a nested configuration value using a path tuple.

        @param path: Tuple representing the nested path (e.g., ("storage", "backend"))
        @param value: Value to set
        """
        current = self.config
        for key in path[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    def _create_default_config(self) -> None:
        """Write the default configuration to the configured file path."""
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self.DEFAULT_CONFIG, f, indent=2)
            print(f"Created default configuration file: {self.config_path}")
        except IOError as e:
            print(f"Could not create config file {self.config_path}: {e}")

    def _validate_int(
        self,
        section: str,
        key: str,
        minimum: int,
    ) -> None:
        value = self.config[section].get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            default = self.DEFAULT_CONFIG[section][key]
            print(f"Warning: Invalid {key}, using {default}")
            self.config[section][key] = default

    def _validate_config(self) -> None:
        """
        Validate configuration values.

        Checks configuration values for validity and sets defaults for invalid values.
        """
        self._repair_sections()

        if self.config["storage"]["backend"] not in ["sqlite", "memory"]:
            print("Warning: Invalid storage backend, using 'sqlite'")
            self.config["storage"]["backend"] = "sqlite"

        self._validate_int("roster", "default_rows", 0)
        self._validate_int("roster", "max_retries", 1)
        self._validate_int("web", "port", 1)

        # Score fields are fixed; only their display names are configurable
        if not self._games_are_valid(self.config.get("games")):
            print("Warning: Invalid games list, using defaults")
            self.config["games"] = copy.deepcopy(self.DEFAULT_CONFIG["games"])

    def _games_are_valid(
        self,
        games: Any,
    ) -> bool:
        """
        Check that games lists every score field in order, each with a display name.

        @param games: Value of the "games" setting
        @return: True if the list can be used as is
        """
        if not isinstance(games, list) or len(games) != len(GAMES):
            return False

        for game, (key, _) in zip(games, GAMES):
            if not isinstance(game, dict) or game.get("key") != key:
                return False
            if not isinstance(game.get("name"), str) or not game["name"].strip():
                return False
        return True

    def _repair_sections(self) -> None:
        """Replace sections that are not objects with their defaults."""
        for section, default in self.DEFAULT_CONFIG.items():
            if isinstance(default, dict) and not isinstance(self.config.get(section), dict):
                print(f"Warning: Invalid {section} section, using defaults")
                self.config[section] = copy.deepcopy(default)

    def get(
        self,
        *keys: str,
    ) -> Any:
        """
        Get nested configuration value using dot notation.

        @param keys: Variable arguments representing nested keys to traverse
        @return: Configuration value at the specified path, None if not found
        """
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return None
        return value

    def games(self) -> List[Dict[str, str]]:
        """
        Get the mini-games in display order.

        @return: List of {"key", "name"} dictionaries
        """
        return [dict(game) for game in self.config["games"]]

    def public_config(self) -> Dict[str, Any]:
        return {
            "scoreboard_name": self.get("scoreboard_name"),
            "games": self.games(),
            "default_rows": self.get("roster", "default_rows"),
        }

    def save_config(self) -> bool:
        """
        Save current configuration to file.

        @return: True if saved successfully, False on error
        """
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self.config, f, indent=2)
            return True
        except IOError as e:
            print(f"Could not save config file {self.config_path}: {e}")
            return False
