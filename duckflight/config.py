#!/usr/bin/env python3
"""
Configuration management for duckflight.

Settings come from dataclass defaults, then environment variables
(``DUCKFLIGHT_*``), then the first JSON config file found.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# DuckDB's own default for fetch_record_batch
DEFAULT_ROWS_PER_CHUNK = 1_000_000


@dataclass
class BridgeConfig:
    """Statement bridge configuration."""
    database: str = ":memory:"
    rows_per_chunk: int = DEFAULT_ROWS_PER_CHUNK
    verify_chunks: bool = False
    default_timezone: str = "UTC"
    log_level: str = "INFO"
    load_external: bool = True

    def __post_init__(self):
        """Load configuration from environment and files."""
        if self.load_external:
            self._load_from_environment()
            self._load_from_config_files()
        self._validate()

    def _validate(self):
        if self.rows_per_chunk <= 0:
            raise ValueError(f"rows_per_chunk must be positive, got {self.rows_per_chunk}")

    def _load_from_environment(self):
        """Load configuration from environment variables."""
        self.database = os.getenv('DUCKFLIGHT_DATABASE', self.database)
        self.rows_per_chunk = int(os.getenv('DUCKFLIGHT_ROWS_PER_CHUNK', self.rows_per_chunk))
        self.verify_chunks = os.getenv(
            'DUCKFLIGHT_VERIFY_CHUNKS', str(self.verify_chunks)
        ).lower() == 'true'
        self.default_timezone = os.getenv('DUCKFLIGHT_DEFAULT_TIMEZONE', self.default_timezone)
        self.log_level = os.getenv('DUCKFLIGHT_LOG_LEVEL', self.log_level)

    def _load_from_config_files(self):
        """Load configuration from the first config file found."""
        config_paths = [
            Path.home() / '.duckflight' / 'config.json',
            Path.cwd() / 'duckflight.json',
        ]
        env_path = os.getenv('DUCKFLIGHT_CONFIG_FILE')
        if env_path:
            config_paths.append(Path(env_path))

        for config_path in config_paths:
            if config_path.is_file():
                try:
                    with open(config_path, 'r') as f:
                        config_data = json.load(f)
                except (OSError, ValueError) as e:
                    logger.warning(f"Failed to load config from {config_path}: {e}")
                    continue

                self._update_from_dict(config_data)
                break

    def _update_from_dict(self, data: Dict[str, Any]):
        """Update configuration from dictionary."""
        for key, value in data.items():
            if key != 'load_external' and hasattr(self, key):
                setattr(self, key, value)
        self._validate()

    def save_to_file(self, path: Path):
        """Save configuration to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        data = asdict(self)
        data.pop('load_external')
        return data


# Global configuration instance
_config: Optional[BridgeConfig] = None


def get_config() -> BridgeConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = BridgeConfig()
    return _config


def init_config(config_file: Optional[str] = None) -> BridgeConfig:
    """Initialize global configuration, optionally from an explicit file."""
    global _config
    _config = BridgeConfig()

    if config_file:
        config_path = Path(config_file)
        with open(config_path, 'r') as f:
            config_data = json.load(f)
        _config._update_from_dict(config_data)

    return _config


def save_config(path: Path):
    """Save current configuration to file."""
    config = get_config()
    config.save_to_file(path)
