"""
Centralized environment configuration.

Values are merged from, in increasing priority:
1) `env.example` (committed defaults)
2) `env.local` (optional, developer-local, never committed)
3) System environment variables
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger

ROOT_DIR = Path(__file__).parent.parent.parent


class EnvironConfig:
    """
    Singleton mapping over environment configuration with dict-like access.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(EnvironConfig, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._config: dict[str, str | None] = {}
            self._load_config()
            EnvironConfig._initialized = True

    def _load_config(self):
        example_path = ROOT_DIR / "env.example"
        if example_path.exists():
            self._config.update(dotenv_values(example_path))
            logger.debug("Loaded environment variables from {}", example_path)

        local_path = ROOT_DIR / "env.local"
        if local_path.exists():
            self._config.update(dotenv_values(local_path))
            logger.info("Loaded and overrode environment variables from {}", local_path)

        self._config.update(os.environ)

    def __getitem__(self, key):
        if key not in self._config:
            raise KeyError(f"Configuration key '{key}' not found")

        return self._config[key]

    def get(self, key, default=None):
        return self._config.get(key, default)

    def reload(self):
        """Re-read env files and the process environment."""
        self._config.clear()
        self._load_config()
        logger.info("Configuration reloaded")

    def __contains__(self, key):
        return key in self._config

    def __iter__(self):
        return iter(self._config)

    def keys(self):
        return self._config.keys()

    def items(self):
        return self._config.items()

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = (self.get(key) or "").strip().lower()
        if not value:
            return default
        return value in {"true", "1", "yes", "on"}

    def get_int(self, key: str, default: int) -> int:
        return int((self.get(key) or "").strip() or default)

    def get_float(self, key: str, default: float) -> float:
        return float((self.get(key) or "").strip() or default)


config = EnvironConfig()
