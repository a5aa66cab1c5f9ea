"""
Environment configuration for the relay.

Values are resolved from, in increasing priority:
1) `env.example` (committed defaults)
2) `env.local` (optional, MUST NOT be committed)
3) System environment variables

Blank values count as unset, so `AWS_REGION=` in a committed file falls
back to the default passed by the caller.
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger

ENV_FILES = ("env.example", "env.local")


class EnvironConfig:
    """Process-wide view of the relay's environment."""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(EnvironConfig, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._values: dict[str, str | None] = {}
            self._load()
            EnvironConfig._initialized = True

    def _load(self):
        root = Path(__file__).parent.parent.parent

        for name in ENV_FILES:
            path = root / name
            if path.exists():
                self._values.update(dotenv_values(path))
                logger.info("Loaded environment variables from {}", path)

        self._values.update(os.environ)

    def reload(self):
        """Re-read the env files and the process environment."""
        self._values.clear()
        self._load()
        logger.info("Configuration reloaded")

    def __contains__(self, key):
        return key in self._values

    def get(self, key, default=None):
        return self._values.get(key, default)

    def get_optional(self, key) -> str | None:
        return (self._values.get(key) or "").strip() or None

    def get_str(self, key, default: str) -> str:
        return self.get_optional(key) or default

    def get_int(self, key, default: int) -> int:
        value = self.get_optional(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid integer for {}: {!r}, using {}", key, value, default)
            return default

    def get_bool(self, key, default: bool = False) -> bool:
        value = self.get_optional(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    def get_list(self, key, default: str = "") -> list[str]:
        """Comma separated list; empty items are dropped."""
        return [item.strip() for item in self.get_str(key, default).split(",") if item.strip()]


# Global configuration instance
config = EnvironConfig()
