"""Helpers for constructing settings instances."""

from pathlib import Path
from typing import Optional

from baton.config import Settings


class ConfigProvider:
    """
    Provides settings instances without import-time side effects.

    Args:
        path: Optional override path for the JSON config file.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path
        self._cached: Optional[Settings] = None

    def load(self) -> Settings:
        """
        Loads a fresh settings instance using the configured path.

        Returns:
            A validated settings object.
        """
        return Settings.load(self._path)

    def get(self) -> Settings:
        """Returns settings loaded on first use and reused afterwards."""

        if self._cached is None:
            self._cached = self.load()
        return self._cached
