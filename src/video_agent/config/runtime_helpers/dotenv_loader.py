"""Dotenv file loading utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from dotenv import dotenv_values

from ..errors import ConfigurationError


class DotenvLoader:
    """Loads launcher defaults from .env-style files."""

    @staticmethod
    def load_from_file(path: Path) -> Dict[str, str]:
        """
        Load key-value pairs from a .env file.

        Keys declared without a value (``FOO`` with no ``=``) are skipped.

        Args:
            path: Path to .env file

        Returns:
            Dictionary of environment variables

        Raises:
            ConfigurationError: If file cannot be read
        """
        if not path.is_file():
            return {}

        try:
            raw_values = dotenv_values(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(f"Failed to load configuration from {path}") from exc

        return {key: value for key, value in raw_values.items() if value is not None}
