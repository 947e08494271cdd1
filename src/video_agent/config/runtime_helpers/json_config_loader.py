"""JSON configuration file loading utilities."""

import json
from pathlib import Path
from typing import Any, Dict

from ..errors import ConfigurationError


class JsonConfigLoader:
    """Loads flat ``NAME -> value`` defaults from a JSON object file."""

    @staticmethod
    def load_from_file(path: Path) -> Dict[str, str]:
        """
        Load configuration from JSON file.

        Values are normalized to strings so they can stand in for environment
        variables.

        Args:
            path: Path to JSON file

        Returns:
            Dictionary of environment variables (all values as strings)

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        if not path.is_file():
            return {}

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Failed to parse JSON config {path}") from exc
        except OSError as exc:  # pragma: no cover - filesystem access failure
            raise ConfigurationError(f"Failed to read {path}") from exc

        if not isinstance(payload, dict):
            raise ConfigurationError(f"JSON config {path} must contain an object at the top level")

        return JsonConfigLoader._normalize_values(payload, path)

    @staticmethod
    def _normalize_values(payload: Dict[str, Any], path: Path) -> Dict[str, str]:
        """
        Normalize JSON values to strings for environment variables.

        Raises:
            ConfigurationError: If values are nested structures
        """
        normalized: Dict[str, str] = {}

        for key, value in payload.items():
            if isinstance(value, (dict, list)):
                raise ConfigurationError(f"JSON config {path} must map environment names to scalar values (problematic key: {key})")

            if value is None:
                normalized[str(key)] = ""
            elif isinstance(value, bool):
                normalized[str(key)] = "true" if value else "false"
            else:
                normalized[str(key)] = str(value)

        return normalized
