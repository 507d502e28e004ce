"""
Configuration management.

Settings are read from environment variables, `ctekit.toml` and
`pyproject.toml`, in that order of precedence, over built-in defaults.
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ctekit.parser.shared.constants import (
    DEFAULT_CACHE_FILE,
    DEFAULT_DIALECT,
    DEFAULT_SHARED_CTE_FOLDER,
    MAX_RESOLUTION_DEPTH,
)

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class CteKitConfig:
    """Resolved settings for parsing, rendering and storage."""

    dialect: str = DEFAULT_DIALECT
    pretty: bool = False
    max_depth: int = MAX_RESOLUTION_DEPTH
    workspace_dir: Path = Path(".")
    shared_cte_dir: Path = Path(DEFAULT_SHARED_CTE_FOLDER)
    cache_file: Path | None = None

    @property
    def shared_cache_file(self) -> Path:
        return self.cache_file or self.shared_cte_dir / DEFAULT_CACHE_FILE


class ConfigManager:
    """Loads settings from multiple sources."""

    def __init__(self, project_root: str | Path | None = None) -> None:
        self.project_root = Path(project_root) if project_root else Path.cwd()

    def load_config(self) -> CteKitConfig:
        """
        Load configuration from TOML files and environment variables.

        Returns:
            CteKitConfig with merged settings

        Raises:
            ValueError: If a setting has an invalid value
        """
        toml_config = self._load_toml_config()
        env_config = self._load_env_config()

        # Env vars override toml
        merged = toml_config.copy()
        merged.update(env_config)
        return self._create_config(merged)

    def _load_toml_config(self) -> dict[str, Any]:
        """Load the [ctekit] table of ctekit.toml, or [tool.ctekit] of pyproject.toml."""
        ctekit_toml = self.project_root / "ctekit.toml"
        if ctekit_toml.exists():
            return self._read_toml(ctekit_toml).get("ctekit", {})

        pyproject = self.project_root / "pyproject.toml"
        if pyproject.exists():
            return self._read_toml(pyproject).get("tool", {}).get("ctekit", {})

        logger.debug("No ctekit.toml or pyproject.toml found, using defaults")
        return {}

    def _read_toml(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, "rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ValueError(f"Could not read {path}: {e}") from e

    def _load_env_config(self) -> dict[str, Any]:
        """Load configuration from environment variables."""
        env_mappings = {
            "CTEKIT_DIALECT": "dialect",
            "CTEKIT_PRETTY": "pretty",
            "CTEKIT_MAX_DEPTH": "max_depth",
            "CTEKIT_SHARED_CTE_DIR": "shared_cte_dir",
        }

        env_config = {}
        for env_var, config_key in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                env_config[config_key] = value
        return env_config

    def _create_config(self, config_dict: dict[str, Any]) -> CteKitConfig:
        dialect = str(config_dict.get("dialect", DEFAULT_DIALECT)).strip()
        if not dialect:
            raise ValueError("dialect must not be empty")

        max_depth = config_dict.get("max_depth", MAX_RESOLUTION_DEPTH)
        try:
            max_depth = int(max_depth)
        except (TypeError, ValueError) as e:
            raise ValueError(f"max_depth must be an integer, got {max_depth!r}") from e
        if max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {max_depth}")

        shared_cte_dir = self._resolve_path(
            config_dict.get("shared_cte_dir", DEFAULT_SHARED_CTE_FOLDER)
        )
        cache_file = config_dict.get("cache_file")

        return CteKitConfig(
            dialect=dialect,
            pretty=_parse_bool(config_dict.get("pretty", False), "pretty"),
            max_depth=max_depth,
            workspace_dir=self._resolve_path(config_dict.get("workspace_dir", ".")),
            shared_cte_dir=shared_cte_dir,
            cache_file=self._resolve_path(cache_file) if cache_file else None,
        )

    def _resolve_path(self, value: Any) -> Path:
        path = Path(value)
        return path if path.is_absolute() else self.project_root / path


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be a boolean, got {value!r}")


def load_config(project_root: str | Path | None = None) -> CteKitConfig:
    """
    Convenience function to load configuration.

    Args:
        project_root: Project root directory (defaults to current directory)

    Returns:
        CteKitConfig object
    """
    return ConfigManager(project_root).load_config()
