"""
Configuration loading following kkb_fastapi pattern.

Each environment has its own TOML file under ``carbonnet/configs``.
"""
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import toml

from carbonnet.utils.constants import ConfigFile

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent.parent / "configs"

__all__ = ["Config", "ConfigFile", "get_config", "get_environment_config"]


class Config:
    """
    Parsed configuration for one environment.

    Attributes:
        data: Raw TOML data as nested dicts
        file_name: Name of the file the data was read from
    """

    def __init__(self, data: dict[str, Any], file_name: str = ""):
        self.data = data
        self.file_name = file_name

    def section(self, name: str) -> dict[str, Any]:
        """Return a top-level table, or an empty dict when it is missing."""
        return self.data.get(name, {}) or {}

    def __repr__(self):
        return f"<Config: {self.file_name}>"


@lru_cache(maxsize=None)
def get_config(config_file: str) -> Config:
    """
    Load configuration from a TOML file.

    Args:
        config_file: Configuration file name (e.g., "test.toml")

    Returns:
        Config instance

    Raises:
        FileNotFoundError: If the file does not exist in the config directory
    """
    path = CONFIG_DIR / config_file
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.debug(f"Loading configuration from {path}")
    return Config(toml.load(path), file_name=config_file)


def get_environment_config() -> Config:
    """Load the configuration selected by the ENVIRONMENT variable."""
    env = os.getenv("ENVIRONMENT", "development")
    return get_config(f"{env}.toml")
