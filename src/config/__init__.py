"""Configuration: environment ``Settings`` plus the YAML tunables in config/config.yaml."""

from src.config.loader import load_config
from src.config.settings import Settings

__all__ = ["Settings", "load_config"]
