"""Configuration system."""

from funding_history.config.loader import load_assets, load_config
from funding_history.config.schema import AppConfig

__all__ = ["AppConfig", "load_assets", "load_config"]
