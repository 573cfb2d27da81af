"""Configuration module for GEX Sentinel."""

from config.config_models import AppConfig
from config.loader import load_config

__all__ = ["AppConfig", "load_config"]
