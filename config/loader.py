"""Configuration loader.

The YAML file is looked up in order: explicit path, ``GEX_SENTINEL_CONFIG_PATH``,
then the ``config.yaml`` shipped next to this module. Command line flags are
merged on top as section overrides, so they go through the same validation as
the file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

from config.config_models import AppConfig

CONFIG_PATH_ENV = "GEX_SENTINEL_CONFIG_PATH"
DEFAULT_CONFIG_FILE = Path(__file__).with_name("config.yaml")


def resolve_config_path(config_path: Optional[str] = None) -> Path:
    if config_path is None:
        config_path = os.getenv(CONFIG_PATH_ENV)
    return Path(config_path) if config_path else DEFAULT_CONFIG_FILE


def load_config(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> AppConfig:
    """
    Load application configuration.

    Args:
        config_path: Path to YAML config file. If None, uses the environment
            variable or the packaged default.
        overrides: Per-section values applied over the file, e.g.
            ``{"polling": {"interval_seconds": 5}}``. None values are ignored.

    Returns:
        AppConfig instance
    """
    config_file = resolve_config_path(config_path)

    config_data: Dict[str, Any] = {}
    if config_file.exists():
        logger.info(f"Loading configuration from {config_file}")
        with open(config_file, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning(f"Config file {config_file} not found, using defaults")

    for section, values in (overrides or {}).items():
        values = {key: value for key, value in values.items() if value is not None}
        if values:
            config_data[section] = {**(config_data.get(section) or {}), **values}

    config = AppConfig(**config_data)
    logger.debug(
        f"Config: ticker={config.data_sources.ticker} interval={config.polling.interval_seconds:g}s "
        f"hma_period={config.smoothing.hma_period}"
    )
    return config
