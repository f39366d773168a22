import copy
import os
from typing import Any, Dict

import yaml

from web_json.utils.logger import get_logger

DEFAULT_CONFIG = {
    "logging": {
        "level": "INFO",
        "file": None,
        "colors": True,
    },
    "errors": {
        "expose_details": False,  # include exception text in 500 responses
        "status_codes": {
            "content_type": 415,
            "invalid_json": 400,
        },
    },
}


def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """Load configuration from file or use defaults."""
    logger = get_logger()
    merged_config = copy.deepcopy(DEFAULT_CONFIG)

    if not os.path.exists(config_path):
        logger.info(
            f"Configuration file {config_path} not found, using default configuration"
        )
        return merged_config

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            raise ValueError("top-level YAML value must be a mapping")
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Error loading configuration: {str(e)}")
        logger.info("Using default configuration")
        return merged_config

    logger.info(f"Loaded configuration from {config_path}")

    # Merge with defaults to ensure all required fields exist
    _deep_merge(merged_config, config)
    return merged_config


def _deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, updating target with values from source."""
    for key, value in source.items():
        if key in target and isinstance(target[key], dict) and isinstance(value, dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value
    return target
