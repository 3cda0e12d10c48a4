# survey_assistant/config/loader.py
"""
Configuration loading with auto-creation of defaults.

Uses platformdirs for cross-platform config directory management.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError
from platformdirs import user_config_path

from .schema import SurveyAssistantConfig

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    """Get path to config file, ensuring config directory exists."""
    config_dir = user_config_path("survey-assistant", ensure_exists=True)
    return config_dir / "config.yaml"


def load_config(path: Path | None = None) -> SurveyAssistantConfig:
    """
    Load configuration from YAML file.

    If the config file doesn't exist, creates it with defaults. A file that
    fails to parse or validate is reported and replaced by defaults in memory.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        default_config = SurveyAssistantConfig()
        config_dict = default_config.model_dump(mode="json")

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with config_path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Created default config at {config_path}")
        return default_config

    with config_path.open("r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    try:
        config = SurveyAssistantConfig(**config_data)
    except (ValidationError, TypeError) as e:
        logger.warning(f"Invalid config at {config_path}, using defaults: {e}")
        return SurveyAssistantConfig()

    logger.info(f"Loaded config from {config_path}")
    return config
