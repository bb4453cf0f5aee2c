"""
Configuration loading for the release notes tool.

Every key is optional; anything left out of the YAML file falls back to the
defaults used by the Jira pipeline modules.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

from relnotes.jira.classify import (
    ANDROID_KEY_PREFIX,
    APPROVED_STATUS_TOKENS,
    IOS_KEY_PREFIX,
)
from relnotes.jira.dates import DEFAULT_DATE_TRANSLATIONS
from relnotes.jira.extract import BACKLOG_ID_PATTERN, EXTERNAL_ID_PATTERN

logger = logging.getLogger(__name__)


@dataclass
class ReleaseSettings:
    """Settings shared by the extractor, the classifier and the report."""

    approved_statuses: List[str] = field(
        default_factory=lambda: list(APPROVED_STATUS_TOKENS)
    )
    date_translations: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DATE_TRANSLATIONS)
    )
    android_key_prefix: str = ANDROID_KEY_PREFIX
    ios_key_prefix: str = IOS_KEY_PREFIX
    backlog_id_pattern: str = BACKLOG_ID_PATTERN
    external_id_pattern: str = EXTERNAL_ID_PATTERN
    browse_url: str = "https://commencis.atlassian.net/browse/"
    project_name: str = "İşCep Projesi"
    output_directory: str = "output"


def load_config(config_path: Optional[Union[str, Path]]) -> dict:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file, or None

    Returns:
        Configuration dictionary, empty when the file does not exist

    Raises:
        ValueError: If the file exists but is not valid YAML
    """
    if not config_path:
        return {}

    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Config file {path} not found, using defaults")
        return {}

    logger.info(f"Loading configuration from {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML configuration: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Configuration in {path} must be a mapping")
    return config


def settings_from_config(config: dict) -> ReleaseSettings:
    """
    Build settings from a loaded configuration dictionary.

    ``date_translations`` entries are merged over the default table so a
    config file only has to list the tokens of an extra locale.
    """
    settings = ReleaseSettings()

    if "approved_statuses" in config:
        statuses = config["approved_statuses"]
        if not isinstance(statuses, list) or not statuses:
            raise ValueError("approved_statuses must be a non-empty list")
        settings.approved_statuses = [str(s).lower() for s in statuses]

    translations = config.get("date_translations") or {}
    if not isinstance(translations, dict):
        raise ValueError("date_translations must be a mapping")
    for token, english in translations.items():
        settings.date_translations[str(token).lower()] = str(english).lower()

    for key in (
        "android_key_prefix",
        "ios_key_prefix",
        "backlog_id_pattern",
        "external_id_pattern",
        "browse_url",
        "project_name",
        "output_directory",
    ):
        if config.get(key):
            setattr(settings, key, str(config[key]))

    logger.debug(f"Settings: {settings}")
    return settings
