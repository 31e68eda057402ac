"""
Settings for the sync platform: YAML file first, environment on top.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class CrawlSettings(BaseModel):
    max_page: int = Field(50, ge=1)
    page_delay_seconds: float = Field(0.5, ge=0)
    category_concurrency: int = Field(5, ge=1)


class EnrichSettings(BaseModel):
    detail_concurrency: int = Field(5, ge=1)


class HttpSettings(BaseModel):
    timeout_seconds: float = Field(10.0, gt=0)
    max_retries: int = Field(1, ge=1)
    user_agent: str = "Mozilla/5.0"


class ScheduleSettings(BaseModel):
    cron: str = "0 2 * * *"
    timezone: str = "Europe/Istanbul"


class TelegramSettings(BaseModel):
    bot_token: Optional[str] = None
    chat_id: Optional[str] = None


class Settings(BaseModel):
    categories_csv: str = "categories.csv"
    db_path: str = "catalog.db"
    crawl: CrawlSettings = Field(default_factory=CrawlSettings)
    enrich: EnrichSettings = Field(default_factory=EnrichSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)


# env var -> (section, key); section None means top level
_ENV_OVERRIDES = {
    "CATEGORIES_CSV": (None, "categories_csv"),
    "DB_PATH": (None, "db_path"),
    "SYNC_CRON": ("schedule", "cron"),
    "SCHEDULER_TIMEZONE": ("schedule", "timezone"),
    "TELEGRAM_BOT_TOKEN": ("telegram", "bot_token"),
    "TELEGRAM_CHAT_ID": ("telegram", "chat_id"),
}


def _apply_env(data: Dict[str, Any], environ: Dict[str, str]) -> Dict[str, Any]:
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if not value:
            continue
        if section is None:
            data[key] = value
        else:
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][key] = value
    return data


def load_settings(
    config_path: str = "config.yml",
    environ: Optional[Dict[str, str]] = None,
) -> Settings:
    """Load settings from YAML (if present) and apply environment overrides."""
    path = Path(config_path)
    data: Dict[str, Any] = {}

    if path.exists():
        with path.open() as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
    else:
        logger.warning(f"Config file not found: {config_path}, using defaults")

    data = _apply_env(data, dict(os.environ) if environ is None else environ)
    return Settings.model_validate(data)
