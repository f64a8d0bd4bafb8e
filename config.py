"""Application configuration module.

Reads settings from environment variables (optionally loaded from a
``.env`` file) with defaults suitable for local development.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from core.constants import (
    CacheDefaults,
    CampaignDefaults,
    DatabaseDefaults,
    LotteryDefaults,
    ReferralDefaults,
)

load_dotenv()


def _get_bool(name: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    """Get integer from environment variable with fallback."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_str(name: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.getenv(name, default)


def _get_optional_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    return value or None


@dataclass(frozen=True)
class Config:
    environment: str
    debug: bool
    web_host: str
    web_port: int
    secret_key: str
    admin_username: str
    admin_password: str
    database_path: str
    db_pool_size: int
    db_busy_timeout: int
    log_folder: str
    public_base_url: str
    referral_prefix_length: int
    leaderboard_size: int
    weighted_additional_winners: bool
    campaign_cache_ttl: int
    enable_whatsapp: bool
    green_api_url: Optional[str]
    green_api_instance_id: Optional[str]
    green_api_token: Optional[str]

    @property
    def whatsapp_configured(self) -> bool:
        return bool(
            self.enable_whatsapp
            and self.green_api_url
            and self.green_api_instance_id
            and self.green_api_token
        )


def load_config() -> Config:
    """Load application configuration from environment variables.

    Returns:
        Config: Application configuration with validated values
    """
    return Config(
        environment=_get_str("ENVIRONMENT", "development"),
        debug=_get_bool("DEBUG", False),
        web_host=_get_str("WEB_HOST", "0.0.0.0"),
        web_port=_get_int("WEB_PORT", 5000),
        secret_key=_get_str(
            "SECRET_KEY",
            "production_secret_key_must_be_changed_in_production_environment"
        ),
        admin_username=_get_str("ADMIN_USERNAME", "admin"),
        admin_password=_get_str("ADMIN_PASSWORD", "123456"),
        database_path=_get_str("DATABASE_PATH", "data/viral_lottery.sqlite"),
        db_pool_size=_get_int("DB_POOL_SIZE", DatabaseDefaults.POOL_SIZE),
        db_busy_timeout=_get_int("DB_BUSY_TIMEOUT", DatabaseDefaults.BUSY_TIMEOUT),
        log_folder=_get_str("LOG_FOLDER", "logs"),
        public_base_url=_get_str("PUBLIC_BASE_URL", "http://localhost:5000").rstrip("/"),
        referral_prefix_length=_get_int("REFERRAL_PREFIX_LENGTH", ReferralDefaults.PREFIX_LENGTH),
        leaderboard_size=_get_int("LEADERBOARD_SIZE", CampaignDefaults.LEADERBOARD_SIZE),
        weighted_additional_winners=_get_bool(
            "WEIGHTED_ADDITIONAL_WINNERS", LotteryDefaults.WEIGHTED_ADDITIONAL_WINNERS
        ),
        campaign_cache_ttl=_get_int("CAMPAIGN_CACHE_TTL", CacheDefaults.CAMPAIGN_TTL),
        enable_whatsapp=_get_bool("ENABLE_WHATSAPP", True),
        green_api_url=_get_optional_str("GREEN_API_URL"),
        green_api_instance_id=_get_optional_str("GREEN_API_INSTANCE_ID"),
        green_api_token=_get_optional_str("GREEN_API_TOKEN"),
    )
