"""Application-wide constants and configuration values."""

from __future__ import annotations

from enum import Enum


# Store collections
class Collections:
    """Document store collection names."""
    CAMPAIGNS = "campaigns"
    PARTICIPANTS = "leads"
    DRAW_RUNS = "draw_runs"

    @staticmethod
    def participants(campaign_id: str) -> str:
        return f"{Collections.CAMPAIGNS}/{campaign_id}/{Collections.PARTICIPANTS}"

    @staticmethod
    def draw_runs(campaign_id: str) -> str:
        return f"{Collections.CAMPAIGNS}/{campaign_id}/{Collections.DRAW_RUNS}"


# Database constants
class DatabaseDefaults:
    """Default database configuration."""
    POOL_SIZE = 5
    BUSY_TIMEOUT = 5000  # milliseconds
    AUTO_ID_LENGTH = 20
    AUTO_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"


# Phone rules
class PhoneRules:
    """Normalized phone constraints (digits only)."""
    MIN_DIGITS = 9
    MAX_DIGITS = 15
    LOCAL_PREFIX = "0"
    COUNTRY_CODE = "972"


class TaskName(str, Enum):
    """Viral tasks a participant can complete."""
    SAVED_CONTACT = "saved_contact"
    SHARED_WHATSAPP = "shared_whatsapp"


# Referral constants
class ReferralDefaults:
    """Referral link configuration."""
    PREFIX_LENGTH = 6  # short links truncate ids to this many characters
    SHORT_CAMPAIGN_ID_MAX = 15  # campaign ids shorter than this are prefixes


# Lottery constants
class LotteryDefaults:
    """Lottery configuration."""
    MIN_PARTICIPANTS = 1
    MIN_WINNERS = 1
    WEIGHTED_ADDITIONAL_WINNERS = False


class SpinDefaults:
    """Wheel animation parameters."""
    MIN_TURNS = 5
    MAX_TURNS = 10
    DURATION_MS = 5000
    SLICE_MARGIN = 0.1  # keep the pointer away from slice borders


class CampaignDefaults:
    """Campaign creation defaults."""
    PRIMARY_COLOR = "#6366f1"
    BACKGROUND_COLOR = "#f8fafc"
    SHARE_TEXT = "בואו להשתתף בהגרלה! {{link}}"
    LINK_PLACEHOLDER = "{{link}}"
    LEADERBOARD_SIZE = 5
    TITLE_MAX_LENGTH = 200


class CacheDefaults:
    """Default cache configuration."""
    CAMPAIGN_TTL = 60  # seconds
    CAMPAIGN_SIZE = 1000


class GreenApiDefaults:
    """WhatsApp gateway (Green API) defaults."""
    TIMEOUT = 15  # seconds
    CHAT_SUFFIX = "@c.us"
    START_PATTERN = r"START_([A-Za-z0-9]+)"
