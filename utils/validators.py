"""Input validation helpers."""

import re

from core.constants import CampaignDefaults, PhoneRules, TaskName
from core.exceptions import ValidationError


NON_DIGIT_RE = re.compile(r"\D")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
TRUE_VALUES = {"1", "true", "yes", "on"}


def normalize_phone(value: str) -> str:
    """Strip everything but digits: ``"052-123-4567"`` -> ``"0521234567"``."""
    if not value:
        return ""
    return NON_DIGIT_RE.sub("", value)


def validate_phone(value: str) -> bool:
    """Accept numbers with 9 to 15 digits once normalized."""
    normalized = normalize_phone(value)
    return PhoneRules.MIN_DIGITS <= len(normalized) <= PhoneRules.MAX_DIGITS


def validate_full_name(value: str) -> bool:
    if not value:
        return False
    stripped = value.strip()
    return 1 <= len(stripped) <= 100


def validate_email(value: str) -> bool:
    return bool(value and EMAIL_RE.match(value.strip()))


def validate_hex_color(value: str) -> bool:
    return bool(value and HEX_COLOR_RE.match(value))


def parse_bool(value) -> bool:
    """Flag from JSON or form input; form values arrive as strings like ``"false"``."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def require_phone(value: str) -> str:
    """Normalize and validate a phone number, raising ValidationError."""
    if not validate_phone(value or ""):
        raise ValidationError(
            f"Phone number must contain {PhoneRules.MIN_DIGITS}-{PhoneRules.MAX_DIGITS} digits"
        )
    return normalize_phone(value)


def require_full_name(value: str) -> str:
    if not validate_full_name(value or ""):
        raise ValidationError("Full name is required (up to 100 characters)")
    return value.strip()


def require_email(value):
    """Optional email: None/empty passes through as None."""
    if value is None or not str(value).strip():
        return None
    if not validate_email(value):
        raise ValidationError(f"Invalid email address: {value!r}")
    return value.strip()


def require_winner_count(value) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Winner count must be an integer, got {value!r}") from None
    if count < 1:
        raise ValidationError("Winner count must be at least 1")
    return count


def require_task_name(value) -> TaskName:
    try:
        return TaskName(value)
    except ValueError:
        allowed = ", ".join(t.value for t in TaskName)
        raise ValidationError(f"Unknown task {value!r}; expected one of: {allowed}") from None


def require_title(value: str) -> str:
    title = (value or "").strip()
    if not title:
        raise ValidationError("Campaign title is required")
    if len(title) > CampaignDefaults.TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Campaign title is limited to {CampaignDefaults.TITLE_MAX_LENGTH} characters"
        )
    return title
