"""vCard 3.0 generation for contact-saving tasks and lead exports."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from database.models import Participant
from utils.share_links import international_phone

VCARD_MIME = "text/vcard;charset=utf-8"
_FILENAME_BAD_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")


def escape_vcard_value(value: Optional[str]) -> str:
    if not value:
        return ""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def generate_vcard(name: str, phone: str, organization: str = "") -> str:
    """Single contact card; the phone gets a leading ``+`` if missing."""
    formatted_phone = phone if phone.startswith("+") else f"+{phone}"
    lines = [
        "BEGIN:VCARD",
        "VERSION:3.0",
        f"FN:{escape_vcard_value(name)}",
        f"N:;{escape_vcard_value(name)};;;",
        f"TEL;TYPE=CELL:{formatted_phone}",
    ]
    if organization:
        lines.append(f"ORG:{escape_vcard_value(organization)}")
    lines.append("END:VCARD")
    return "\r\n".join(lines)


def generate_multi_vcard(participants: Iterable[Participant], organization: str = "") -> str:
    """One file with a card per participant; local numbers become international."""
    return "\r\n".join(
        generate_vcard(p.full_name or "Contact", international_phone(p.phone), organization)
        for p in participants
    )


def sanitize_filename(filename: Optional[str], default: str = "contact") -> str:
    if not filename:
        return default
    cleaned = _WHITESPACE.sub("_", _FILENAME_BAD_CHARS.sub("", filename))[:50]
    return cleaned or default
