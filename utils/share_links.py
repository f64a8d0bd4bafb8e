"""Shareable campaign links and WhatsApp deep links."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import quote, urlencode

from core.constants import CampaignDefaults, PhoneRules, ReferralDefaults

_PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def short_campaign_url(
    base_url: str,
    campaign_id: str,
    referrer_id: Optional[str] = None,
    prefix_length: int = ReferralDefaults.PREFIX_LENGTH,
) -> str:
    """``/l/<campaign prefix>[/<referrer prefix>]`` link used in WhatsApp shares."""
    path = f"/l/{campaign_id[:prefix_length]}"
    if referrer_id:
        path += f"/{referrer_id[:prefix_length]}"
    return f"{base_url.rstrip('/')}{path}"


def long_campaign_url(base_url: str, campaign_id: str, referrer_id: Optional[str] = None) -> str:
    params = {"c": campaign_id}
    if referrer_id:
        params["ref"] = referrer_id
    return f"{base_url.rstrip('/')}/index.html?{urlencode(params)}"


def landing_redirect_path(campaign_id: str, referral_token: Optional[str] = None) -> str:
    """Where a short link lands in the single-page app."""
    params = {"c": campaign_id}
    if referral_token:
        params["r"] = referral_token
    return f"/?{urlencode(params)}"


def whatsapp_share_url(text: str) -> str:
    return f"https://wa.me/?text={quote(text, safe='')}"


def campaign_share_url(share_text: Optional[str], campaign_url: str) -> str:
    """WhatsApp share link; ``{{link}}`` in the template is replaced, else appended."""
    template = share_text or CampaignDefaults.SHARE_TEXT
    placeholder = CampaignDefaults.LINK_PLACEHOLDER
    if placeholder in template:
        text = template.replace(placeholder, campaign_url)
    else:
        text = f"{template}\n{campaign_url}"
    return whatsapp_share_url(text)


def international_phone(phone: str) -> str:
    """Local numbers (leading 0) become 972-prefixed; ``+`` is dropped."""
    clean = _PHONE_SEPARATORS.sub("", phone or "")
    if clean.startswith("+"):
        clean = clean[1:]
    if clean.startswith(PhoneRules.LOCAL_PREFIX):
        clean = PhoneRules.COUNTRY_CODE + clean[1:]
    return clean

