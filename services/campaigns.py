"""Campaign management, public loading and reporting."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from cachetools import TTLCache

from core import get_logger
from core.constants import CacheDefaults, CampaignDefaults, ReferralDefaults
from core.exceptions import CampaignClosedError, CampaignNotFoundError, ValidationError
from database.models import Campaign, parse_datetime, to_iso, utcnow
from database.repositories import CampaignRepository, ParticipantRepository
from utils.validators import normalize_phone, parse_bool, require_title, validate_hex_color
from utils.vcard import generate_multi_vcard

logger = get_logger(__name__)

# Fields a manager may set on create/update
_TEXT_FIELDS = (
    "description",
    "whatsapp_share_text",
    "contact_vcard_name",
    "banner_url",
    "share_image_url",
    "share_video_url",
    "manager_lead_id",
)


@dataclass(slots=True)
class CampaignStats:
    views: int
    leads: int
    shares: int
    saved_contacts: int
    total_tickets: int

    @property
    def conversion_percent(self) -> int:
        if self.views <= 0:
            return 0
        return round(self.leads / self.views * 100)

    def to_dict(self) -> Dict[str, int]:
        return {
            "views": self.views,
            "leads": self.leads,
            "shares": self.shares,
            "saved_contacts": self.saved_contacts,
            "total_tickets": self.total_tickets,
            "conversion_percent": self.conversion_percent,
        }


class CampaignService:
    """Campaign CRUD plus the public (participant-facing) read path."""

    def __init__(
        self,
        campaigns: CampaignRepository,
        participants: ParticipantRepository,
        cache_ttl: int = CacheDefaults.CAMPAIGN_TTL,
    ) -> None:
        self.campaigns = campaigns
        self.participants = participants
        # short id -> full id; ids never change so only deletes invalidate
        self._short_ids: TTLCache = TTLCache(maxsize=CacheDefaults.CAMPAIGN_SIZE, ttl=cache_ttl)

    async def create_campaign(self, owner_id: str, payload: Dict[str, Any]) -> Campaign:
        now = utcnow()
        campaign = Campaign(
            id="",
            title=require_title(payload.get("title")),
            end_date=_require_end_date(payload.get("end_date")),
            owner_id=owner_id,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        _apply_fields(campaign, payload)
        campaign.id = await self.campaigns.create(campaign.to_document())
        logger.info(f"Campaign {campaign.id} created by {owner_id}: {campaign.title!r}")
        return campaign

    async def resolve_campaign_id(self, token: str) -> str:
        """Full campaign id for a full or shortened id.

        Raises:
            CampaignNotFoundError: If nothing matches
        """
        token = (token or "").strip()
        if not token:
            raise CampaignNotFoundError("Campaign id is required")
        if len(token) >= ReferralDefaults.SHORT_CAMPAIGN_ID_MAX:
            return token

        cached = self._short_ids.get(token)
        if cached:
            return cached

        if await self.campaigns.get(token) is not None:
            full_id = token
        else:
            match = await self.campaigns.find_by_prefix(token)
            if match is None:
                raise CampaignNotFoundError(f"Campaign {token} not found")
            full_id = match.id
        self._short_ids[token] = full_id
        return full_id

    async def get_campaign(self, campaign_id: str) -> Campaign:
        full_id = await self.resolve_campaign_id(campaign_id)
        campaign = await self.campaigns.get(full_id)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        return campaign

    async def get_open_campaign(self, campaign_id: str, now: Optional[datetime] = None) -> Campaign:
        """Campaign that currently accepts registrations.

        Raises:
            CampaignNotFoundError: Unknown campaign
            CampaignClosedError: Campaign ended or inactive
        """
        campaign = await self.get_campaign(campaign_id)
        if campaign.has_ended(now):
            raise CampaignClosedError(f"Campaign {campaign.id} has ended")
        if not campaign.is_active:
            raise CampaignClosedError(f"Campaign {campaign.id} is not active")
        return campaign

    async def load_public_campaign(self, campaign_id: str) -> Campaign:
        """Open campaign for the landing page; counts a view (best effort)."""
        campaign = await self.get_open_campaign(campaign_id)
        try:
            if await self.campaigns.increment_views(campaign.id):
                campaign.views_count += 1
        except Exception as e:
            logger.warning(f"Failed to count view for campaign {campaign.id}: {e}")
        return campaign

    async def list_campaigns(self, owner_id: Optional[str] = None) -> List[Campaign]:
        if owner_id is None:
            return await self.campaigns.list_all()
        return await self.campaigns.list_by_owner(owner_id)

    async def update_campaign(self, campaign_id: str, payload: Dict[str, Any]) -> Campaign:
        campaign = await self.get_campaign(campaign_id)
        if "title" in payload:
            campaign.title = require_title(payload["title"])
        if "end_date" in payload:
            campaign.end_date = _require_end_date(payload["end_date"])
        if "is_active" in payload:
            campaign.is_active = parse_bool(payload["is_active"])
        _apply_fields(campaign, payload)
        campaign.updated_at = utcnow()

        document = campaign.to_document()
        # Counters only change through atomic increments; ownership never changes
        for name in ("views_count", "participants_count", "owner_id", "created_at"):
            document.pop(name)
        await self.campaigns.update(campaign.id, document)
        logger.info(f"Campaign {campaign.id} updated")
        return campaign

    async def delete_campaign(self, campaign_id: str) -> int:
        campaign = await self.get_campaign(campaign_id)
        removed = await self.campaigns.delete(campaign.id)
        self._short_ids.clear()
        logger.info(f"Campaign {campaign.id} deleted ({removed} documents)")
        return removed

    async def campaign_stats(self, campaign_id: str) -> CampaignStats:
        campaign = await self.get_campaign(campaign_id)
        leads = await self.participants.list_by_campaign(campaign.id)
        return CampaignStats(
            views=campaign.views_count,
            leads=len(leads),
            shares=sum(1 for p in leads if p.shared_whatsapp),
            saved_contacts=sum(1 for p in leads if p.saved_contact),
            total_tickets=sum(p.weight for p in leads),
        )

    async def export_leads_csv(self, campaign_id: str) -> str:
        campaign = await self.get_campaign(campaign_id)
        leads = await self.participants.list_by_campaign(campaign.id)
        leads.sort(key=lambda p: to_iso(p.joined_at) or "", reverse=True)

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow([
            "id", "full_name", "phone", "email", "tickets",
            "saved_contact", "shared_whatsapp", "referred_by", "joined_at",
        ])
        for p in leads:
            writer.writerow([
                p.id, p.full_name, p.phone, p.email or "", p.weight,
                p.saved_contact, p.shared_whatsapp, p.referred_by or "", to_iso(p.joined_at) or "",
            ])
        return buffer.getvalue()

    async def export_vcf(self, campaign_id: str) -> str:
        campaign = await self.get_campaign(campaign_id)
        leads = await self.participants.list_by_campaign(campaign.id)
        if not leads:
            raise ValidationError(f"Campaign {campaign.id} has no participants to export")
        return generate_multi_vcard(leads, organization=campaign.title)


def _require_end_date(value: Any) -> datetime:
    try:
        end_date = parse_datetime(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid end date: {value!r}") from None
    if end_date is None:
        raise ValidationError("Campaign end date is required")
    return end_date


def _apply_fields(campaign: Campaign, payload: Dict[str, Any]) -> None:
    for name in _TEXT_FIELDS:
        if name in payload:
            value = payload[name]
            setattr(campaign, name, value.strip() if isinstance(value, str) else value)

    if not campaign.whatsapp_share_text:
        campaign.whatsapp_share_text = CampaignDefaults.SHARE_TEXT
    if campaign.description is None:
        campaign.description = ""
    if campaign.contact_vcard_name is None:
        campaign.contact_vcard_name = ""

    if "contact_phone_number" in payload:
        campaign.contact_phone_number = normalize_phone(payload["contact_phone_number"] or "")

    for name in ("primary_color", "background_color"):
        if name in payload and payload[name]:
            if not validate_hex_color(payload[name]):
                raise ValidationError(f"{name} must be a #rrggbb color")
            setattr(campaign, name, payload[name])
