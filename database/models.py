"""Document schemas for campaigns, participants and draw runs.

Each model maps to and from the JSON body stored in the document store.
Unknown fields found in stored documents are dropped on load.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.constants import CampaignDefaults, TaskName


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp (``Z`` suffix accepted); naive values are UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True)
class Campaign:
    id: str
    title: str
    end_date: datetime
    owner_id: str
    description: str = ""
    is_active: bool = True
    views_count: int = 0
    participants_count: int = 0
    whatsapp_share_text: str = CampaignDefaults.SHARE_TEXT
    contact_vcard_name: str = ""
    contact_phone_number: str = ""
    primary_color: str = CampaignDefaults.PRIMARY_COLOR
    background_color: str = CampaignDefaults.BACKGROUND_COLOR
    banner_url: Optional[str] = None
    share_image_url: Optional[str] = None
    share_video_url: Optional[str] = None
    manager_lead_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def has_ended(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.end_date

    def accepts_registrations(self, now: Optional[datetime] = None) -> bool:
        return self.is_active and not self.has_ended(now)

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Campaign":
        theme = data.get("theme") or {}
        return cls(
            id=doc_id,
            title=data.get("title", ""),
            end_date=parse_datetime(data.get("end_date")),
            owner_id=data.get("owner_id", ""),
            description=data.get("description") or "",
            is_active=bool(data.get("is_active", True)),
            views_count=int(data.get("views_count") or 0),
            participants_count=int(data.get("participants_count") or 0),
            whatsapp_share_text=data.get("whatsapp_share_text") or CampaignDefaults.SHARE_TEXT,
            contact_vcard_name=data.get("contact_vcard_name") or "",
            contact_phone_number=data.get("contact_phone_number") or "",
            primary_color=theme.get("primary_color") or CampaignDefaults.PRIMARY_COLOR,
            background_color=theme.get("background_color") or CampaignDefaults.BACKGROUND_COLOR,
            banner_url=data.get("banner_url"),
            share_image_url=data.get("share_image_url"),
            share_video_url=data.get("share_video_url"),
            manager_lead_id=data.get("manager_lead_id"),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "end_date": to_iso(self.end_date),
            "owner_id": self.owner_id,
            "is_active": self.is_active,
            "views_count": self.views_count,
            "participants_count": self.participants_count,
            "whatsapp_share_text": self.whatsapp_share_text,
            "contact_vcard_name": self.contact_vcard_name,
            "contact_phone_number": self.contact_phone_number,
            "theme": {
                "primary_color": self.primary_color,
                "background_color": self.background_color,
            },
            "banner_url": self.banner_url,
            "share_image_url": self.share_image_url,
            "share_video_url": self.share_video_url,
            "manager_lead_id": self.manager_lead_id,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_document()
        data["id"] = self.id
        return data

    def to_public_dict(self) -> Dict[str, Any]:
        data = self.to_dict()
        del data["owner_id"]
        return data


@dataclass(slots=True)
class Participant:
    id: str
    full_name: str
    phone: str
    tickets: int = 1
    email: Optional[str] = None
    referred_by: Optional[str] = None
    saved_contact: bool = False
    shared_whatsapp: bool = False
    joined_at: Optional[datetime] = None

    @property
    def weight(self) -> int:
        """Draw weight; unset or zero ticket counts still count once."""
        return max(self.tickets or 0, 1)

    @property
    def all_tasks_completed(self) -> bool:
        return self.saved_contact and self.shared_whatsapp

    def task_state(self) -> Dict[str, bool]:
        return {
            TaskName.SAVED_CONTACT.value: self.saved_contact,
            TaskName.SHARED_WHATSAPP.value: self.shared_whatsapp,
        }

    @property
    def masked_name(self) -> str:
        """First name plus last-name initial, e.g. ``"Dana L."``."""
        parts = self.full_name.split()
        if not parts:
            return ""
        if len(parts) == 1:
            return parts[0]
        return f"{parts[0]} {parts[1][0]}."

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Participant":
        tasks = data.get("tasks_completed") or {}
        return cls(
            id=doc_id,
            full_name=data.get("full_name", ""),
            phone=data.get("phone", ""),
            tickets=int(data.get("tickets") or 0),
            email=data.get("email"),
            referred_by=data.get("referred_by"),
            saved_contact=bool(tasks.get(TaskName.SAVED_CONTACT.value, False)),
            shared_whatsapp=bool(tasks.get(TaskName.SHARED_WHATSAPP.value, False)),
            joined_at=parse_datetime(data.get("joined_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "full_name": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "referred_by": self.referred_by,
            "tickets": self.tickets,
            "tasks_completed": self.task_state(),
            "joined_at": to_iso(self.joined_at),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_document()
        data["id"] = self.id
        return data


@dataclass(slots=True)
class DrawRun:
    id: str
    campaign_id: str
    executed_at: datetime
    winner_ids: List[str]
    population_size: int
    landing_index: int
    weighted_additional_winners: bool = False
    requested_by: Optional[str] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "DrawRun":
        return cls(
            id=doc_id,
            campaign_id=data.get("campaign_id", ""),
            executed_at=parse_datetime(data.get("executed_at")),
            winner_ids=list(data.get("winner_ids") or []),
            population_size=int(data.get("population_size") or 0),
            landing_index=int(data.get("landing_index") or 0),
            weighted_additional_winners=bool(data.get("weighted_additional_winners", False)),
            requested_by=data.get("requested_by"),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "executed_at": to_iso(self.executed_at),
            "winner_ids": list(self.winner_ids),
            "winners_count": len(self.winner_ids),
            "population_size": self.population_size,
            "landing_index": self.landing_index,
            "weighted_additional_winners": self.weighted_additional_winners,
            "requested_by": self.requested_by,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_document()
        data["id"] = self.id
        return data
