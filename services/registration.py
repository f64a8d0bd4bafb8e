"""Participant registration and viral task completion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from prometheus_client import Counter

from core import get_logger
from core.constants import TaskName
from core.exceptions import ParticipantNotFoundError
from services.campaigns import CampaignService
from services.duplicate_guard import DuplicateRegistrationGuard
from services.referral_resolver import ReferralResolver
from services.ticket_ledger import NewParticipant, TicketLedger
from utils.validators import require_email, require_full_name, require_phone

logger = get_logger(__name__)

REGISTRATIONS = Counter(
    "lottery_registrations_total",
    "Registrations by kind",
    ["kind"],
)


@dataclass(slots=True)
class RegistrationRequest:
    campaign_id: str
    full_name: str
    phone: str
    referral_token: Optional[str] = None
    email: Optional[str] = None


@dataclass
class RegistrationContext:
    """Per-visitor state, owned by the caller and passed back in.

    Returned by ``register`` and accepted by ``complete_task`` so the
    services never hold a "current participant".
    """
    campaign_id: str
    participant_id: str
    is_reentry: bool = False
    tickets_awarded_to_self: int = 1
    referrer_id: Optional[str] = None
    referral_credited: bool = False
    tasks: Dict[str, bool] = field(default_factory=lambda: {t.value: False for t in TaskName})

    @property
    def all_tasks_completed(self) -> bool:
        return all(self.tasks.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "participant_id": self.participant_id,
            "is_reentry": self.is_reentry,
            "tickets_awarded_to_self": self.tickets_awarded_to_self,
            "referrer_id": self.referrer_id,
            "referral_credited": self.referral_credited,
            "tasks": dict(self.tasks),
            "all_tasks_completed": self.all_tasks_completed,
        }


class RegistrationService:
    """Runs duplicate guard -> referral resolver -> ticket ledger."""

    def __init__(
        self,
        campaigns: CampaignService,
        guard: DuplicateRegistrationGuard,
        resolver: ReferralResolver,
        ledger: TicketLedger,
    ) -> None:
        self.campaigns = campaigns
        self.guard = guard
        self.resolver = resolver
        self.ledger = ledger

    async def register(self, request: RegistrationRequest) -> RegistrationContext:
        """Register a participant, or resume an existing registration.

        A phone already present in the campaign is a re-entry: the existing
        participant is returned and no referral ticket is credited. Otherwise
        the participant is created with one ticket and a resolved referrer
        receives one more (best effort).

        Raises:
            ValidationError: Bad name, phone or email (before any store access)
            CampaignNotFoundError: Unknown campaign
            CampaignClosedError: Campaign ended or inactive
            TransientStoreError: Guard, resolver or create failed
        """
        full_name = require_full_name(request.full_name)
        phone = require_phone(request.phone)
        email = require_email(request.email)

        campaign = await self.campaigns.get_open_campaign(request.campaign_id)

        existing = await self.guard.find_existing(campaign.id, phone)
        if existing is not None:
            REGISTRATIONS.labels(kind="reentry").inc()
            logger.info(f"Re-entry of participant {existing.id} in campaign {campaign.id}")
            return RegistrationContext(
                campaign_id=campaign.id,
                participant_id=existing.id,
                is_reentry=True,
                tickets_awarded_to_self=0,
                referrer_id=existing.referred_by,
                tasks=existing.task_state(),
            )

        referrer_id = None
        if request.referral_token:
            referrer_id = await self.resolver.resolve(campaign.id, request.referral_token)

        participant_id = await self.ledger.create_participant(
            campaign.id,
            NewParticipant(full_name=full_name, phone=phone, email=email, referred_by=referrer_id),
        )

        credited = False
        if referrer_id is not None:
            credited = await self.ledger.credit_referral_ticket(campaign.id, referrer_id)

        REGISTRATIONS.labels(kind="new").inc()
        return RegistrationContext(
            campaign_id=campaign.id,
            participant_id=participant_id,
            referrer_id=referrer_id,
            referral_credited=credited,
        )

    async def resume(self, campaign_id: str, participant_id: str) -> RegistrationContext:
        """Rebuild a context for a participant returning with a known id."""
        campaign = await self.campaigns.get_campaign(campaign_id)
        participant = await self.ledger.get_participant(campaign.id, participant_id)
        return RegistrationContext(
            campaign_id=campaign.id,
            participant_id=participant.id,
            is_reentry=True,
            tickets_awarded_to_self=0,
            referrer_id=participant.referred_by,
            tasks=participant.task_state(),
        )

    async def complete_task(self, context: RegistrationContext, task_name) -> RegistrationContext:
        """Mark a viral task done for the participant in ``context``."""
        if not context.participant_id:
            raise ParticipantNotFoundError("Register before completing tasks")
        participant = await self.ledger.mark_task_completed(
            context.campaign_id, context.participant_id, task_name
        )
        context.tasks = participant.task_state()
        return context
