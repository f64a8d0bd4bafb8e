"""Ticket ledger: participant creation, referral credits and task flags."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from prometheus_client import Counter

from core import get_logger
from core.constants import TaskName
from core.exceptions import ParticipantNotFoundError
from database.models import Participant, to_iso, utcnow
from database.repositories import CampaignRepository, ParticipantRepository
from utils.validators import require_task_name

logger = get_logger(__name__)

REFERRAL_CREDITS = Counter(
    "lottery_referral_credits_total",
    "Referral ticket credits by outcome",
    ["outcome"],
)


@dataclass(slots=True)
class NewParticipant:
    """Validated fields for a participant about to be created."""
    full_name: str
    phone: str
    email: Optional[str] = None
    referred_by: Optional[str] = None


class TicketLedger:
    """Owns every write to participant ticket counts and task flags."""

    INITIAL_TICKETS = 1

    def __init__(self, participants: ParticipantRepository, campaigns: CampaignRepository) -> None:
        self.participants = participants
        self.campaigns = campaigns

    async def create_participant(self, campaign_id: str, fields: NewParticipant) -> str:
        """Create a participant holding exactly one ticket.

        The referrer id is stored verbatim; it must already be resolved to
        a full id (or be None). The campaign's participant counter is
        incremented atomically afterwards.

        Returns:
            The new participant id
        """
        participant = Participant(
            id="",
            full_name=fields.full_name,
            phone=fields.phone,
            email=fields.email,
            referred_by=fields.referred_by,
            tickets=self.INITIAL_TICKETS,
            joined_at=utcnow(),
        )
        participant_id = await self.participants.create(campaign_id, participant.to_document())
        await self.campaigns.increment_participants(campaign_id)

        logger.info(
            f"Participant {participant_id} joined campaign {campaign_id}"
            + (f" (referred by {fields.referred_by})" if fields.referred_by else "")
        )
        return participant_id

    async def credit_referral_ticket(self, campaign_id: str, referrer_id: str) -> bool:
        """Give the referrer one extra ticket. Best effort.

        Uses the store's atomic increment, so concurrent credits to the
        same referrer are never lost. Failures are logged and swallowed.

        Returns:
            True if the ticket was credited
        """
        try:
            credited = await self.participants.increment_tickets(campaign_id, referrer_id)
        except Exception as e:
            REFERRAL_CREDITS.labels(outcome="failed").inc()
            logger.error(
                f"Failed to credit referral ticket to {referrer_id} in campaign {campaign_id}: {e}",
                exc_info=True,
            )
            return False

        if not credited:
            REFERRAL_CREDITS.labels(outcome="missing_referrer").inc()
            logger.warning(f"Referrer {referrer_id} no longer exists in campaign {campaign_id}")
            return False

        REFERRAL_CREDITS.labels(outcome="credited").inc()
        logger.info(f"Added ticket to referrer {referrer_id} in campaign {campaign_id}")
        return True

    async def mark_task_completed(self, campaign_id: str, participant_id: str, task_name) -> Participant:
        """Set one task flag to true. Idempotent; flags never reset.

        Raises:
            ValidationError: Unknown task name
            ParticipantNotFoundError: Participant does not exist
        """
        task = require_task_name(task_name)
        participant = await self.participants.get(campaign_id, participant_id)
        if participant is None:
            raise ParticipantNotFoundError(
                f"Participant {participant_id} not found in campaign {campaign_id}"
            )

        if participant.task_state()[task.value]:
            return participant

        # Only the flag being completed is written, so a concurrent
        # completion of the other task is never overwritten with False
        await self.participants.set_task_flags(campaign_id, participant_id, {task.value: True})
        if task is TaskName.SAVED_CONTACT:
            participant.saved_contact = True
        else:
            participant.shared_whatsapp = True

        logger.info(f"Participant {participant_id} completed task {task.value}")
        return participant

    async def get_participant(self, campaign_id: str, participant_id: str) -> Participant:
        participant = await self.participants.get(campaign_id, participant_id)
        if participant is None:
            raise ParticipantNotFoundError(
                f"Participant {participant_id} not found in campaign {campaign_id}"
            )
        return participant

    async def list_participants(self, campaign_id: str) -> List[Participant]:
        return await self.participants.list_by_campaign(campaign_id)

    async def ticket_counts(self, campaign_id: str) -> Dict[str, int]:
        return {p.id: p.weight for p in await self.list_participants(campaign_id)}

    async def total_tickets(self, campaign_id: str) -> int:
        return sum((await self.ticket_counts(campaign_id)).values())

    async def leaderboard(self, campaign_id: str, limit: int = 5) -> List[Participant]:
        """Top participants by tickets; earlier joiners win ties."""
        participants = await self.list_participants(campaign_id)
        participants.sort(key=lambda p: (-p.weight, to_iso(p.joined_at) or "", p.id))
        return participants[:limit]
