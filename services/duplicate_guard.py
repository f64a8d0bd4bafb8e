"""Duplicate registration guard: one participant per (campaign, phone)."""

from __future__ import annotations

from typing import Optional

from core import get_logger
from database.models import Participant
from database.repositories import ParticipantRepository

logger = get_logger(__name__)


class DuplicateRegistrationGuard:
    """Read-only lookup of an existing participant by normalized phone."""

    def __init__(self, participants: ParticipantRepository) -> None:
        self.participants = participants

    async def find_existing(self, campaign_id: str, normalized_phone: str) -> Optional[Participant]:
        """Return the participant already registered with this phone, if any.

        Args:
            campaign_id: Campaign document ID
            normalized_phone: Digits-only phone number; compared exactly

        Returns:
            The first matching participant or None

        Raises:
            TransientStoreError: If the store lookup fails
        """
        matches = await self.participants.find_by_phone(campaign_id, normalized_phone)
        if not matches:
            return None

        if len(matches) > 1:
            # Two registrations raced past the guard; keep resolving to the first
            logger.warning(
                f"Campaign {campaign_id} has {len(matches)} participants "
                f"sharing one phone number; using {matches[0].id}"
            )
        return matches[0]
