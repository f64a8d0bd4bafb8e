"""Resolve referral tokens from shared links to participant ids.

Shared short links carry only the first characters of the referrer's id,
so a token is looked up in two phases: exact id first, then a prefix scan
over the campaign's participants in store enumeration order (ascending
id). When several ids share the prefix the first one wins.
"""

from __future__ import annotations

from typing import Optional

from core import get_logger
from database.repositories import ParticipantRepository

logger = get_logger(__name__)


class ReferralResolver:
    """Maps a (possibly truncated) referral token to a participant id."""

    def __init__(self, participants: ParticipantRepository) -> None:
        self.participants = participants

    async def resolve(
        self,
        campaign_id: str,
        referral_token: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> Optional[str]:
        """Resolve ``referral_token`` within a campaign.

        Args:
            campaign_id: Campaign document ID
            referral_token: Full id or id prefix taken from the shared URL
            exclude_id: Id of the registrant; resolving to it counts as
                self-referral and yields None

        Returns:
            Participant id, or None for empty, unknown or self tokens

        Raises:
            TransientStoreError: If the store lookup fails
        """
        token = (referral_token or "").strip()
        if not token:
            return None

        resolved = await self._resolve_exact(campaign_id, token)
        if resolved is None:
            resolved = await self._resolve_prefix(campaign_id, token)

        if resolved is None:
            logger.info(f"Referral token {token!r} did not resolve in campaign {campaign_id}")
            return None

        if exclude_id is not None and resolved == exclude_id:
            logger.warning(f"Ignoring self-referral by {resolved} in campaign {campaign_id}")
            return None

        return resolved

    async def _resolve_exact(self, campaign_id: str, token: str) -> Optional[str]:
        participant = await self.participants.get(campaign_id, token)
        return participant.id if participant else None

    async def _resolve_prefix(self, campaign_id: str, token: str) -> Optional[str]:
        matches = [
            p.id for p in await self.participants.list_by_campaign(campaign_id)
            if p.id.startswith(token)
        ]
        if not matches:
            return None
        if len(matches) > 1:
            logger.info(
                f"Referral prefix {token!r} matches {len(matches)} participants "
                f"in campaign {campaign_id}; using {matches[0]}"
            )
        return matches[0]
