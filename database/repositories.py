"""Repositories mapping models onto document store collections."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.constants import Collections
from database.document_store import DocumentStore
from database.models import Campaign, DrawRun, Participant

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class CampaignRepository:
    """Repository for campaign documents."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def create(self, data: Dict[str, Any]) -> str:
        return await self.store.create(Collections.CAMPAIGNS, data)

    async def get(self, campaign_id: str) -> Optional[Campaign]:
        doc = await self.store.get(Collections.CAMPAIGNS, campaign_id)
        return Campaign.from_document(doc.id, doc.data) if doc else None

    async def list_by_owner(self, owner_id: str) -> List[Campaign]:
        """Owner's campaigns, newest first."""
        docs = await self.store.query_eq(Collections.CAMPAIGNS, "owner_id", owner_id)
        return _newest_first([Campaign.from_document(d.id, d.data) for d in docs])

    async def list_all(self) -> List[Campaign]:
        docs = await self.store.list_all(Collections.CAMPAIGNS)
        return _newest_first([Campaign.from_document(d.id, d.data) for d in docs])

    async def find_by_prefix(self, prefix: str) -> Optional[Campaign]:
        """First campaign, in store enumeration order, whose id starts with ``prefix``."""
        for doc in await self.store.list_all(Collections.CAMPAIGNS):
            if doc.id.startswith(prefix):
                return Campaign.from_document(doc.id, doc.data)
        return None

    async def update(self, campaign_id: str, fields: Dict[str, Any]) -> bool:
        return await self.store.update(Collections.CAMPAIGNS, campaign_id, fields)

    async def delete(self, campaign_id: str) -> int:
        """Delete a campaign with its participants and draw runs."""
        return await self.store.delete_tree(Collections.CAMPAIGNS, campaign_id)

    async def increment_views(self, campaign_id: str) -> bool:
        return await self.store.increment(Collections.CAMPAIGNS, campaign_id, "views_count")

    async def increment_participants(self, campaign_id: str) -> bool:
        return await self.store.increment(Collections.CAMPAIGNS, campaign_id, "participants_count")


class ParticipantRepository:
    """Repository for participants (leads) of a campaign."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def create(self, campaign_id: str, data: Dict[str, Any]) -> str:
        return await self.store.create(Collections.participants(campaign_id), data)

    async def get(self, campaign_id: str, participant_id: str) -> Optional[Participant]:
        doc = await self.store.get(Collections.participants(campaign_id), participant_id)
        return Participant.from_document(doc.id, doc.data) if doc else None

    async def find_by_phone(self, campaign_id: str, phone: str) -> List[Participant]:
        docs = await self.store.query_eq(Collections.participants(campaign_id), "phone", phone)
        return [Participant.from_document(d.id, d.data) for d in docs]

    async def list_by_campaign(self, campaign_id: str) -> List[Participant]:
        """All participants in store enumeration order (ascending id)."""
        docs = await self.store.list_all(Collections.participants(campaign_id))
        return [Participant.from_document(d.id, d.data) for d in docs]

    async def count(self, campaign_id: str) -> int:
        return await self.store.count(Collections.participants(campaign_id))

    async def increment_tickets(self, campaign_id: str, participant_id: str) -> bool:
        return await self.store.increment(
            Collections.participants(campaign_id), participant_id, "tickets"
        )

    async def set_task_flags(self, campaign_id: str, participant_id: str, flags: Dict[str, bool]) -> bool:
        return await self.store.update(
            Collections.participants(campaign_id),
            participant_id,
            {"tasks_completed": flags},
        )


class DrawRunRepository:
    """Repository for recorded draw runs."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def save(self, run: DrawRun) -> str:
        return await self.store.create(Collections.draw_runs(run.campaign_id), run.to_document())

    async def list_by_campaign(self, campaign_id: str) -> List[DrawRun]:
        docs = await self.store.list_all(Collections.draw_runs(campaign_id))
        runs = [DrawRun.from_document(d.id, d.data) for d in docs]
        return sorted(runs, key=lambda r: r.executed_at or _EPOCH, reverse=True)


def _newest_first(campaigns: List[Campaign]) -> List[Campaign]:
    return sorted(campaigns, key=lambda c: c.created_at or _EPOCH, reverse=True)
