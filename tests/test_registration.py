"""Registration flow: duplicate guard, referral credit and tasks."""

import random
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from core.exceptions import (
    CampaignClosedError,
    CampaignNotFoundError,
    TransientStoreError,
    ValidationError,
)
from database.models import utcnow
from services.registration import RegistrationContext, RegistrationRequest


def request_for(campaign, name="Dana", phone="0521234567", ref=None):
    return RegistrationRequest(campaign_id=campaign.id, full_name=name, phone=phone, referral_token=ref)


async def total_tickets(services, campaign):
    return await services.ledger.total_tickets(campaign.id)


@pytest.mark.asyncio
async def test_new_registration_without_referral(services, campaign):
    context = await services.registration.register(request_for(campaign))

    participant = await services.ledger.get_participant(campaign.id, context.participant_id)
    assert participant.full_name == "Dana"
    assert participant.phone == "0521234567"
    assert participant.tickets == 1
    assert participant.task_state() == {"saved_contact": False, "shared_whatsapp": False}
    assert context.tickets_awarded_to_self == 1
    assert not context.is_reentry
    assert context.referrer_id is None


@pytest.mark.asyncio
async def test_referral_by_prefix_credits_referrer(services, campaign):
    p1 = await services.registration.register(request_for(campaign, "Dana", "0521111111"))
    p2 = await services.registration.register(
        request_for(campaign, "Noa", "0522222222", ref=p1.participant_id[:6])
    )

    referrer = await services.ledger.get_participant(campaign.id, p1.participant_id)
    referred = await services.ledger.get_participant(campaign.id, p2.participant_id)
    assert referrer.tickets == 2
    assert referred.tickets == 1
    assert referred.referred_by == p1.participant_id
    assert p2.referral_credited


@pytest.mark.asyncio
async def test_same_phone_after_normalization_is_reentry(services, campaign):
    first = await services.registration.register(request_for(campaign, phone="052-123-4567"))
    second = await services.registration.register(request_for(campaign, phone="0521234567"))

    assert second.participant_id == first.participant_id
    assert second.is_reentry
    assert second.tickets_awarded_to_self == 0
    assert len(await services.ledger.list_participants(campaign.id)) == 1
    assert await total_tickets(services, campaign) == 1


@pytest.mark.asyncio
async def test_reentry_with_referral_credits_nobody(services, campaign):
    referrer = await services.registration.register(request_for(campaign, "Ref", "0521111111"))
    await services.registration.register(request_for(campaign, "Dana", "0522222222"))

    again = await services.registration.register(
        request_for(campaign, "Dana", "0522222222", ref=referrer.participant_id)
    )

    assert again.is_reentry
    assert not again.referral_credited
    assert (await services.ledger.get_participant(campaign.id, referrer.participant_id)).tickets == 1


@pytest.mark.asyncio
async def test_unknown_referral_token_still_registers(services, campaign):
    context = await services.registration.register(request_for(campaign, ref="nobody"))
    assert context.referrer_id is None
    assert await total_tickets(services, campaign) == 1


@pytest.mark.asyncio
async def test_ticket_conservation(services, campaign):
    """Total tickets equal registrations plus referrals that resolved."""
    rng = random.Random(77)
    ids = []
    resolved_referrals = 0
    for n in range(30):
        ref = None
        roll = rng.random()
        if ids and roll < 0.5:
            ref = rng.choice(ids)[:6]
            resolved_referrals += 1
        elif roll < 0.7:
            ref = "zzzzzzzz"
        context = await services.registration.register(
            request_for(campaign, f"Person {n}", f"05{n:08d}", ref=ref)
        )
        ids.append(context.participant_id)

    assert await total_tickets(services, campaign) == 30 + resolved_referrals


@pytest.mark.asyncio
async def test_invalid_input_is_rejected_before_store_access(campaign):
    from services.registration import RegistrationService

    guard = AsyncMock()
    campaigns = AsyncMock()
    service = RegistrationService(campaigns, guard, AsyncMock(), AsyncMock())

    with pytest.raises(ValidationError):
        await service.register(request_for(campaign, phone="12"))
    with pytest.raises(ValidationError):
        await service.register(request_for(campaign, name="  "))
    campaigns.get_open_campaign.assert_not_called()
    guard.find_existing.assert_not_called()


@pytest.mark.asyncio
async def test_closed_and_missing_campaigns(services):
    ended = await services.campaigns.create_campaign(
        "manager-1", {"title": "Old", "end_date": (utcnow() - timedelta(days=1)).isoformat()}
    )
    with pytest.raises(CampaignClosedError):
        await services.registration.register(request_for(ended))

    ghost = RegistrationRequest(campaign_id="no-such-campaign-id-000", full_name="A", phone="0521234567")
    with pytest.raises(CampaignNotFoundError):
        await services.registration.register(ghost)


@pytest.mark.asyncio
async def test_inactive_campaign_is_closed(services, campaign):
    await services.campaigns.update_campaign(campaign.id, {"is_active": False})
    with pytest.raises(CampaignClosedError):
        await services.registration.register(request_for(campaign))


@pytest.mark.asyncio
async def test_guard_failure_aborts_registration(services, campaign):
    services.registration.guard = AsyncMock()
    services.registration.guard.find_existing.side_effect = TransientStoreError("read failed")
    with pytest.raises(TransientStoreError):
        await services.registration.register(request_for(campaign))
    assert await services.ledger.list_participants(campaign.id) == []


@pytest.mark.asyncio
async def test_complete_tasks_through_context(services, campaign):
    context = await services.registration.register(request_for(campaign))

    context = await services.registration.complete_task(context, "saved_contact")
    assert context.tasks == {"saved_contact": True, "shared_whatsapp": False}
    assert not context.all_tasks_completed

    resumed = await services.registration.resume(campaign.id, context.participant_id)
    resumed = await services.registration.complete_task(resumed, "shared_whatsapp")
    assert resumed.all_tasks_completed
    assert resumed.to_dict()["all_tasks_completed"] is True


@pytest.mark.asyncio
async def test_contexts_are_independent(services, campaign):
    a = await services.registration.register(request_for(campaign, "A", "0521111111"))
    b = await services.registration.register(request_for(campaign, "B", "0522222222"))

    await services.registration.complete_task(a, "saved_contact")

    assert isinstance(b, RegistrationContext)
    assert b.tasks["saved_contact"] is False
    stored_b = await services.ledger.get_participant(campaign.id, b.participant_id)
    assert stored_b.saved_contact is False
