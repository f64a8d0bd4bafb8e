"""Campaign management, public loading and exports."""

from datetime import timedelta

import pytest

from core.constants import CampaignDefaults, Collections
from core.exceptions import CampaignClosedError, CampaignNotFoundError, ValidationError
from database.models import utcnow
from services.registration import RegistrationRequest


def future(days=7):
    return (utcnow() + timedelta(days=days)).isoformat()


@pytest.mark.asyncio
async def test_create_applies_defaults(services):
    campaign = await services.campaigns.create_campaign("owner-1", {"title": " Prize ", "end_date": future()})

    stored = await services.campaigns.get_campaign(campaign.id)
    assert stored.title == "Prize"
    assert stored.is_active
    assert stored.views_count == 0
    assert stored.participants_count == 0
    assert stored.whatsapp_share_text == CampaignDefaults.SHARE_TEXT
    assert stored.primary_color == CampaignDefaults.PRIMARY_COLOR
    assert stored.owner_id == "owner-1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"end_date": "2030-01-01T00:00:00+00:00"},
        {"title": "x"},
        {"title": "x", "end_date": "not a date"},
        {"title": "x", "end_date": "2030-01-01T00:00:00+00:00", "primary_color": "blue"},
    ],
)
async def test_create_validation(services, payload):
    with pytest.raises(ValidationError):
        await services.campaigns.create_campaign("owner-1", payload)


@pytest.mark.asyncio
async def test_short_id_resolves_by_prefix(services, campaign):
    assert await services.campaigns.resolve_campaign_id(campaign.id[:6]) == campaign.id
    assert (await services.campaigns.get_campaign(campaign.id[:6])).id == campaign.id
    with pytest.raises(CampaignNotFoundError):
        await services.campaigns.resolve_campaign_id("zzzzzzzz")


@pytest.mark.asyncio
async def test_public_load_counts_views(services, campaign):
    await services.campaigns.load_public_campaign(campaign.id)
    loaded = await services.campaigns.load_public_campaign(campaign.id)
    assert loaded.views_count == 2
    assert "owner_id" not in loaded.to_public_dict()


@pytest.mark.asyncio
async def test_public_load_refuses_ended_campaign(services):
    ended = await services.campaigns.create_campaign(
        "owner-1", {"title": "Old", "end_date": (utcnow() - timedelta(minutes=1)).isoformat()}
    )
    with pytest.raises(CampaignClosedError):
        await services.campaigns.load_public_campaign(ended.id)


@pytest.mark.asyncio
async def test_update_keeps_counters_and_owner(services, campaign):
    await services.campaigns.load_public_campaign(campaign.id)

    updated = await services.campaigns.update_campaign(
        campaign.id,
        {"title": "Winter Giveaway", "background_color": "#000000", "owner_id": "intruder", "views_count": 0},
    )

    stored = await services.campaigns.get_campaign(campaign.id)
    assert updated.title == stored.title == "Winter Giveaway"
    assert stored.background_color == "#000000"
    assert stored.owner_id == "manager-1"
    assert stored.views_count == 1


@pytest.mark.asyncio
async def test_list_by_owner(services, campaign):
    await services.campaigns.create_campaign("manager-2", {"title": "Other", "end_date": future()})
    mine = await services.campaigns.list_campaigns(owner_id="manager-1")
    assert [c.id for c in mine] == [campaign.id]
    assert len(await services.campaigns.list_campaigns()) == 2


@pytest.mark.asyncio
async def test_delete_cascades_to_participants(services, campaign, store):
    await services.registration.register(
        RegistrationRequest(campaign_id=campaign.id, full_name="Dana", phone="0521234567")
    )
    await services.lottery.run_draw(campaign.id, 1, record=True)

    removed = await services.campaigns.delete_campaign(campaign.id)

    assert removed == 3
    assert await store.count(Collections.participants(campaign.id)) == 0
    assert await store.count(Collections.draw_runs(campaign.id)) == 0
    with pytest.raises(CampaignNotFoundError):
        await services.campaigns.get_campaign(campaign.id)


@pytest.mark.asyncio
async def test_stats_and_exports(services, campaign):
    await services.campaigns.load_public_campaign(campaign.id)
    await services.campaigns.load_public_campaign(campaign.id)
    first = await services.registration.register(
        RegistrationRequest(campaign_id=campaign.id, full_name="Dana Levi", phone="0521234567")
    )
    await services.registration.complete_task(first, "shared_whatsapp")

    stats = await services.campaigns.campaign_stats(campaign.id)
    assert stats.to_dict() == {
        "views": 2,
        "leads": 1,
        "shares": 1,
        "saved_contacts": 0,
        "total_tickets": 1,
        "conversion_percent": 50,
    }

    csv_text = await services.campaigns.export_leads_csv(campaign.id)
    assert csv_text.splitlines()[0].startswith("id,full_name,phone")
    assert "Dana Levi" in csv_text

    vcf = await services.campaigns.export_vcf(campaign.id)
    assert "FN:Dana Levi" in vcf
    assert "TEL;TYPE=CELL:+972521234567" in vcf
    assert "ORG:Summer Giveaway" in vcf


@pytest.mark.asyncio
async def test_vcf_export_requires_leads(services, campaign):
    with pytest.raises(ValidationError):
        await services.campaigns.export_vcf(campaign.id)
