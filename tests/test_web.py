"""HTTP API through the Flask test client."""

import asyncio
import random
from datetime import timedelta

import pytest

from database.connection import SQLitePool
from database.document_store import DocumentStore
from database.migrations import run_migrations
from database.models import utcnow
from services.registry import build_services
from web import create_app


@pytest.fixture
def stack(config, background_loop):
    """App wired to services whose pool lives on the background loop."""

    def run(coro):
        return asyncio.run_coroutine_threadsafe(coro, background_loop).result(10)

    pool = SQLitePool(config.database_path, pool_size=2)
    run(pool.init_pool())
    run(run_migrations(pool))
    services = build_services(config, DocumentStore(pool), rng=random.Random(5))
    app = create_app(config, services, testing=True)
    yield app, services, run, pool
    run(pool.close())


@pytest.fixture
def client(stack):
    app, *_ = stack
    return app.test_client()


@pytest.fixture
def open_campaign(stack):
    _, services, run, _ = stack
    return run(
        services.campaigns.create_campaign(
            "admin",
            {
                "title": "Web Giveaway",
                "end_date": (utcnow() + timedelta(days=3)).isoformat(),
                "contact_phone_number": "0501234567",
                "whatsapp_share_text": "Join {{link}}",
            },
        )
    )


def login(client, password="secret"):
    return client.post("/admin/login", json={"username": "admin", "password": password})


def register(client, campaign_id, name="Dana Levi", phone="0521234567", **extra):
    return client.post(
        f"/api/campaigns/{campaign_id}/register",
        json={"fullName": name, "phone": phone, **extra},
    )


def test_public_campaign_payload(client, open_campaign):
    response = client.get(f"/api/campaigns/{open_campaign.id}")

    assert response.status_code == 200
    data = response.get_json()
    assert data["campaign"]["id"] == open_campaign.id
    assert data["campaign"]["views_count"] == 1
    assert "owner_id" not in data["campaign"]
    assert data["share"]["short_url"] == f"https://lottery.example/l/{open_campaign.id[:6]}"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_unknown_campaign_is_404(client):
    response = client.get("/api/campaigns/doesnotexist")
    assert response.status_code == 404
    assert response.get_json()["error"] == "not_found"


def test_registration_and_reentry(client, open_campaign):
    first = register(client, open_campaign.id, phone="052-123-4567")
    second = register(client, open_campaign.id, phone="0521234567")

    assert first.status_code == 201
    assert first.get_json()["tickets_awarded_to_self"] == 1
    assert second.status_code == 200
    assert second.get_json()["is_reentry"] is True
    assert second.get_json()["participant_id"] == first.get_json()["participant_id"]


def test_referral_through_short_token(client, open_campaign):
    referrer = register(client, open_campaign.id, "Dana Levi", "0521111111").get_json()
    referral_token = referrer["participant_id"][:6]
    assert referrer["share"]["short_url"].endswith(f"/{referral_token}")

    referred = register(client, open_campaign.id, "Noa Cohen", "0522222222", referralToken=referral_token)

    assert referred.get_json()["referrer_id"] == referrer["participant_id"]
    leaders = client.get(f"/api/campaigns/{open_campaign.id}/leaderboard").get_json()["leaders"]
    assert leaders[0] == {"rank": 1, "name": "Dana L.", "tickets": 2}


def test_registration_validation_error(client, open_campaign):
    response = register(client, open_campaign.id, phone="12")
    assert response.status_code == 400
    assert response.get_json()["error"] == "validation_error"


def test_closed_campaign_is_410(stack, client):
    _, services, run, _ = stack
    ended = run(
        services.campaigns.create_campaign(
            "admin", {"title": "Done", "end_date": (utcnow() - timedelta(hours=1)).isoformat()}
        )
    )
    assert client.get(f"/api/campaigns/{ended.id}").status_code == 410
    assert register(client, ended.id).status_code == 410


def test_task_completion(client, open_campaign):
    participant_id = register(client, open_campaign.id).get_json()["participant_id"]
    url = f"/api/campaigns/{open_campaign.id}/participants/{participant_id}/tasks"

    saved = client.post(f"{url}/saved_contact").get_json()
    shared = client.post(f"{url}/shared_whatsapp").get_json()

    assert saved["tasks"] == {"saved_contact": True, "shared_whatsapp": False}
    assert shared["all_tasks_completed"] is True
    assert client.post(f"{url}/follow_us").status_code == 400
    assert client.post(f"/api/campaigns/{open_campaign.id}/participants/ghost/tasks/saved_contact").status_code == 404


def test_contact_vcard(client, open_campaign):
    response = client.get(f"/api/campaigns/{open_campaign.id}/contact.vcf")
    assert response.status_code == 200
    assert response.content_type.startswith("text/vcard")
    assert "TEL;TYPE=CELL:+972501234567" in response.get_data(as_text=True)


def test_short_link_redirect(client, open_campaign):
    response = client.get(f"/l/{open_campaign.id[:6]}/AbCdEf")
    assert response.status_code == 302
    assert response.headers["Location"].endswith(f"/?c={open_campaign.id}&r=AbCdEf")


def test_admin_requires_login(client):
    assert client.get("/admin/campaigns").status_code == 401
    assert login(client, password="wrong").status_code == 401


def test_admin_campaign_lifecycle(client):
    assert login(client).status_code == 200

    created = client.post(
        "/admin/campaigns",
        json={"title": "Admin Made", "end_date": (utcnow() + timedelta(days=1)).isoformat()},
    )
    assert created.status_code == 201
    campaign_id = created.get_json()["campaign"]["id"]
    assert created.get_json()["campaign"]["owner_id"] == "admin"

    updated = client.patch(f"/admin/campaigns/{campaign_id}", json={"title": "Renamed"})
    assert updated.get_json()["campaign"]["title"] == "Renamed"

    listed = client.get("/admin/campaigns").get_json()["campaigns"]
    assert [c["id"] for c in listed] == [campaign_id]

    assert client.delete(f"/admin/campaigns/{campaign_id}").status_code == 200
    assert client.get(f"/admin/campaigns/{campaign_id}").status_code == 404


def test_admin_draw_and_exports(client, open_campaign):
    login(client)
    base = f"/admin/campaigns/{open_campaign.id}"

    assert client.post(f"{base}/draw", json={"winnerCount": 1}).status_code == 409

    register(client, open_campaign.id, "Dana Levi", "0521111111")
    register(client, open_campaign.id, "Noa Cohen", "0522222222")

    draw = client.post(f"{base}/draw", json={"winnerCount": 3, "record": True})
    assert draw.status_code == 200
    data = draw.get_json()
    assert len(data["winners"]) == 2
    assert data["population_size"] == 2
    assert data["spin"]["landing_index"] == data["landing_index"]
    assert client.get(f"{base}/draws").get_json()["runs"][0]["id"] == data["run_id"]

    assert client.post(f"{base}/draw", json={"winnerCount": 0}).status_code == 400

    stats = client.get(f"{base}/stats").get_json()
    assert stats["leads"] == 2

    csv_response = client.get(f"{base}/export.csv")
    assert csv_response.content_type.startswith("text/csv")
    assert "Noa Cohen" in csv_response.get_data(as_text=True)

    vcf_response = client.get(f"{base}/export.vcf")
    assert vcf_response.get_data(as_text=True).count("BEGIN:VCARD") == 2

    links = client.get(f"{base}/links").get_json()
    assert links["whatsapp_start_text"] == f"START_{open_campaign.id}"


def test_webhook_disabled_without_gateway(client):
    assert client.get("/api/green-webhook").get_json()["ok"] is True
    response = client.post("/api/green-webhook", json={"typeWebhook": "incomingMessageReceived"})
    assert response.get_json() == {"ok": True, "ignored": True, "reason": "disabled"}


def test_health_and_metrics(stack, client, monkeypatch):
    *_, pool = stack
    monkeypatch.setattr("web.routes.health.get_db_pool", lambda: pool)

    health = client.get("/health").get_json()
    assert health["status"] == "ok"
    assert health["db_pool_size"] == 2
    assert "memory_rss" in health["host"]

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert b"http_request_latency_seconds" in metrics.data


def test_admin_form_flags_accept_false(client, open_campaign):
    login(client)
    base = f"/admin/campaigns/{open_campaign.id}"
    register(client, open_campaign.id, "Dana Levi", "0521111111")
    register(client, open_campaign.id, "Noa Cohen", "0522222222")

    draw = client.post(
        f"{base}/draw",
        data={"winnerCount": "2", "weightedAdditionalWinners": "false", "record": "false"},
    ).get_json()
    assert draw["weighted_additional_winners"] is False
    assert draw["run_id"] is None
    assert client.get(f"{base}/draws").get_json()["runs"] == []

    recorded = client.post(
        f"{base}/draw",
        data={"winnerCount": "1", "weightedAdditionalWinners": "true", "record": "on"},
    ).get_json()
    assert recorded["weighted_additional_winners"] is True
    assert recorded["run_id"] is not None

    updated = client.patch(base, data={"is_active": "false"}).get_json()
    assert updated["campaign"]["is_active"] is False
    assert register(client, open_campaign.id, "Late Comer", "0523333333").status_code == 410


def test_admin_links_credit_manager_lead(client, open_campaign):
    login(client)
    base = f"/admin/campaigns/{open_campaign.id}"

    plain = client.get(f"{base}/links").get_json()
    assert plain["short_url"] == f"https://lottery.example/l/{open_campaign.id[:6]}"
    assert "ref=" not in plain["long_url"]

    client.patch(base, json={"manager_lead_id": "LeadAbCdEfGh"})
    links = client.get(f"{base}/links").get_json()

    assert links["short_url"] == f"https://lottery.example/l/{open_campaign.id[:6]}/LeadAb"
    assert links["long_url"].endswith("ref=LeadAbCdEfGh")
