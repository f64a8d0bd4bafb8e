"""Participant-facing API: landing page data, registration and tasks."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify, redirect, request

from services.registration import RegistrationRequest
from utils.share_links import (
    campaign_share_url,
    international_phone,
    landing_redirect_path,
    long_campaign_url,
    short_campaign_url,
)
from utils.vcard import VCARD_MIME, generate_vcard, sanitize_filename
from web.context import app_services, call, pick, request_payload

public_bp = Blueprint("public", __name__)


def _share_links(campaign, participant_id=None) -> dict:
    base_url = current_app.config["PUBLIC_BASE_URL"]
    prefix_length = current_app.config["REFERRAL_PREFIX_LENGTH"]
    short_url = short_campaign_url(base_url, campaign.id, participant_id, prefix_length)
    return {
        "short_url": short_url,
        "long_url": long_campaign_url(base_url, campaign.id, participant_id),
        "whatsapp_url": campaign_share_url(campaign.whatsapp_share_text, short_url),
    }


@public_bp.route("/api/campaigns/<campaign_id>")
def campaign_details(campaign_id: str):
    campaign = call(app_services().campaigns.load_public_campaign(campaign_id))
    return jsonify({"campaign": campaign.to_public_dict(), "share": _share_links(campaign)})


@public_bp.route("/api/campaigns/<campaign_id>/register", methods=["POST"])
def register(campaign_id: str):
    payload = request_payload()
    services = app_services()
    registration = RegistrationRequest(
        campaign_id=campaign_id,
        full_name=pick(payload, "fullName", "full_name", default=""),
        phone=pick(payload, "phone", default=""),
        referral_token=pick(payload, "referralToken", "referral_token", "ref", "r"),
        email=pick(payload, "email"),
    )
    context = call(services.registration.register(registration))
    campaign = call(services.campaigns.get_campaign(context.campaign_id))

    data = context.to_dict()
    data["share"] = _share_links(campaign, context.participant_id)
    return jsonify(data), (200 if context.is_reentry else 201)


@public_bp.route(
    "/api/campaigns/<campaign_id>/participants/<participant_id>/tasks/<task_name>",
    methods=["POST"],
)
def complete_task(campaign_id: str, participant_id: str, task_name: str):
    registration = app_services().registration
    context = call(registration.resume(campaign_id, participant_id))
    context = call(registration.complete_task(context, task_name))
    return jsonify(context.to_dict())


@public_bp.route("/api/campaigns/<campaign_id>/leaderboard")
def leaderboard(campaign_id: str):
    services = app_services()
    campaign = call(services.campaigns.get_campaign(campaign_id))
    leaders = call(
        services.ledger.leaderboard(campaign.id, limit=current_app.config["LEADERBOARD_SIZE"])
    )
    return jsonify({
        "campaign_id": campaign.id,
        "leaders": [
            {"rank": rank, "name": p.masked_name, "tickets": p.weight}
            for rank, p in enumerate(leaders, start=1)
        ],
    })


@public_bp.route("/api/campaigns/<campaign_id>/contact.vcf")
def campaign_contact(campaign_id: str):
    """Manager's contact card for the save-contact task."""
    campaign = call(app_services().campaigns.get_campaign(campaign_id))
    name = campaign.contact_vcard_name or campaign.title
    if not campaign.contact_phone_number:
        return jsonify({"error": "not_found", "message": "Campaign has no contact number"}), 404
    body = generate_vcard(name, international_phone(campaign.contact_phone_number), campaign.title)
    filename = f"{sanitize_filename(name)}.vcf"
    return Response(
        body,
        content_type=VCARD_MIME,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@public_bp.route("/l/<campaign_token>")
@public_bp.route("/l/<campaign_token>/<referral_token>")
def short_link(campaign_token: str, referral_token: str = None):
    full_id = call(app_services().campaigns.resolve_campaign_id(campaign_token))
    return redirect(landing_redirect_path(full_id, referral_token))


@public_bp.route("/")
def landing():
    """Entry point the short links land on; the page itself is static."""
    return jsonify({
        "campaign": request.args.get("c"),
        "referral": request.args.get("r") or request.args.get("ref"),
    })
