"""Campaign management API for the logged-in manager."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from core.exceptions import AuthenticationError, ValidationError
from utils.share_links import campaign_share_url, long_campaign_url, short_campaign_url
from utils.validators import parse_bool
from utils.vcard import VCARD_MIME, sanitize_filename
from web.auth import AdminCredentials, AdminUser, validate_credentials
from web.context import app_services, call, pick, request_payload


admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


def _attachment(body: str, content_type: str, filename: str) -> Response:
    return Response(
        body,
        content_type=content_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@admin_bp.route("/login", methods=["POST"])
def login_page():
    payload = request_payload()
    username = pick(payload, "username", default="")
    password = pick(payload, "password", default="")
    credentials: AdminCredentials = current_app.config["ADMIN_CREDENTIALS"]

    if not validate_credentials(credentials, username, password):
        raise AuthenticationError("Invalid admin credentials")
    login_user(AdminUser(username=credentials.username))
    current_app.logger.info(f"Admin {credentials.username} logged in")
    return jsonify({"ok": True, "username": credentials.username})


@admin_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"ok": True})


@admin_bp.route("/campaigns")
@login_required
def list_campaigns():
    owner = request.args.get("owner")
    campaigns = call(app_services().campaigns.list_campaigns(owner_id=owner))
    return jsonify({"campaigns": [c.to_dict() for c in campaigns]})


@admin_bp.route("/campaigns", methods=["POST"])
@login_required
def create_campaign():
    campaign = call(app_services().campaigns.create_campaign(current_user.id, request_payload()))
    return jsonify({"campaign": campaign.to_dict()}), 201


@admin_bp.route("/campaigns/<campaign_id>")
@login_required
def campaign_detail(campaign_id: str):
    campaign = call(app_services().campaigns.get_campaign(campaign_id))
    return jsonify({"campaign": campaign.to_dict()})


@admin_bp.route("/campaigns/<campaign_id>", methods=["PATCH", "PUT"])
@login_required
def update_campaign(campaign_id: str):
    campaign = call(app_services().campaigns.update_campaign(campaign_id, request_payload()))
    return jsonify({"campaign": campaign.to_dict()})


@admin_bp.route("/campaigns/<campaign_id>", methods=["DELETE"])
@login_required
def delete_campaign(campaign_id: str):
    removed = call(app_services().campaigns.delete_campaign(campaign_id))
    return jsonify({"ok": True, "deleted_documents": removed})


@admin_bp.route("/campaigns/<campaign_id>/stats")
@login_required
def campaign_stats(campaign_id: str):
    stats = call(app_services().campaigns.campaign_stats(campaign_id))
    return jsonify(stats.to_dict())


@admin_bp.route("/campaigns/<campaign_id>/participants")
@login_required
def participants(campaign_id: str):
    services = app_services()
    campaign = call(services.campaigns.get_campaign(campaign_id))
    leads = call(services.ledger.list_participants(campaign.id))
    return jsonify({
        "campaign_id": campaign.id,
        "total": len(leads),
        "participants": [p.to_dict() for p in leads],
    })


@admin_bp.route("/campaigns/<campaign_id>/links")
@login_required
def campaign_links(campaign_id: str):
    campaign = call(app_services().campaigns.get_campaign(campaign_id))
    base_url = current_app.config["PUBLIC_BASE_URL"]
    # Manager links credit the manager's own lead, when one is set
    referrer = campaign.manager_lead_id or None
    short_url = short_campaign_url(
        base_url, campaign.id, referrer, current_app.config["REFERRAL_PREFIX_LENGTH"]
    )
    return jsonify({
        "short_url": short_url,
        "long_url": long_campaign_url(base_url, campaign.id, referrer),
        "whatsapp_url": campaign_share_url(campaign.whatsapp_share_text, short_url),
        "whatsapp_start_text": f"START_{campaign.id}",
    })


@admin_bp.route("/campaigns/<campaign_id>/draw", methods=["POST"])
@login_required
def run_draw(campaign_id: str):
    payload = request_payload()
    winner_count = pick(payload, "winnerCount", "winner_count", "winners", default=1)
    try:
        winner_count = int(winner_count)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid winner count: {winner_count!r}") from None

    weighted = pick(payload, "weightedAdditionalWinners", "weighted_additional_winners")
    outcome = call(
        app_services().lottery.run_draw(
            campaign_id,
            winner_count,
            weighted_additional_winners=None if weighted is None else parse_bool(weighted),
            record=parse_bool(pick(payload, "record", default=False)),
            requested_by=current_user.id,
        )
    )
    return jsonify(outcome.to_dict())


@admin_bp.route("/campaigns/<campaign_id>/draws")
@login_required
def draw_history(campaign_id: str):
    runs = call(app_services().lottery.list_runs(campaign_id))
    return jsonify({"runs": [r.to_dict() for r in runs]})


@admin_bp.route("/campaigns/<campaign_id>/export.csv")
@login_required
def export_csv(campaign_id: str):
    body = call(app_services().campaigns.export_leads_csv(campaign_id))
    return _attachment(body, "text/csv; charset=utf-8", f"leads_{sanitize_filename(campaign_id)}.csv")


@admin_bp.route("/campaigns/<campaign_id>/export.vcf")
@login_required
def export_vcf(campaign_id: str):
    services = app_services()
    campaign = call(services.campaigns.get_campaign(campaign_id))
    body = call(services.campaigns.export_vcf(campaign.id))
    return _attachment(body, VCARD_MIME, f"{sanitize_filename(campaign.title, 'leads')}.vcf")
