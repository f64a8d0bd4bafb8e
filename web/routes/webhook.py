"""Incoming WhatsApp webhook (Green API)."""

from __future__ import annotations

import json

from flask import Blueprint, jsonify, request

from core import get_logger
from web.context import app_services, call

logger = get_logger(__name__)

webhook_bp = Blueprint("webhook", __name__)


@webhook_bp.route("/api/green-webhook", methods=["GET", "POST"])
def green_webhook():
    if request.method != "POST":
        return jsonify({"ok": True, "message": "green-webhook alive"})

    gateway = app_services().whatsapp
    if gateway is None:
        return jsonify({"ok": True, "ignored": True, "reason": "disabled"})

    # Some deliveries arrive without a JSON content type, or double-encoded
    payload = request.get_json(silent=True, force=True)
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except ValueError:
            logger.warning("Ignoring webhook with an unparseable body")
            payload = None

    return jsonify(call(gateway.handle_webhook(payload)))
