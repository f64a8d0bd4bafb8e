"""JSON error responses for application exceptions."""

from __future__ import annotations

from typing import Dict, Tuple, Type

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from core import get_logger
from core.exceptions import (
    ApplicationError,
    AuthenticationError,
    CampaignClosedError,
    ConfigurationError,
    InsufficientParticipantsError,
    MessagingError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)

logger = get_logger(__name__)

# Most specific class wins; looked up along the exception's MRO
ERROR_STATUS: Dict[Type[ApplicationError], Tuple[int, str]] = {
    CampaignClosedError: (410, "campaign_closed"),
    ValidationError: (400, "validation_error"),
    NotFoundError: (404, "not_found"),
    InsufficientParticipantsError: (409, "insufficient_participants"),
    AuthenticationError: (401, "unauthorized"),
    TransientStoreError: (503, "store_unavailable"),
    MessagingError: (502, "messaging_error"),
    ConfigurationError: (503, "not_configured"),
}


def error_status(error: ApplicationError) -> Tuple[int, str]:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500, "internal_error"


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApplicationError)
    def handle_application_error(error: ApplicationError):
        status, code = error_status(error)
        if status >= 500:
            logger.error(f"{code}: {error}")
        return jsonify({"error": code, "message": str(error)}), status

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        code = (error.name or "error").lower().replace(" ", "_")
        return jsonify({"error": code, "message": error.description}), error.code

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}")
        return jsonify({"error": "internal_error", "message": "Internal server error"}), 500
