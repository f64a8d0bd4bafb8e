"""Flask application factory with security defaults."""

from __future__ import annotations

from typing import Optional

from flask import Flask

from services.registry import LotteryServices, get_services
from web.auth import AdminCredentials, init_login_manager
from web.config_middleware import (
    configure_app,
    setup_security_headers,
    setup_metrics,
)
from web.errors import register_error_handlers
from web.routes import register_routes


def create_app(config, services: Optional[LotteryServices] = None, testing=False) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Application configuration
        services: Service graph; the global one when omitted
        testing: Whether running in testing mode

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # Configure application
    configure_app(app, config, testing)
    app.config["SERVICES"] = services or get_services()

    # Setup middleware
    setup_security_headers(app)
    setup_metrics(app)

    # Initialize authentication
    credentials = AdminCredentials(
        username=config.admin_username,
        password_hash=config.admin_password
    )
    init_login_manager(app, credentials)

    # Register routes
    register_routes(app)
    register_error_handlers(app)

    return app
