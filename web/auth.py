"""Authentication for the campaign management API.

A single manager account is configured through ``ADMIN_USERNAME`` and
``ADMIN_PASSWORD``; participants never authenticate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import jsonify
from flask_login import LoginManager, UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from core import get_logger

logger = get_logger(__name__)

_HASH_PREFIXES = ("pbkdf2:", "scrypt:")


@dataclass
class AdminCredentials:
    """Manager credentials; the password is hashed on startup if given in clear."""
    username: str
    password_hash: str


login_manager = LoginManager()


class AdminUser(UserMixin):
    """Represents an authenticated manager."""
    def __init__(self, username: str) -> None:
        self.id = username
        self.username = username


def init_login_manager(app, credentials: AdminCredentials) -> AdminCredentials:
    """Initialize the Flask-Login manager with admin credentials.

    Args:
        app: Flask application instance
        credentials: Admin credentials containing username and password hash

    Returns:
        Updated credentials with properly hashed password
    """
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id: str) -> Optional[AdminUser]:
        if user_id == credentials.username:
            return AdminUser(username=user_id)
        return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "unauthorized", "message": "Login required"}), 401

    if not credentials.password_hash.startswith(_HASH_PREFIXES):
        credentials.password_hash = generate_password_hash(credentials.password_hash)
        logger.info(f"Password hashed for admin user '{credentials.username}'")

    app.config["ADMIN_CREDENTIALS"] = credentials
    return credentials


def validate_credentials(credentials: AdminCredentials, username: str, password: str) -> bool:
    """Check a username/password pair against the configured manager.

    Usernames compare case-insensitively.
    """
    if not username or username.lower() != credentials.username.lower():
        logger.info(f"Login rejected for unknown user {username!r}")
        return False

    result = check_password_hash(credentials.password_hash, password or "")
    if not result:
        logger.info(f"Login rejected for {username!r}: bad password")
    return result
