"""Flask application configuration and middleware setup."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from flask import Flask, g, request
from prometheus_client import Counter, Histogram

from core import get_logger

if TYPE_CHECKING:
    from config import Config

logger = get_logger(__name__)

# Prometheus metrics
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "HTTP request latency",
    ["method", "path"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)
REQUEST_ERRORS = Counter(
    "http_request_errors_total",
    "Total number of 5xx responses",
    ["method", "path"],
)

SLOW_REQUEST_SECONDS = 1.0


def configure_app(app: Flask, config: Config, testing: bool = False) -> None:
    """Configure Flask application settings.

    Args:
        app: Flask application instance
        config: Application configuration
        testing: Whether running in testing mode
    """
    app.config.update(
        SECRET_KEY=config.secret_key,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SECURE=(config.environment != 'development' and not testing),
        SESSION_COOKIE_SAMESITE='Lax',
        DATABASE_PATH=config.database_path,
        PUBLIC_BASE_URL=config.public_base_url,
        REFERRAL_PREFIX_LENGTH=config.referral_prefix_length,
        LEADERBOARD_SIZE=config.leaderboard_size,
        TESTING=testing,
    )
    app.json.ensure_ascii = False

    # Warn if insecure defaults detected
    if config.environment == 'production':
        if config.admin_username == "admin" and config.admin_password in {"123456", "secure_password_change_me"}:
            logger.warning("Insecure admin credentials detected in production")
        if config.secret_key.startswith("production_secret_key_must_be_changed"):
            logger.warning("SECRET_KEY is not set properly")


def setup_security_headers(app: Flask) -> None:
    """Setup security headers middleware.

    Args:
        app: Flask application instance
    """
    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        response.headers.setdefault('X-Content-Type-Options', 'nosniff')
        response.headers.setdefault('X-Frame-Options', 'DENY')
        response.headers.setdefault('Referrer-Policy', 'same-origin')
        response.headers.setdefault('Permissions-Policy', "camera=(), microphone=(), geolocation=()")
        return response


def setup_metrics(app: Flask) -> None:
    """Setup Prometheus metrics middleware.

    Args:
        app: Flask application instance
    """
    @app.before_request
    def before_metrics():
        """Store request start time."""
        g._metrics_start = time.perf_counter()

    @app.after_request
    def after_metrics(response):
        """Record request metrics."""
        start = getattr(g, '_metrics_start', None)
        path = getattr(request.url_rule, 'rule', request.path)
        if start is not None:
            duration = time.perf_counter() - start
            REQUEST_LATENCY.labels(method=request.method, path=path).observe(duration)
            if duration > SLOW_REQUEST_SECONDS:
                logger.warning(f"Slow request: {request.method} {request.path} took {duration:.2f}s")
            response.headers['X-Response-Time'] = f"{duration:.3f}s"

        # Record 5xx errors
        if response.status_code >= 500:
            REQUEST_ERRORS.labels(method=request.method, path=path).inc()
        return response
