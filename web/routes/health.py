"""Health check blueprint."""

from __future__ import annotations

from flask import Blueprint, jsonify
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from core.exceptions import ConnectionPoolError
from database.connection import get_db_pool
from utils.performance import PerformanceMonitor


health_bp = Blueprint("health", __name__)
monitor = PerformanceMonitor()


@health_bp.route("/health")
def health_check():
    host_metrics = monitor.gather_host_metrics()
    try:
        pool_size = get_db_pool().size
    except ConnectionPoolError:
        return jsonify({"status": "degraded", "db_pool_size": 0, "host": host_metrics}), 503

    monitor.record_db_pool(pool_size)
    return jsonify({"status": "ok", "db_pool_size": pool_size, "host": host_metrics})


@health_bp.route("/metrics")
def metrics():
    """Expose Prometheus metrics."""
    return generate_latest(), 200, {"Content-Type": CONTENT_TYPE_LATEST}
