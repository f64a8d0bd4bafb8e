"""Process and pool metrics exported through Prometheus."""

from __future__ import annotations

import time
from contextlib import contextmanager

import psutil
from prometheus_client import Counter, Gauge, Histogram


store_operations = Counter("store_operations_total", "Document store operations", ["operation"])
store_duration = Histogram("store_operation_duration_seconds", "Document store operation duration")
db_connections = Gauge("db_connection_pool_size", "DB connection pool size")
process_memory = Gauge("process_memory_rss_bytes", "Resident memory of the server process")


class PerformanceMonitor:
    def __init__(self) -> None:
        self._process = psutil.Process()

    @contextmanager
    def track_operation(self, operation: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            store_operations.labels(operation=operation).inc()
            store_duration.observe(time.perf_counter() - start)

    def record_db_pool(self, pool_size: int) -> None:
        db_connections.set(pool_size)

    def gather_host_metrics(self) -> dict:
        memory_info = self._process.memory_info()
        process_memory.set(memory_info.rss)
        return {
            "memory_rss": memory_info.rss,
            "cpu_percent": self._process.cpu_percent(interval=None),
            "system_memory_percent": psutil.virtual_memory().percent,
        }
