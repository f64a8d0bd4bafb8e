"""Request-side access to the service graph."""

from __future__ import annotations

from typing import Any, Awaitable, Dict, TypeVar

from flask import current_app, request

from core.exceptions import ValidationError
from services.async_runner import run_coroutine_sync
from services.registry import LotteryServices

T = TypeVar("T")


def app_services() -> LotteryServices:
    return current_app.config["SERVICES"]


def call(coro: Awaitable[T]) -> T:
    """Run a service coroutine on the main loop and wait for it."""
    return run_coroutine_sync(coro)


def request_payload() -> Dict[str, Any]:
    """JSON body, or form fields when the request is not JSON."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return payload
    return request.form.to_dict()


def pick(payload: Dict[str, Any], *names: str, default: Any = None) -> Any:
    """First present key among camelCase/snake_case spellings."""
    for name in names:
        if name in payload and payload[name] is not None:
            return payload[name]
    return default
