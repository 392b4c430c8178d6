"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, jsonify, request

from accounts.services._shared.dto import AuthenticatedIdentity
from accounts.services.container import EXTENSION_KEY, Services
from accounts.services.guard import authenticate

F = TypeVar("F", bound=Callable[..., Any])


def get_services() -> Services:
    """Return the service graph built by the application factory."""

    return cast(Services, current_app.extensions[EXTENSION_KEY])


def authenticate_request() -> AuthenticatedIdentity:
    """Run the access guard on the current request's ``Authorization`` header.

    Handlers call this first; guard errors propagate to the central error
    handler.
    """

    return authenticate(request.headers.get("Authorization"), get_services().guard)


def client_ip() -> str | None:
    """Client address as seen after ``ProxyFix``."""

    return request.remote_addr


def user_agent() -> str | None:
    return request.headers.get("User-Agent")


def json_body() -> dict[str, Any]:
    """Return the JSON body, or an empty mapping when absent or malformed."""

    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
