"""Structured JSON logging with request correlation and token redaction.

Every record is rendered as one JSON object on stdout. Records emitted while
a request is active carry its ``request_id``, method and path. Signed tokens
and bearer credentials are scrubbed from messages and tracebacks before they
are written.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import IO, Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# Incoming ids longer than this, or with other characters, are replaced
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

# Structured ``extra`` keys copied onto the JSON payload when present
EXTRA_KEYS = ("event", "user_id", "session_id", "reason", "endpoint", "elapsed_ms")

_BEARER_PATTERN = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)
_JWT_PATTERN = re.compile(r"\beyJ[\w-]*\.[\w-]+\.[\w-]*")
REDACTED = "[redacted]"


def redact_tokens(text: str) -> str:
    """Replace bearer credentials and compact JWTs in ``text``."""
    text = _BEARER_PATTERN.sub(lambda m: m.group(1) + REDACTED, text)
    return _JWT_PATTERN.sub(REDACTED, text)


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": redact_tokens(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }
        for key in ("method", "path"):
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = redact_tokens(self.formatException(record.exc_info))
        return json.dumps(payload, default=str)


class RequestContextFilter(logging.Filter):
    """Attach ``request_id``, ``method`` and ``path`` to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = ensure_request_id()
            record.method = request.method
            record.path = request.path
        else:
            record.request_id = None
        return True


def ensure_request_id() -> str:
    """Return the current request id, adopting a well-formed correlation header or minting one.

    Outside a request context a fresh id is returned on every call.
    """
    if not has_request_context():
        return str(uuid4())
    if "request_id" not in g:
        incoming = next(
            (
                value
                for value in (request.headers.get(h) for h in CORRELATION_HEADERS)
                if value and _REQUEST_ID_PATTERN.match(value)
            ),
            None,
        )
        g.request_id = incoming or str(uuid4())
    return g.request_id  # type: ignore[no-any-return]


def configure_logging(level: str | int = "INFO", *, stream: IO[str] | None = None) -> None:
    """Install the JSON handler as the only root handler.

    :param level: Level name or number for the root logger.
    :param stream: Output stream; stdout when omitted.
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestContextFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Seed the request id before each request and echo it on responses."""

    app.logger.addFilter(RequestContextFilter())

    @app.before_request
    def _seed_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = [
    "JSONFormatter",
    "configure_logging",
    "ensure_request_id",
    "init_app",
    "redact_tokens",
]
