"""Small structured logging helper.

Everything logs JSON strings so the output can be piped into any log
collector. A correlation ID travels through a context variable so a
request's log lines can be grouped together.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Get the current request correlation ID (if any)."""

    return _request_id_var.get()


def new_request_id() -> str:
    return str(uuid4())


@contextmanager
def request_id_context(request_id: str | None):
    """Context manager that sets the correlation ID for the duration."""

    token: Token[str | None] = _request_id_var.set(request_id)
    try:
        yield
    finally:
        _request_id_var.reset(token)


def log_json(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """Emit a single JSON log line with the optional correlation ID."""

    payload: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "event": event,
    }
    request_id = get_request_id()
    if request_id:
        payload["request_id"] = request_id

    payload.update(fields)
    logger.log(level, json.dumps(payload, default=str))


def configure_logging(level: str = "INFO") -> None:
    """Route the package loggers to stderr, one JSON document per line."""

    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger("mdreview").setLevel(level)
