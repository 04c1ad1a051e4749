"""Trace identifiers for correlating a request with its error page.

The trace id of the current execution context comes from an incoming
W3C ``traceparent`` header. Every request also gets its own trace
identifier, used when no trace context is present.
"""

from __future__ import annotations

import contextvars
import itertools
import re
import uuid
from typing import Any, cast

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

TRACEPARENT_HEADER = "traceparent"

_TRACEPARENT_PATTERN = re.compile(r"^[0-9a-f]{2}-[0-9a-f]{32}-[0-9a-f]{16}-[0-9a-f]{2}$")

# Context variable for the distributed trace id of the current request
trace_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "trace_id",
    default=None,
)

# Context variable for the request's own trace identifier
request_trace_identifier_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_trace_identifier",
    default=None,
)

_PROCESS_PREFIX = uuid.uuid4().hex[:13].upper()
_request_counter = itertools.count(1)


def parse_traceparent(value: str | None) -> str | None:
    """Return ``value`` when it is a well-formed ``traceparent`` header, else None."""
    if value is None:
        return None
    value = value.strip().lower()
    if not _TRACEPARENT_PATTERN.match(value):
        return None
    return value


def new_request_trace_identifier() -> str:
    """Generate a process-unique identifier for one request."""
    return f"{_PROCESS_PREFIX}:{next(_request_counter):08X}"


def get_error_request_id(state: Any | None = None) -> str | None:
    """Return the trace id of the current context, or else the request's identifier.

    ``state`` is the request state, consulted when the context variables are
    no longer bound (handlers running outside the middleware stack).
    """
    trace_id = trace_id_var.get() or getattr(state, "trace_id", None)
    if trace_id:
        return cast("str", trace_id)
    return request_trace_identifier_var.get() or getattr(state, "trace_identifier", None)


class TraceContextMiddleware:
    """ASGI middleware binding both trace identifiers for the span of one request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        trace_id = parse_traceparent(headers.get(TRACEPARENT_HEADER))
        trace_identifier = new_request_trace_identifier()

        state = scope.setdefault("state", {})
        state["trace_id"] = trace_id
        state["trace_identifier"] = trace_identifier

        trace_token = trace_id_var.set(trace_id)
        identifier_token = request_trace_identifier_var.set(trace_identifier)
        try:
            await self.app(scope, receive, send)
        finally:
            request_trace_identifier_var.reset(identifier_token)
            trace_id_var.reset(trace_token)
