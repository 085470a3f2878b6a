"""Per-request context utilities."""
from __future__ import annotations

from contextvars import ContextVar

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
coach_id_ctx_var: ContextVar[str | None] = ContextVar("coach_id", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def get_coach_id() -> str | None:
    """Return the coach acting in the current request, when known."""
    return coach_id_ctx_var.get()
