"""Request context middleware."""
from __future__ import annotations

from typing import Callable, Optional
from uuid import UUID, uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import coach_id_ctx_var, request_id_ctx_var

REQUEST_ID_HEADER = "X-Request-Id"
COACH_ID_HEADER = "X-Coach-Id"


def coach_id_from(request: Request) -> Optional[str]:
    """Coach id from the ``coach_id`` query parameter or ``X-Coach-Id``.

    Values that are not UUIDs are ignored; the id only labels logs and spans,
    ownership is checked by the routes.
    """
    raw = request.query_params.get("coach_id") or request.headers.get(COACH_ID_HEADER)
    if not raw:
        return None
    try:
        return str(UUID(raw))
    except ValueError:
        return None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request and coach ids to context vars for logs and spans.

    The request id is echoed back in ``X-Request-Id``.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        coach_id = coach_id_from(request)
        request.state.request_id = request_id
        request.state.coach_id = coach_id
        tokens = (request_id_ctx_var.set(request_id), coach_id_ctx_var.set(coach_id))

        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(tokens[0])
            coach_id_ctx_var.reset(tokens[1])

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
