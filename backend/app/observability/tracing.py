"""Opik spans around planner operations."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from app.core.context import get_coach_id, get_request_id
from app.observability.client import get_opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def span_metadata(
    metadata: Optional[Dict[str, Any]] = None,
    coach_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge caller metadata with the acting coach and request.

    Explicit ids win; otherwise the ids bound by the request middleware are
    used, so spans opened deep inside services stay attributable.
    """
    merged = dict(metadata or {})
    coach = coach_id or get_coach_id()
    request = request_id or get_request_id()
    if coach:
        merged.setdefault("coach_id", str(coach))
    if request:
        merged.setdefault("request_id", request)
    return merged


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    coach_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """Open a span named ``name`` for the duration of the block.

    Yields None when Opik is off. An exception leaving the block is recorded
    on the span (message and type) and re-raised.
    """
    opik_trace = _start(name, span_metadata(metadata, coach_id, request_id))
    try:
        yield opik_trace
    except Exception as exc:
        _record_error(opik_trace, name, exc)
        raise
    finally:
        _finish(opik_trace, name)


def annotate(span: Optional["Trace"], **metadata: Any) -> None:
    """Attach metadata to an open span; ignored when tracing is off."""
    if not span:
        return
    try:
        span.update(metadata=metadata)
    except Exception:  # pragma: no cover - SDK failure
        logger.debug("Unable to annotate Opik trace", exc_info=True)


def _start(name: str, metadata: Dict[str, Any]) -> Optional["Trace"]:
    client = get_opik_client()
    if not client:
        return None
    try:
        return client.trace(name=name, metadata=metadata or None)
    except Exception as exc:  # pragma: no cover - SDK failure
        logger.debug("Unable to start Opik trace %s: %s", name, exc)
        return None


def _record_error(opik_trace: Optional["Trace"], name: str, exc: Exception) -> None:
    if not opik_trace:
        return
    try:
        opik_trace.update(error_info={"message": str(exc), "type": type(exc).__name__})
    except Exception:  # pragma: no cover
        logger.debug("Failed to attach error info to Opik trace %s", name, exc_info=True)


def _finish(opik_trace: Optional["Trace"], name: str) -> None:
    if not opik_trace:
        return
    try:
        opik_trace.end()
    except Exception:  # pragma: no cover
        logger.debug("Failed to close Opik trace %s cleanly", name, exc_info=True)
