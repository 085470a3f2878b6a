"""Audit trail of planner actions taken on a coach's behalf."""
from __future__ import annotations

import logging
from typing import Any, Dict
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models.coach_action_log import CoachActionLog
from app.db.repositories import commit_or_rollback

logger = logging.getLogger(__name__)


def record_coach_action(
    db: Session,
    *,
    coach_id: UUID,
    action_type: str,
    reason: str,
    payload: Dict[str, Any],
) -> None:
    """Persist an audit entry. Audit failures are logged, never raised."""
    entry = CoachActionLog(
        coach_id=coach_id,
        action_type=action_type,
        action_payload=payload,
        reason=reason,
    )
    db.add(entry)
    try:
        commit_or_rollback(db)
    except SQLAlchemyError:
        logger.warning("Could not record coach action %s for coach %s", action_type, coach_id, exc_info=True)
