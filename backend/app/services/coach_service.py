"""Helpers for working with coach accounts."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.coach import Coach


def get_or_create_coach(db: Session, coach_id: UUID) -> Coach:
    """Fetch the coach row, creating it on first contact."""
    coach = db.get(Coach, coach_id)
    if coach:
        return coach

    coach = Coach(id=coach_id)
    db.add(coach)
    try:
        db.flush()
        return coach
    except IntegrityError:
        db.rollback()
        existing = db.get(Coach, coach_id)
        if existing:
            return existing
        raise
