"""Build the client profile handed to the planning model."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
from uuid import UUID

from app.core.config import settings
from app.db.models.client import Client
from app.db.models.training_session import SESSION_STATUS_COMPLETED
from app.db.repositories import ClientRepository


@dataclass
class RecentExercise:
    name: str
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight_kg: Optional[float] = None
    duration_seconds: Optional[int] = None


@dataclass
class RecentSession:
    date: str
    gym_name: Optional[str]
    exercises: List[RecentExercise] = field(default_factory=list)


@dataclass
class ClientContext:
    first_name: str
    last_name: str
    age: Optional[int]
    physical_notes: Optional[str]
    current_goal: Optional[str]
    recent_sessions: List[RecentSession] = field(default_factory=list)


def build_client_context(
    clients: ClientRepository,
    client_id: UUID,
    *,
    today: Optional[date] = None,
    session_limit: Optional[int] = None,
) -> Optional[ClientContext]:
    """Return the prompt context for a client, or None when the client is unknown.

    Only completed sessions are included, newest first, capped at
    ``settings.context_recent_sessions``. Read-only.
    """
    client = clients.get(client_id)
    if client is None:
        return None

    open_goal = clients.open_goal(client_id)
    current_goal = open_goal.goal if open_goal else client.current_goal

    limit = session_limit if session_limit is not None else settings.context_recent_sessions
    recent: List[RecentSession] = []
    for detail in clients.sessions(client_id, status=SESSION_STATUS_COMPLETED, limit=limit):
        exercises = [
            RecentExercise(
                name=exercise.name if exercise else "?",
                sets=row.sets,
                reps=row.reps,
                weight_kg=row.weight_kg,
                duration_seconds=row.duration_seconds,
            )
            for row, exercise in detail.exercises
        ]
        recent.append(
            RecentSession(
                date=detail.session.session_date.isoformat(),
                gym_name=detail.gym.name if detail.gym else None,
                exercises=exercises,
            )
        )

    return ClientContext(
        first_name=client.first_name,
        last_name=client.last_name,
        age=context_age(client, today=today),
        physical_notes=client.physical_notes,
        current_goal=current_goal,
        recent_sessions=recent,
    )


def context_age(client: Client, *, today: Optional[date] = None) -> Optional[int]:
    """Stored age wins; otherwise a plain year difference from the birth date.

    The year difference ignores month and day, so it can run one year ahead of
    the client card's age right before a birthday.
    """
    if client.age_years:
        return client.age_years
    if client.birth_date:
        return (today or date.today()).year - client.birth_date.year
    return None
