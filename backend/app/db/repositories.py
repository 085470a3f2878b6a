"""SQLAlchemy-backed data access used by the planning services.

Services receive these objects instead of reaching for a session directly so
tests can hand them fakes. Every write commits on its own: multi-step planner
operations are sequences of independently durable steps, never one
transaction.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import asc, desc, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models.catalog import Exercise, Gym
from app.db.models.client import Client, GoalHistory
from app.db.models.training_session import SESSION_STATUS_PLANNED, SessionExercise, TrainingSession
from app.db.types import utcnow


@dataclass
class SessionDetail:
    """A session with its gym and its exercises in order_index order."""

    session: TrainingSession
    gym: Optional[Gym]
    exercises: List[Tuple[SessionExercise, Optional[Exercise]]] = field(default_factory=list)


def commit_or_rollback(db: Session, *instances: Any) -> None:
    """Commit the pending unit of work, rolling back before re-raising on failure."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    for instance in instances:
        db.refresh(instance)


class ClientRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, client_id: UUID) -> Optional[Client]:
        return self.db.get(Client, client_id)

    def open_goal(self, client_id: UUID) -> Optional[GoalHistory]:
        return (
            self.db.query(GoalHistory)
            .filter(GoalHistory.client_id == client_id, GoalHistory.ended_at.is_(None))
            .order_by(desc(GoalHistory.started_at))
            .first()
        )

    def goals(self, client_id: UUID) -> List[GoalHistory]:
        """Goal history, newest first."""
        return (
            self.db.query(GoalHistory)
            .filter(GoalHistory.client_id == client_id)
            .order_by(desc(GoalHistory.started_at))
            .all()
        )

    def record_goal(self, client: Client, goal: str) -> GoalHistory:
        """Close every open goal entry, append the new one and mirror it on the client."""
        now = utcnow()
        open_entries = (
            self.db.query(GoalHistory)
            .filter(GoalHistory.client_id == client.id, GoalHistory.ended_at.is_(None))
            .all()
        )
        for entry in open_entries:
            entry.ended_at = now
        # Close before inserting so the open-goal unique index never sees two.
        self.db.flush()
        entry = GoalHistory(client_id=client.id, goal=goal, started_at=now)
        client.current_goal = goal
        self.db.add(entry)
        self.db.add(client)
        commit_or_rollback(self.db, entry, client)
        return entry

    def sessions(
        self,
        client_id: UUID,
        *,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[SessionDetail]:
        """Sessions newest first, each with gym and ordered exercises."""
        query = self.db.query(TrainingSession).filter(TrainingSession.client_id == client_id)
        if status:
            query = query.filter(TrainingSession.status == status)
        query = query.order_by(desc(TrainingSession.session_date), desc(TrainingSession.created_at))
        if limit is not None:
            query = query.limit(limit)
        sessions = query.all()
        if not sessions:
            return []

        gym_ids = {s.gym_id for s in sessions if s.gym_id}
        gyms: Dict[UUID, Gym] = {}
        if gym_ids:
            gyms = {gym.id: gym for gym in self.db.query(Gym).filter(Gym.id.in_(gym_ids)).all()}

        rows = (
            self.db.query(SessionExercise, Exercise)
            .outerjoin(Exercise, Exercise.id == SessionExercise.exercise_id)
            .filter(SessionExercise.session_id.in_([s.id for s in sessions]))
            .order_by(asc(SessionExercise.order_index))
            .all()
        )
        by_session: Dict[UUID, List[Tuple[SessionExercise, Optional[Exercise]]]] = {}
        for session_exercise, exercise in rows:
            by_session.setdefault(session_exercise.session_id, []).append((session_exercise, exercise))

        return [
            SessionDetail(
                session=s,
                gym=gyms.get(s.gym_id) if s.gym_id else None,
                exercises=by_session.get(s.id, []),
            )
            for s in sessions
        ]


class CatalogRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_exercises(self, coach_id: UUID) -> List[Exercise]:
        """Shared entries plus the coach's own, by name."""
        return (
            self.db.query(Exercise)
            .filter(or_(Exercise.coach_id.is_(None), Exercise.coach_id == coach_id))
            .order_by(asc(Exercise.name))
            .all()
        )

    def list_gyms(self, coach_id: UUID) -> List[Gym]:
        return self.db.query(Gym).filter(Gym.coach_id == coach_id).order_by(asc(Gym.name)).all()

    def get_gym(self, gym_id: UUID) -> Optional[Gym]:
        return self.db.get(Gym, gym_id)

    def create_exercise(self, coach_id: UUID, name: str, description: Optional[str]) -> Exercise:
        exercise = Exercise(coach_id=coach_id, name=name, description=description)
        self.db.add(exercise)
        commit_or_rollback(self.db, exercise)
        return exercise


class TrainingSessionRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_session(
        self,
        *,
        client_id: UUID,
        gym_id: Optional[UUID],
        session_date: date,
        notes: Optional[str],
        status: str = SESSION_STATUS_PLANNED,
    ) -> TrainingSession:
        session = TrainingSession(
            client_id=client_id,
            gym_id=gym_id,
            session_date=session_date,
            status=status,
            notes=notes,
        )
        self.db.add(session)
        commit_or_rollback(self.db, session)
        return session

    def add_exercises(self, session_id: UUID, rows: Iterable[Dict[str, Any]]) -> List[SessionExercise]:
        """Insert all rows for a session in one commit."""
        created = [SessionExercise(session_id=session_id, **row) for row in rows]
        if not created:
            return []
        self.db.add_all(created)
        commit_or_rollback(self.db)
        return created
