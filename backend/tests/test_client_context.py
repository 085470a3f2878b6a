"""Tests for the client context handed to the planning model."""
from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.models.catalog import Exercise, Gym
from app.db.models.client import Client
from app.db.models.coach import Coach
from app.db.models.training_session import SessionExercise, TrainingSession
from app.db.repositories import ClientRepository
from app.services.client_context import build_client_context


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    with TestingSessionLocal() as session:
        yield session
    engine.dispose()


def _seed_client(db, **fields) -> Client:
    coach = Coach(display_name="Marco")
    db.add(coach)
    db.flush()
    values = dict(coach_id=coach.id, first_name="Anna", last_name="Bianchi")
    values.update(fields)
    client = Client(**values)
    db.add(client)
    db.commit()
    return client


def _add_session(db, client: Client, session_date: date, status: str = "completed", gym: Gym | None = None, exercises=()):
    session = TrainingSession(client_id=client.id, session_date=session_date, status=status, gym_id=gym.id if gym else None)
    db.add(session)
    db.flush()
    for index, (exercise, fields) in enumerate(exercises):
        db.add(SessionExercise(session_id=session.id, exercise_id=exercise.id, order_index=index, **fields))
    db.commit()
    return session


def test_unknown_client_yields_none(db) -> None:
    from uuid import uuid4

    assert build_client_context(ClientRepository(db), uuid4()) is None


def test_context_includes_profile_and_completed_sessions_newest_first(db) -> None:
    client = _seed_client(db, age_years=34, physical_notes="Ginocchio destro", current_goal="weight loss")
    gym = Gym(coach_id=client.coach_id, name="Centro Fit")
    squat = Exercise(coach_id=None, name="Squat")
    plank = Exercise(coach_id=None, name="Plank")
    db.add_all([gym, squat, plank])
    db.commit()

    base = date(2026, 10, 1)
    for offset in range(6):
        _add_session(
            db,
            client,
            base + timedelta(days=offset),
            gym=gym,
            exercises=[(plank, {"duration_seconds": 60}), (squat, {"sets": 3, "reps": 10, "weight_kg": 40.0})],
        )
    _add_session(db, client, base + timedelta(days=30), status="planned")

    context = build_client_context(ClientRepository(db), client.id)

    assert context is not None
    assert context.first_name == "Anna"
    assert context.age == 34
    assert context.physical_notes == "Ginocchio destro"
    assert context.current_goal == "weight loss"
    assert [s.date for s in context.recent_sessions] == [
        (base + timedelta(days=offset)).isoformat() for offset in (5, 4, 3, 2, 1)
    ]
    latest = context.recent_sessions[0]
    assert latest.gym_name == "Centro Fit"
    assert [e.name for e in latest.exercises] == ["Plank", "Squat"]
    assert latest.exercises[1].weight_kg == 40.0


def test_open_goal_entry_wins_over_client_field(db) -> None:
    client = _seed_client(db, current_goal="tonificazione")
    ClientRepository(db).record_goal(client, "maratona")
    client.current_goal = "valore non sincronizzato"
    db.commit()

    context = build_client_context(ClientRepository(db), client.id)

    assert context.current_goal == "maratona"


def test_age_falls_back_to_birth_year_difference(db) -> None:
    client = _seed_client(db, birth_date=date(1990, 12, 31))

    context = build_client_context(ClientRepository(db), client.id, today=date(2026, 1, 15))

    assert context.age == 36
    assert context.recent_sessions == []


def test_missing_profile_fields_stay_empty(db) -> None:
    client = _seed_client(db)

    context = build_client_context(ClientRepository(db), client.id)

    assert context.age is None
    assert context.physical_notes is None
    assert context.current_goal is None
