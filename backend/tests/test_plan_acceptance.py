"""Tests for committing a proposed plan as a planned session."""
from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest
from fastapi import HTTPException
from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.models.ai_conversation import AIGeneratedPlan
from app.db.models.catalog import Exercise, Gym
from app.db.models.client import Client
from app.db.models.coach import Coach
from app.db.models.training_session import SessionExercise, TrainingSession
from app.db.repositories import CatalogRepository, ClientRepository, TrainingSessionRepository
from app.services.conversation_store import ConversationStore
from app.services.plan_acceptance import accept_plan, build_name_map
from app.services.plan_extractor import TrainingPlan

TODAY = date(2026, 10, 19)


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


@pytest.fixture()
def seeded(db):
    coach = Coach(display_name="Marco")
    db.add(coach)
    db.flush()
    client = Client(coach_id=coach.id, first_name="Anna", last_name="Bianchi")
    gym = Gym(coach_id=coach.id, name="Centro Fit")
    squat = Exercise(coach_id=None, name="Squat")
    plank = Exercise(coach_id=None, name="Plank")
    db.add_all([client, gym, squat, plank])
    db.commit()
    conversation = ConversationStore(db).create_conversation(coach.id, client.id)
    return {"coach": coach, "client": client, "gym": gym, "squat": squat, "plank": plank, "conversation": conversation}


def _propose(db, conversation, exercises, **fields) -> AIGeneratedPlan:
    payload = {"session_date": "2026-10-20", "exercises": exercises}
    payload.update(fields)
    return ConversationStore(db).append_plan(conversation.id, TrainingPlan.model_validate(payload))


def _accept(db, seeded, **kwargs):
    return accept_plan(
        ConversationStore(db),
        ClientRepository(db),
        CatalogRepository(db),
        TrainingSessionRepository(db),
        conversation=seeded["conversation"],
        coach_id=seeded["coach"].id,
        today=TODAY,
        **kwargs,
    )


def _session_rows(db, session_id):
    return (
        db.query(SessionExercise, Exercise)
        .join(Exercise, Exercise.id == SessionExercise.exercise_id)
        .filter(SessionExercise.session_id == session_id)
        .order_by(SessionExercise.order_index)
        .all()
    )


def test_accept_creates_planned_session_and_missing_exercises(db, seeded) -> None:
    plan_record = _propose(
        db,
        seeded["conversation"],
        [
            {"exercise_name": "Squat", "sets": 3, "reps": 10, "weight_kg": 40},
            {"exercise_name": "Affondi bulgari", "sets": 3, "reps": 8, "notes": "manubri leggeri"},
            {"exercise_name": "Plank", "duration_seconds": 60},
        ],
        gym_name="Centro Fit",
        notes="Riscaldamento 10 minuti",
    )

    result = _accept(db, seeded)

    assert result is not None
    assert result.plan_id == plan_record.id
    assert result.session_exercise_count == 3
    assert result.created_exercises == ["Affondi bulgari"]
    assert result.skipped_exercises == []
    assert result.gym_id == seeded["gym"].id

    session = db.get(TrainingSession, result.session_id)
    assert session.status == "planned"
    assert session.session_date == TODAY
    assert session.notes == "Riscaldamento 10 minuti"

    rows = _session_rows(db, session.id)
    assert [(row.order_index, exercise.name) for row, exercise in rows] == [
        (0, "Squat"),
        (1, "Affondi bulgari"),
        (2, "Plank"),
    ]
    assert rows[0][0].weight_kg == 40
    assert rows[2][0].duration_seconds == 60

    created = db.query(Exercise).filter(Exercise.name == "Affondi bulgari").one()
    assert created.coach_id == seeded["coach"].id
    assert created.description == "manubri leggeri"

    db.refresh(plan_record)
    assert plan_record.accepted is True
    assert plan_record.session_id == session.id
    db.refresh(seeded["conversation"])
    assert seeded["conversation"].title == "Piano per Anna - 2026-10-20"


def test_second_accept_is_rejected_without_writes(db, seeded) -> None:
    _propose(db, seeded["conversation"], [{"exercise_name": "Squat", "sets": 3, "reps": 10}])
    _accept(db, seeded)

    with pytest.raises(HTTPException) as excinfo:
        _accept(db, seeded)

    assert excinfo.value.status_code == 409
    assert db.query(TrainingSession).count() == 1
    assert db.query(SessionExercise).count() == 1


def test_accept_without_plan_is_rejected(db, seeded) -> None:
    with pytest.raises(HTTPException) as excinfo:
        _accept(db, seeded)

    assert excinfo.value.status_code == 409
    assert db.query(TrainingSession).count() == 0


def test_names_match_case_insensitively(db, seeded) -> None:
    _propose(db, seeded["conversation"], [{"exercise_name": "squat"}, {"exercise_name": "PLANK"}])

    result = _accept(db, seeded)

    assert result.created_exercises == []
    assert db.query(Exercise).count() == 2
    rows = _session_rows(db, result.session_id)
    assert [exercise.id for _, exercise in rows] == [seeded["squat"].id, seeded["plank"].id]


def test_repeated_new_name_is_created_once(db, seeded) -> None:
    _propose(db, seeded["conversation"], [{"exercise_name": "Burpees"}, {"exercise_name": "burpees"}])

    result = _accept(db, seeded)

    assert result.created_exercises == ["Burpees"]
    assert db.query(Exercise).filter(Exercise.name.in_(["Burpees", "burpees"])).count() == 1
    rows = _session_rows(db, result.session_id)
    assert len(rows) == 2
    assert rows[0][1].id == rows[1][1].id


def test_embedded_exercise_id_is_used_when_known(db, seeded) -> None:
    _propose(
        db,
        seeded["conversation"],
        [
            {"exercise_name": "Squat bilanciere", "exercise_id": str(seeded["squat"].id)},
            {"exercise_name": "Plank", "exercise_id": str(uuid4())},
        ],
    )

    result = _accept(db, seeded)

    rows = _session_rows(db, result.session_id)
    assert [exercise.id for _, exercise in rows] == [seeded["squat"].id, seeded["plank"].id]
    assert result.created_exercises == []


def test_failed_exercise_creation_is_skipped_and_order_stays_dense(db, seeded, monkeypatch) -> None:
    _propose(
        db,
        seeded["conversation"],
        [{"exercise_name": "Squat"}, {"exercise_name": "Esercizio rotto"}, {"exercise_name": "Plank"}],
    )
    original = CatalogRepository.create_exercise

    def flaky_create(self, coach_id, name, description):
        if name == "Esercizio rotto":
            raise SQLAlchemyError("insert failed")
        return original(self, coach_id, name, description)

    monkeypatch.setattr(CatalogRepository, "create_exercise", flaky_create)

    result = _accept(db, seeded)

    assert result.skipped_exercises == ["Esercizio rotto"]
    assert result.session_exercise_count == 2
    rows = _session_rows(db, result.session_id)
    assert [(row.order_index, exercise.name) for row, exercise in rows] == [(0, "Squat"), (1, "Plank")]


def test_session_creation_failure_leaves_plan_pending(db, seeded, monkeypatch) -> None:
    _propose(db, seeded["conversation"], [{"exercise_name": "Squat"}])

    def failing_create(self, **kwargs):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(TrainingSessionRepository, "create_session", failing_create)

    assert _accept(db, seeded) is None
    assert ConversationStore(db).latest_unaccepted_plan(seeded["conversation"].id) is not None


def test_gym_override_must_belong_to_coach(db, seeded) -> None:
    other_coach = Coach(display_name="Giulia")
    db.add(other_coach)
    db.flush()
    foreign_gym = Gym(coach_id=other_coach.id, name="Altra palestra")
    db.add(foreign_gym)
    db.commit()
    _propose(db, seeded["conversation"], [{"exercise_name": "Squat"}])

    with pytest.raises(HTTPException) as excinfo:
        _accept(db, seeded, gym_id=foreign_gym.id)

    assert excinfo.value.status_code == 400
    assert db.query(TrainingSession).count() == 0


def test_gym_override_wins_over_plan_gym_name(db, seeded) -> None:
    second_gym = Gym(coach_id=seeded["coach"].id, name="Palestra Sud")
    db.add(second_gym)
    db.commit()
    _propose(db, seeded["conversation"], [{"exercise_name": "Squat"}], gym_name="Centro Fit")

    result = _accept(db, seeded, gym_id=second_gym.id)

    assert db.get(TrainingSession, result.session_id).gym_id == second_gym.id


def test_unknown_gym_name_leaves_session_without_gym(db, seeded) -> None:
    _propose(db, seeded["conversation"], [], gym_name="Palestra inesistente")

    result = _accept(db, seeded)

    assert result.gym_id is None
    assert result.session_exercise_count == 0


def test_existing_title_is_kept(db, seeded) -> None:
    ConversationStore(db).set_title_if_empty(seeded["conversation"], "Sessioni di ottobre")
    _propose(db, seeded["conversation"], [{"exercise_name": "Squat"}])

    result = _accept(db, seeded)

    assert result.title_set is False
    db.refresh(seeded["conversation"])
    assert seeded["conversation"].title == "Sessioni di ottobre"


def test_coach_entries_shadow_shared_names() -> None:
    coach_id = uuid4()
    shared = Exercise(id=uuid4(), coach_id=None, name="Squat")
    own = Exercise(id=uuid4(), coach_id=coach_id, name="squat")

    assert build_name_map([own, shared]) == {"squat": own.id}


def test_anna_scenario_creates_lunges_and_titles_conversation(db, seeded) -> None:
    seeded["client"].age_years = 34
    seeded["client"].current_goal = "weight loss"
    db.commit()
    _propose(
        db,
        seeded["conversation"],
        [
            {"exercise_name": "squat", "sets": 3, "reps": 10},
            {"exercise_name": "Lunges", "sets": 3, "reps": 12},
        ],
    )

    result = _accept(db, seeded)

    assert result.created_exercises == ["Lunges"]
    rows = _session_rows(db, result.session_id)
    assert [(row.order_index, exercise.name, row.reps) for row, exercise in rows] == [
        (0, "Squat", 10),
        (1, "Lunges", 12),
    ]
    assert ConversationStore(db).latest_unaccepted_plan(seeded["conversation"].id) is None
    db.refresh(seeded["conversation"])
    assert seeded["conversation"].title == "Piano per Anna - 2026-10-20"
