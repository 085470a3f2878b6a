"""End-to-end tests for the planning conversation routes."""
from __future__ import annotations

from datetime import date
from typing import List
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.deps import get_db
from app.db.models.ai_conversation import AIGeneratedPlan, AIMessage
from app.db.models.catalog import Exercise, Gym
from app.db.models.client import Client
from app.db.models.coach import Coach
from app.db.models.coach_action_log import CoachActionLog
from app.db.models.coach_ai_settings import CoachAISettings
from app.db.models.training_session import SessionExercise, TrainingSession
from app.main import app
from app.services.llm.base import LLMProvider, ProviderError
from app.services.llm.factory import get_provider_factory

PLAN_REPLY = """Ecco una proposta per Anna.

```training_plan
{
  "gym_name": "Centro Fit",
  "session_date": "2026-10-20",
  "exercises": [
    {"exercise_name": "Squat", "sets": 3, "reps": 10, "weight_kg": 40, "duration_seconds": null, "notes": null},
    {"exercise_name": "Affondi bulgari", "sets": 3, "reps": 8, "weight_kg": null, "duration_seconds": null, "notes": null}
  ],
  "notes": "Riscaldamento 10 minuti"
}
```
"""


class _ScriptedProvider(LLMProvider):
    name = "openai"

    def __init__(self):
        self.replies: List[object] = []
        self.calls: list = []
        self.requested: List[str] = []

    def complete(self, messages, api_key, model):
        self.calls.append({"messages": list(messages), "api_key": api_key, "model": model})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture()
def provider() -> _ScriptedProvider:
    return _ScriptedProvider()


@pytest.fixture()
def client(provider):
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

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    def override_provider_factory():
        def factory(name: str) -> LLMProvider:
            provider.requested.append(name)
            return provider

        return factory

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_provider_factory] = override_provider_factory
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def _seed(session_factory, *, with_settings: bool = True):
    with session_factory() as db:
        coach = Coach(display_name="Marco")
        db.add(coach)
        db.flush()
        client = Client(
            coach_id=coach.id,
            first_name="Anna",
            last_name="Bianchi",
            age_years=34,
            physical_notes="Lieve dolore al ginocchio destro",
            current_goal="weight loss",
        )
        db.add_all(
            [
                client,
                Gym(coach_id=coach.id, name="Centro Fit"),
                Exercise(coach_id=None, name="Squat"),
                Exercise(coach_id=None, name="Plank"),
            ]
        )
        if with_settings:
            db.add(
                CoachAISettings(
                    coach_id=coach.id,
                    preferred_provider="openai",
                    preferred_model="gpt-4o",
                    openai_api_key="sk-stored",
                )
            )
        db.commit()
        return str(coach.id), str(client.id)


def _start(test_client, coach_id, client_id) -> str:
    response = test_client.post("/conversations", json={"coach_id": coach_id, "client_id": client_id})
    assert response.status_code == 201
    return response.json()["id"]


def test_start_conversation_requires_owned_client(client) -> None:
    test_client, session_factory = client
    coach_id, client_id = _seed(session_factory)

    missing = test_client.post("/conversations", json={"coach_id": coach_id, "client_id": str(uuid4())})
    foreign = test_client.post("/conversations", json={"coach_id": str(uuid4()), "client_id": client_id})

    assert missing.status_code == 404
    assert missing.json() == {"error": "Cliente non trovato"}
    assert foreign.status_code == 403


def test_full_planning_flow(client, provider) -> None:
    test_client, session_factory = client
    coach_id, client_id = _seed(session_factory)
    conversation_id = _start(test_client, coach_id, client_id)
    provider.replies = [PLAN_REPLY]

    response = test_client.post(
        f"/conversations/{conversation_id}/messages",
        json={"coach_id": coach_id, "content": "Prepara una sessione leggera per le gambe"},
        headers={"X-Request-Id": "req-plan-1"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == PLAN_REPLY
    assert data["plan"]["gym_name"] == "Centro Fit"
    assert [e["exercise_name"] for e in data["plan"]["exercises"]] == ["Squat", "Affondi bulgari"]
    assert data["plan_id"]
    assert data["provider"] == "openai"
    assert data["model"] == "gpt-4o"
    assert data["request_id"] == "req-plan-1"

    call = provider.calls[0]
    assert call["api_key"] == "sk-stored"
    system_prompt = call["messages"][0].content
    assert call["messages"][0].role == "system"
    assert "Anna Bianchi" in system_prompt
    assert "weight loss" in system_prompt
    assert "Plank, Squat" in system_prompt
    assert call["messages"][-1].content == "Prepara una sessione leggera per le gambe"

    loaded = test_client.get(f"/conversations/{conversation_id}", params={"coach_id": coach_id})
    assert loaded.status_code == 200
    assert [m["role"] for m in loaded.json()["messages"]] == ["user", "assistant"]
    assert loaded.json()["pending_plan_id"] == data["plan_id"]

    accepted = test_client.post(f"/conversations/{conversation_id}/accept", json={"coach_id": coach_id})

    assert accepted.status_code == 200
    body = accepted.json()
    assert body["session_exercise_count"] == 2
    assert body["created_exercises"] == ["Affondi bulgari"]
    assert body["title"] == "Piano per Anna - 2026-10-20"

    with session_factory() as db:
        session = db.query(TrainingSession).one()
        assert session.status == "planned"
        assert session.session_date == date.today()
        assert db.query(SessionExercise).count() == 2
        assert db.query(AIGeneratedPlan).one().accepted is True
        action = db.query(CoachActionLog).one()
        assert action.action_type == "plan_accepted"

    again = test_client.post(f"/conversations/{conversation_id}/accept", json={"coach_id": coach_id})
    assert again.status_code == 409
    assert again.json() == {"error": "Nessun piano da accettare"}

    reloaded = test_client.get(f"/conversations/{conversation_id}", params={"coach_id": coach_id})
    assert reloaded.json()["pending_plan"] is None
    assert reloaded.json()["title"] == "Piano per Anna - 2026-10-20"


def test_reply_without_plan_stores_messages_only(client, provider) -> None:
    test_client, session_factory = client
    coach_id, client_id = _seed(session_factory)
    conversation_id = _start(test_client, coach_id, client_id)
    provider.replies = ["Quanto tempo ha a disposizione Anna?", "Perfetto, grazie."]

    first = test_client.post(
        f"/conversations/{conversation_id}/messages", json={"coach_id": coach_id, "content": "Ciao"}
    )
    second = test_client.post(
        f"/conversations/{conversation_id}/messages", json={"coach_id": coach_id, "content": "45 minuti"}
    )

    assert first.json()["plan"] is None
    assert first.json()["plan_id"] is None
    assert second.status_code == 200
    history = [(m.role, m.content) for m in provider.calls[1]["messages"][1:]]
    assert history == [
        ("user", "Ciao"),
        ("assistant", "Quanto tempo ha a disposizione Anna?"),
        ("user", "45 minuti"),
    ]
    with session_factory() as db:
        assert db.query(AIGeneratedPlan).count() == 0
        assert db.query(AIMessage).count() == 4


def test_provider_failure_keeps_user_message(client, provider) -> None:
    test_client, session_factory = client
    coach_id, client_id = _seed(session_factory)
    conversation_id = _start(test_client, coach_id, client_id)
    provider.replies = [ProviderError("openai", 401, "invalid api key")]

    response = test_client.post(
        f"/conversations/{conversation_id}/messages", json={"coach_id": coach_id, "content": "Ciao"}
    )

    assert response.status_code == 502
    assert response.json() == {"error": "API key non valida per il provider AI selezionato"}
    with session_factory() as db:
        messages = db.query(AIMessage).all()
        assert [(m.role, m.content) for m in messages] == [("user", "Ciao")]


def test_missing_ai_settings_rejected_before_any_write(client, provider) -> None:
    test_client, session_factory = client
    coach_id, client_id = _seed(session_factory, with_settings=False)
    conversation_id = _start(test_client, coach_id, client_id)

    response = test_client.post(
        f"/conversations/{conversation_id}/messages", json={"coach_id": coach_id, "content": "Ciao"}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Impostazioni AI non configurate"}
    assert provider.calls == []
    with session_factory() as db:
        assert db.query(AIMessage).count() == 0


def test_request_override_selects_provider_and_key(client, provider) -> None:
    test_client, session_factory = client
    coach_id, client_id = _seed(session_factory, with_settings=False)
    conversation_id = _start(test_client, coach_id, client_id)
    provider.replies = ["Ok"]

    response = test_client.post(
        f"/conversations/{conversation_id}/messages",
        json={
            "coach_id": coach_id,
            "content": "Ciao",
            "ai_settings": {"provider": "anthropic", "model": "claude-3-5-sonnet-latest", "api_key": "ak-inline"},
        },
    )

    assert response.status_code == 200
    assert provider.requested == ["anthropic"]
    assert provider.calls[0]["api_key"] == "ak-inline"
    assert provider.calls[0]["model"] == "claude-3-5-sonnet-latest"


def test_blank_message_is_rejected(client) -> None:
    test_client, session_factory = client
    coach_id, client_id = _seed(session_factory)
    conversation_id = _start(test_client, coach_id, client_id)

    response = test_client.post(
        f"/conversations/{conversation_id}/messages", json={"coach_id": coach_id, "content": "   "}
    )

    assert response.status_code == 422
    assert "error" in response.json()


def test_conversation_belongs_to_its_coach(client) -> None:
    test_client, session_factory = client
    coach_id, client_id = _seed(session_factory)
    conversation_id = _start(test_client, coach_id, client_id)

    foreign = test_client.get(f"/conversations/{conversation_id}", params={"coach_id": str(uuid4())})
    missing = test_client.get(f"/conversations/{uuid4()}", params={"coach_id": coach_id})

    assert foreign.status_code == 403
    assert missing.status_code == 404
    assert missing.json() == {"error": "Conversazione non trovata"}
