"""Turn an accepted proposed plan into a planned training session."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.db.models.ai_conversation import AIConversation
from app.db.models.catalog import Exercise, Gym
from app.db.models.training_session import SESSION_STATUS_PLANNED
from app.db.repositories import CatalogRepository, ClientRepository, TrainingSessionRepository
from app.services.conversation_store import ConversationStore
from app.services.plan_extractor import ProposedExercise, TrainingPlan

logger = logging.getLogger(__name__)

TITLE_TEMPLATE = "Piano per {first_name} - {session_date}"


@dataclass
class AcceptedPlan:
    session_id: UUID
    plan_id: UUID
    gym_id: Optional[UUID]
    session_exercise_count: int
    created_exercises: List[str] = field(default_factory=list)
    skipped_exercises: List[str] = field(default_factory=list)
    plans_marked: int = 0
    title_set: bool = False


def accept_plan(
    store: ConversationStore,
    clients: ClientRepository,
    catalog: CatalogRepository,
    sessions: TrainingSessionRepository,
    *,
    conversation: AIConversation,
    coach_id: UUID,
    gym_id: Optional[UUID] = None,
    today: Optional[date] = None,
) -> Optional[AcceptedPlan]:
    """Commit the conversation's latest unaccepted plan as a planned session.

    Steps run as independent writes: session row, missing catalog entries,
    session exercises in one batch, accepted flag, conversation title. Only
    a failure to create the session row aborts (returns None); a catalog
    entry that cannot be created drops that single exercise. Raises 409
    without writing anything when no unaccepted plan is left, which makes a
    repeated call harmless.
    """
    record = store.latest_unaccepted_plan(conversation.id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Nessun piano da accettare")
    try:
        plan = TrainingPlan.model_validate(record.plan_json or {})
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Piano non valido") from exc

    resolved_gym_id = _resolve_gym(catalog, coach_id, gym_id, plan.gym_name)

    try:
        session = sessions.create_session(
            client_id=conversation.client_id,
            gym_id=resolved_gym_id,
            session_date=today or date.today(),
            notes=plan.notes or None,
            status=SESSION_STATUS_PLANNED,
        )
    except SQLAlchemyError:
        logger.error("Could not create session for conversation %s", conversation.id, exc_info=True)
        return None

    exercises = catalog.list_exercises(coach_id)
    known_ids = {exercise.id for exercise in exercises}
    name_map = build_name_map(exercises)

    rows: List[Dict[str, Any]] = []
    created: List[str] = []
    skipped: List[str] = []
    for proposed in plan.exercises:
        exercise_id = _lookup(proposed, known_ids, name_map)
        if exercise_id is None:
            try:
                new_exercise = catalog.create_exercise(coach_id, proposed.exercise_name, proposed.notes or None)
            except SQLAlchemyError:
                logger.warning("Could not create exercise %r; dropping it from the session", proposed.exercise_name, exc_info=True)
                skipped.append(proposed.exercise_name)
                continue
            exercise_id = new_exercise.id
            known_ids.add(exercise_id)
            name_map[proposed.exercise_name.lower()] = exercise_id
            created.append(proposed.exercise_name)

        rows.append(
            {
                "exercise_id": exercise_id,
                "order_index": len(rows),
                "sets": proposed.sets,
                "reps": proposed.reps,
                "weight_kg": proposed.weight_kg,
                "duration_seconds": proposed.duration_seconds,
                "notes": proposed.notes,
            }
        )

    added = 0
    try:
        added = len(sessions.add_exercises(session.id, rows))
    except SQLAlchemyError:
        logger.error("Could not add exercises to session %s", session.id, exc_info=True)

    marked = store.mark_plans_accepted(conversation.id, session.id)

    title_set = False
    client = clients.get(conversation.client_id)
    if client is not None:
        title = TITLE_TEMPLATE.format(first_name=client.first_name, session_date=plan.session_date)
        title_set = store.set_title_if_empty(conversation, title)

    logger.info(
        "Accepted plan %s into session %s (%d exercises, %d created, %d skipped)",
        record.id,
        session.id,
        added,
        len(created),
        len(skipped),
    )
    return AcceptedPlan(
        session_id=session.id,
        plan_id=record.id,
        gym_id=resolved_gym_id,
        session_exercise_count=added,
        created_exercises=created,
        skipped_exercises=skipped,
        plans_marked=marked,
        title_set=title_set,
    )


def build_name_map(exercises: List[Exercise]) -> Dict[str, UUID]:
    """Lower-cased name -> id; the coach's own entries shadow shared ones."""
    name_map: Dict[str, UUID] = {}
    for exercise in sorted(exercises, key=lambda e: e.coach_id is not None):
        name_map[exercise.name.lower()] = exercise.id
    return name_map


def _lookup(proposed: ProposedExercise, known_ids: set, name_map: Dict[str, UUID]) -> Optional[UUID]:
    if proposed.exercise_id and proposed.exercise_id in known_ids:
        return proposed.exercise_id
    return name_map.get(proposed.exercise_name.lower())


def _resolve_gym(
    catalog: CatalogRepository,
    coach_id: UUID,
    gym_id: Optional[UUID],
    gym_name: Optional[str],
) -> Optional[UUID]:
    """Explicit choice first, then the plan's suggested gym matched by name."""
    if gym_id is not None:
        gym: Optional[Gym] = catalog.get_gym(gym_id)
        if gym is None or gym.coach_id != coach_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Palestra non valida")
        return gym.id
    if not gym_name:
        return None
    wanted = gym_name.strip().lower()
    for candidate in catalog.list_gyms(coach_id):
        if candidate.name.lower() == wanted:
            return candidate.id
    return None
