"""AI planning conversation routes."""
from __future__ import annotations

from time import perf_counter
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.planning import (
    AcceptPlanRequest,
    AcceptPlanResponse,
    ConversationCreateRequest,
    ConversationResponse,
    MessagePayload,
    SendMessageRequest,
    SendMessageResponse,
)
from app.db.deps import get_db
from app.db.models.ai_conversation import AIConversation, AIMessage
from app.db.repositories import CatalogRepository, ClientRepository, TrainingSessionRepository
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, trace
from app.services.action_log import record_coach_action
from app.services.ai_settings import resolve_ai_selection
from app.services.conversation_store import ConversationStore
from app.services.llm.base import LLMProvider
from app.services.llm.factory import get_provider_factory
from app.services.plan_acceptance import AcceptedPlan, accept_plan
from app.services.plan_extractor import TrainingPlan
from app.services.planning_chat import send_message

router = APIRouter()


@router.post(
    "/conversations",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["planning"],
)
def start_conversation(payload: ConversationCreateRequest, db: Session = Depends(get_db)) -> ConversationResponse:
    """Open a new planning conversation for one of the coach's clients."""
    client = ClientRepository(db).get(payload.client_id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente non trovato")
    if client.coach_id != payload.coach_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cliente non associato al coach")

    conversation = ConversationStore(db).create_conversation(payload.coach_id, payload.client_id)
    log_metric("planning.conversation.started", 1, metadata={"coach_id": str(payload.coach_id)})
    return _conversation_response(conversation)


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse, tags=["planning"])
def load_conversation(
    conversation_id: UUID,
    coach_id: UUID = Query(..., description="Coach owning the conversation"),
    db: Session = Depends(get_db),
) -> ConversationResponse:
    """Return the conversation with its turns and the latest unaccepted plan."""
    store = ConversationStore(db)
    _owned_conversation(store, conversation_id, coach_id)
    state = store.load(conversation_id)
    pending = None
    if state.pending_plan is not None:
        pending = TrainingPlan.model_validate(state.pending_plan.plan_json)
    return _conversation_response(
        state.conversation,
        messages=state.messages,
        pending_plan=pending,
        pending_plan_id=state.pending_plan.id if state.pending_plan else None,
    )


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=SendMessageResponse,
    tags=["planning"],
)
def post_message(
    conversation_id: UUID,
    payload: SendMessageRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    provider_factory: Callable[[str], LLMProvider] = Depends(get_provider_factory),
) -> SendMessageResponse:
    """Send the coach's message to the model and store the reply."""
    request_id = getattr(http_request.state, "request_id", None)
    store = ConversationStore(db)
    conversation = _owned_conversation(store, conversation_id, payload.coach_id)

    override = payload.ai_settings
    selection = resolve_ai_selection(
        db,
        payload.coach_id,
        provider=override.provider if override else None,
        model=override.model if override else None,
        api_key=override.api_key if override else None,
    )

    base_metadata: Dict[str, Any] = {
        "route": f"/conversations/{conversation_id}/messages",
        "conversation_id": str(conversation_id),
        "provider": selection.provider,
        "model": selection.model,
        "content_length": len(payload.content),
    }
    start = perf_counter()
    success = False
    plan_found = False
    try:
        with trace(
            "planning.send_message",
            metadata=base_metadata,
            coach_id=str(payload.coach_id),
            request_id=request_id,
        ) as span:
            turn = send_message(
                store,
                ClientRepository(db),
                CatalogRepository(db),
                conversation=conversation,
                content=payload.content,
                selection=selection,
                provider_factory=provider_factory,
                request_id=request_id,
            )
            plan_found = turn.plan is not None
            success = True
            annotate(span, **base_metadata, plan_found=plan_found)
    finally:
        metric_metadata = {"provider": selection.provider, "model": selection.model}
        log_metric("planning.send_message.success", 1 if success else 0, metadata=metric_metadata)
        log_metric("planning.send_message.plan_found", 1 if plan_found else 0, metadata=metric_metadata)
        log_metric("planning.send_message.latency_ms", (perf_counter() - start) * 1000, metadata=metric_metadata)

    return SendMessageResponse(
        conversation_id=conversation.id,
        user_message=_message_payload(turn.user_message),
        assistant_message=_message_payload(turn.assistant_message),
        message=turn.assistant_message.content,
        plan=turn.plan,
        plan_id=turn.plan_record.id if turn.plan_record else None,
        provider=turn.provider,
        model=turn.model,
        request_id=request_id or "",
    )


@router.post(
    "/conversations/{conversation_id}/accept",
    response_model=AcceptPlanResponse,
    tags=["planning"],
)
def accept_conversation_plan(
    conversation_id: UUID,
    payload: AcceptPlanRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> AcceptPlanResponse:
    """Commit the pending plan as a planned session dated today."""
    request_id = getattr(http_request.state, "request_id", None)
    store = ConversationStore(db)
    conversation = _owned_conversation(store, conversation_id, payload.coach_id)

    base_metadata: Dict[str, Any] = {
        "route": f"/conversations/{conversation_id}/accept",
        "conversation_id": str(conversation_id),
        "gym_override": payload.gym_id is not None,
    }
    start = perf_counter()
    result: Optional[AcceptedPlan] = None
    try:
        with trace(
            "planning.accept_plan",
            metadata=base_metadata,
            coach_id=str(payload.coach_id),
            request_id=request_id,
        ) as span:
            result = accept_plan(
                store,
                ClientRepository(db),
                CatalogRepository(db),
                TrainingSessionRepository(db),
                conversation=conversation,
                coach_id=payload.coach_id,
                gym_id=payload.gym_id,
            )
            if result is not None:
                annotate(
                    span,
                    **base_metadata,
                    session_id=str(result.session_id),
                    created_exercises=len(result.created_exercises),
                    skipped_exercises=len(result.skipped_exercises),
                )
    finally:
        metric_metadata = {"conversation_id": str(conversation_id)}
        log_metric("planning.accept_plan.success", 1 if result else 0, metadata=metric_metadata)
        log_metric("planning.accept_plan.latency_ms", (perf_counter() - start) * 1000, metadata=metric_metadata)

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Errore nella creazione della sessione",
        )

    record_coach_action(
        db,
        coach_id=payload.coach_id,
        action_type="plan_accepted",
        reason=f"Coach accepted AI plan for conversation {conversation_id}",
        payload={
            "conversation_id": str(conversation_id),
            "plan_id": str(result.plan_id),
            "session_id": str(result.session_id),
            "created_exercises": result.created_exercises,
            "skipped_exercises": result.skipped_exercises,
            "request_id": request_id,
        },
    )

    return AcceptPlanResponse(
        conversation_id=conversation.id,
        session_id=result.session_id,
        plan_id=result.plan_id,
        gym_id=result.gym_id,
        session_exercise_count=result.session_exercise_count,
        created_exercises=result.created_exercises,
        skipped_exercises=result.skipped_exercises,
        title=conversation.title,
        request_id=request_id or "",
    )


def _owned_conversation(store: ConversationStore, conversation_id: UUID, coach_id: UUID) -> AIConversation:
    conversation = store.get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversazione non trovata")
    if conversation.coach_id != coach_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Conversazione non associata al coach")
    return conversation


def _message_payload(message: AIMessage) -> MessagePayload:
    return MessagePayload(
        id=message.id,
        role=message.role,
        content=message.content,
        created_at=message.created_at,
    )


def _conversation_response(
    conversation: AIConversation,
    *,
    messages: Optional[list] = None,
    pending_plan: Optional[TrainingPlan] = None,
    pending_plan_id: Optional[UUID] = None,
) -> ConversationResponse:
    return ConversationResponse(
        id=conversation.id,
        coach_id=conversation.coach_id,
        client_id=conversation.client_id,
        title=conversation.title,
        created_at=conversation.created_at,
        messages=[_message_payload(message) for message in messages or []],
        pending_plan=pending_plan,
        pending_plan_id=pending_plan_id,
    )
