"""Send-message flow for AI planning conversations."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Callable, List, Optional, Sequence, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from app.db.models.ai_conversation import AIConversation, AIGeneratedPlan, AIMessage
from app.db.repositories import CatalogRepository, ClientRepository
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, trace
from app.services.ai_settings import AISelection
from app.services.client_context import ClientContext, build_client_context
from app.services.conversation_store import ROLE_ASSISTANT, ROLE_USER, ConversationStore
from app.services.llm.base import ChatMessage, LLMProvider, ProviderError
from app.services.llm.factory import get_provider
from app.services.plan_extractor import TrainingPlan, extract_training_plan
from app.services.planning_prompt import build_system_prompt

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str], LLMProvider]


@dataclass
class ChatTurn:
    user_message: AIMessage
    assistant_message: AIMessage
    plan: Optional[TrainingPlan]
    plan_record: Optional[AIGeneratedPlan]
    provider: str
    model: str


def generate_reply(
    context: ClientContext,
    exercise_names: Sequence[str],
    gym_names: Sequence[str],
    history: Sequence[ChatMessage],
    selection: AISelection,
    *,
    provider_factory: ProviderFactory = get_provider,
    request_id: str | None = None,
) -> Tuple[str, Optional[TrainingPlan]]:
    """Prompt the selected provider with the client context and return (reply, plan)."""
    system_prompt = build_system_prompt(context, exercise_names, gym_names)
    messages: List[ChatMessage] = [ChatMessage(role="system", content=system_prompt)]
    messages.extend(m for m in history if m.role != "system")

    provider = provider_factory(selection.provider)
    metadata = {
        "provider": selection.provider,
        "model": selection.model,
        "turns": len(messages) - 1,
        "prompt_chars": len(system_prompt),
    }
    start = perf_counter()
    success = False
    try:
        with trace("planning.provider_call", metadata=metadata, request_id=request_id) as span:
            reply = provider.complete(messages, selection.api_key, selection.model)
            plan = extract_training_plan(reply)
            annotate(span, **metadata, reply_chars=len(reply), plan_found=plan is not None)
            success = True
    finally:
        latency_ms = (perf_counter() - start) * 1000
        metric_metadata = {"provider": selection.provider, "model": selection.model}
        log_metric("planning.provider_call.success", 1 if success else 0, metadata=metric_metadata)
        log_metric("planning.provider_call.latency_ms", latency_ms, metadata=metric_metadata)

    return reply, plan


def send_message(
    store: ConversationStore,
    clients: ClientRepository,
    catalog: CatalogRepository,
    *,
    conversation: AIConversation,
    content: str,
    selection: AISelection,
    provider_factory: ProviderFactory = get_provider,
    request_id: str | None = None,
) -> ChatTurn:
    """Persist the coach's turn, ask the model, persist the reply and any proposed plan.

    The steps are not one transaction: if the provider call fails the user
    message stays saved and the error surfaces as a 502.
    """
    user_message = store.append_message(conversation.id, ROLE_USER, content)

    context = build_client_context(clients, conversation.client_id)
    if context is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente non trovato")

    exercise_names = [exercise.name for exercise in catalog.list_exercises(conversation.coach_id)]
    gym_names = [gym.name for gym in catalog.list_gyms(conversation.coach_id)]
    history = [
        ChatMessage(role=message.role, content=message.content)
        for message in store.list_messages(conversation.id)
        if message.role in (ROLE_USER, ROLE_ASSISTANT)
    ]

    try:
        reply, plan = generate_reply(
            context,
            exercise_names,
            gym_names,
            history,
            selection,
            provider_factory=provider_factory,
            request_id=request_id,
        )
    except ProviderError as exc:
        logger.warning(
            "Provider call failed for conversation %s: %s",
            conversation.id,
            exc,
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=provider_failure_message(exc),
        ) from exc

    assistant_message = store.append_message(conversation.id, ROLE_ASSISTANT, reply)

    plan_record: Optional[AIGeneratedPlan] = None
    if plan is not None:
        try:
            plan_record = store.append_plan(conversation.id, plan)
        except SQLAlchemyError:
            logger.warning("Could not save proposed plan for conversation %s", conversation.id, exc_info=True)

    return ChatTurn(
        user_message=user_message,
        assistant_message=assistant_message,
        plan=plan,
        plan_record=plan_record,
        provider=selection.provider,
        model=selection.model,
    )


def provider_failure_message(exc: ProviderError) -> str:
    if exc.status_code in (401, 403):
        return "API key non valida per il provider AI selezionato"
    if exc.status_code == 429:
        return "Limite di richieste del provider AI raggiunto, riprova più tardi"
    return "Errore nella chiamata AI"
