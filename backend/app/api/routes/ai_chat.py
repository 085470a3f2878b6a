"""Stateless AI chat endpoint used by the web client."""
from __future__ import annotations

from time import perf_counter
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.schemas.ai_chat import AIChatRequest, AIChatResponse, ClientContextIn
from app.observability.metrics import log_metric
from app.services.ai_settings import AISelection
from app.services.client_context import ClientContext, RecentExercise, RecentSession
from app.services.llm.base import ChatMessage, LLMProvider, ProviderError, UnsupportedProviderError
from app.services.llm.factory import get_provider_factory
from app.services.planning_chat import generate_reply

router = APIRouter()

MISSING_KEY = "API key non configurata. Vai nelle impostazioni per configurare la tua API key."


@router.post("/ai-chat", response_model=AIChatResponse, tags=["ai-chat"])
def ai_chat(
    payload: AIChatRequest,
    http_request: Request,
    provider_factory: Callable[[str], LLMProvider] = Depends(get_provider_factory),
) -> AIChatResponse:
    """Answer one chat turn from caller-supplied context; nothing is persisted."""
    settings_in = payload.ai_settings
    if settings_in is None or not settings_in.api_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_KEY)

    selection = AISelection(
        provider=settings_in.provider.lower(),
        model=settings_in.model,
        api_key=settings_in.api_key,
    )
    history = [ChatMessage(role=m.role, content=m.content) for m in payload.messages]
    request_id = getattr(http_request.state, "request_id", None)

    start = perf_counter()
    success = False
    try:
        reply, plan = generate_reply(
            _to_context(payload.client_context),
            payload.available_exercises,
            [gym.name for gym in payload.available_gyms],
            history,
            selection,
            provider_factory=provider_factory,
            request_id=request_id,
        )
        success = True
    except UnsupportedProviderError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ProviderError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    finally:
        metric_metadata = {"provider": selection.provider, "model": selection.model}
        log_metric("ai_chat.success", 1 if success else 0, metadata=metric_metadata)
        log_metric("ai_chat.latency_ms", (perf_counter() - start) * 1000, metadata=metric_metadata)

    return AIChatResponse(message=reply, plan=plan, provider=selection.provider, model=selection.model)


def _to_context(context: ClientContextIn) -> ClientContext:
    return ClientContext(
        first_name=context.first_name,
        last_name=context.last_name,
        age=context.age,
        physical_notes=context.physical_notes,
        current_goal=context.current_goal,
        recent_sessions=[
            RecentSession(
                date=session.date,
                gym_name=session.gym_name,
                exercises=[
                    RecentExercise(
                        name=e.name,
                        sets=e.sets,
                        reps=e.reps,
                        weight_kg=e.weight_kg,
                        duration_seconds=e.duration_seconds,
                    )
                    for e in session.exercises
                ],
            )
            for session in context.recent_sessions
        ],
    )
