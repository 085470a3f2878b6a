"""Per-coach AI provider settings and request-time provider selection."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.db.models.coach_ai_settings import CoachAISettings
from app.db.repositories import commit_or_rollback
from app.services.coach_service import get_or_create_coach
from app.services.llm.factory import PROVIDERS

PROVIDER_LABELS = {"openai": "OpenAI", "anthropic": "Anthropic"}


@dataclass(frozen=True)
class AISelection:
    provider: str
    model: str
    api_key: str


def get_ai_settings(db: Session, coach_id: UUID) -> Optional[CoachAISettings]:
    return db.query(CoachAISettings).filter(CoachAISettings.coach_id == coach_id).one_or_none()


def save_ai_settings(db: Session, coach_id: UUID, updates: dict) -> CoachAISettings:
    """Insert or patch the coach's settings row with the provided fields."""
    provider = updates.get("preferred_provider")
    if provider is not None and provider not in PROVIDERS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Provider non supportato: {provider}")

    get_or_create_coach(db, coach_id)
    row = get_ai_settings(db, coach_id)
    if row is None:
        row = CoachAISettings(coach_id=coach_id)
    for key, value in updates.items():
        setattr(row, key, value)
    db.add(row)
    commit_or_rollback(db, row)
    return row


def api_key_for(row: CoachAISettings, provider: str) -> Optional[str]:
    if provider == "openai":
        return row.openai_api_key
    if provider == "anthropic":
        return row.anthropic_api_key
    return None


def resolve_ai_selection(
    db: Session,
    coach_id: UUID,
    *,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
) -> AISelection:
    """Pick provider, model and key: explicit request values win over stored settings.

    Raises 400 before any write when nothing usable is configured.
    """
    row = get_ai_settings(db, coach_id)
    if row is None and not (provider and api_key):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Impostazioni AI non configurate")

    chosen_provider = (provider or (row.preferred_provider if row else None) or "").lower()
    if chosen_provider not in PROVIDERS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Provider non supportato: {chosen_provider or '-'}",
        )

    chosen_model = model or (row.preferred_model if row else None)
    if not chosen_model:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Modello AI non configurato")

    key = api_key or (api_key_for(row, chosen_provider) if row else None)
    if not key:
        label = PROVIDER_LABELS.get(chosen_provider, chosen_provider)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"API key per {label} non configurata")

    return AISelection(provider=chosen_provider, model=chosen_model, api_key=key)
