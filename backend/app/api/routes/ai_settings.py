"""Per-coach AI settings routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.schemas.ai_settings import AISettingsResponse, AISettingsUpdateRequest
from app.db.deps import get_db
from app.db.models.coach_ai_settings import CoachAISettings
from app.services.ai_settings import get_ai_settings, save_ai_settings

router = APIRouter()


@router.get("/coaches/{coach_id}/ai-settings", response_model=AISettingsResponse, tags=["ai-settings"])
def read_ai_settings(coach_id: UUID, db: Session = Depends(get_db)) -> AISettingsResponse:
    row = get_ai_settings(db, coach_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Impostazioni AI non configurate")
    return _serialize(row)


@router.put("/coaches/{coach_id}/ai-settings", response_model=AISettingsResponse, tags=["ai-settings"])
def update_ai_settings(
    coach_id: UUID,
    payload: AISettingsUpdateRequest,
    db: Session = Depends(get_db),
) -> AISettingsResponse:
    """Create or patch the settings; keys are stored but never echoed back."""
    updates = payload.model_dump(exclude_unset=True)
    row = save_ai_settings(db, coach_id, updates)
    return _serialize(row)


def _serialize(row: CoachAISettings) -> AISettingsResponse:
    return AISettingsResponse(
        coach_id=row.coach_id,
        preferred_provider=row.preferred_provider,
        preferred_model=row.preferred_model,
        has_openai_api_key=bool(row.openai_api_key),
        has_anthropic_api_key=bool(row.anthropic_api_key),
        updated_at=row.updated_at,
    )
