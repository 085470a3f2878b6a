"""Schemas for per-coach AI settings."""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel


class AISettingsUpdateRequest(BaseModel):
    preferred_provider: Optional[Literal["openai", "anthropic"]] = None
    preferred_model: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None


class AISettingsResponse(BaseModel):
    coach_id: UUID
    preferred_provider: str
    preferred_model: str
    has_openai_api_key: bool
    has_anthropic_api_key: bool
    updated_at: Optional[datetime]
