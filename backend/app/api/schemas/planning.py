"""Schemas for AI planning conversations."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.services.plan_extractor import TrainingPlan


class ConversationCreateRequest(BaseModel):
    coach_id: UUID
    client_id: UUID


class MessagePayload(BaseModel):
    id: UUID
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime


class ConversationResponse(BaseModel):
    id: UUID
    coach_id: UUID
    client_id: UUID
    title: Optional[str]
    created_at: datetime
    messages: List[MessagePayload] = Field(default_factory=list)
    pending_plan: Optional[TrainingPlan] = None
    pending_plan_id: Optional[UUID] = None


class AISettingsOverride(BaseModel):
    provider: Literal["openai", "anthropic"]
    model: Optional[str] = None
    api_key: Optional[str] = None


class SendMessageRequest(BaseModel):
    coach_id: UUID
    content: str = Field(..., min_length=1, max_length=8000)
    ai_settings: Optional[AISettingsOverride] = None

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("content must not be blank")
        return cleaned


class SendMessageResponse(BaseModel):
    conversation_id: UUID
    user_message: MessagePayload
    assistant_message: MessagePayload
    message: str
    plan: Optional[TrainingPlan]
    plan_id: Optional[UUID]
    provider: str
    model: str
    request_id: str


class AcceptPlanRequest(BaseModel):
    coach_id: UUID
    gym_id: Optional[UUID] = None


class AcceptPlanResponse(BaseModel):
    conversation_id: UUID
    session_id: UUID
    plan_id: UUID
    gym_id: Optional[UUID]
    session_exercise_count: int
    created_exercises: List[str]
    skipped_exercises: List[str]
    title: Optional[str]
    request_id: str
