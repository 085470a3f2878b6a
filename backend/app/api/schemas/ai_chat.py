"""Schemas for the stateless AI chat endpoint.

Field names follow the camelCase wire format used by the web client.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.services.plan_extractor import TrainingPlan


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatMessageIn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class RecentExerciseIn(_CamelModel):
    name: str
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight_kg: Optional[float] = None
    duration_seconds: Optional[int] = None


class RecentSessionIn(_CamelModel):
    date: str
    gym_name: Optional[str] = Field(default=None, alias="gymName")
    exercises: List[RecentExerciseIn] = Field(default_factory=list)


class ClientContextIn(_CamelModel):
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    age: Optional[int] = None
    physical_notes: Optional[str] = Field(default=None, alias="physicalNotes")
    current_goal: Optional[str] = Field(default=None, alias="currentGoal")
    recent_sessions: List[RecentSessionIn] = Field(default_factory=list, alias="recentSessions")


class GymRef(BaseModel):
    id: str
    name: str


class AISettingsIn(_CamelModel):
    provider: str
    model: str
    api_key: Optional[str] = Field(default=None, alias="apiKey")


class AIChatRequest(_CamelModel):
    messages: List[ChatMessageIn]
    client_context: ClientContextIn = Field(..., alias="clientContext")
    available_exercises: List[str] = Field(default_factory=list, alias="availableExercises")
    available_gyms: List[GymRef] = Field(default_factory=list, alias="availableGyms")
    ai_settings: Optional[AISettingsIn] = Field(default=None, alias="aiSettings")


class AIChatResponse(BaseModel):
    message: str
    plan: Optional[TrainingPlan]
    provider: str
    model: str
