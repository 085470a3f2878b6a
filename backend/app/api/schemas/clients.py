"""Schemas for client goal history."""
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class GoalCreateRequest(BaseModel):
    coach_id: UUID
    goal: str = Field(..., min_length=1, max_length=500)

    @field_validator("goal")
    @classmethod
    def trim_goal(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("goal must not be blank")
        return cleaned


class GoalResponse(BaseModel):
    id: UUID
    client_id: UUID
    goal: str
    started_at: datetime
    ended_at: Optional[datetime]
