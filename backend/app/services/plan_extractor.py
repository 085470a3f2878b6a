"""Pull the structured training plan out of a free-text assistant reply."""
from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ValidationError, field_validator

from app.services.planning_prompt import PLAN_FENCE_TAG

logger = logging.getLogger(__name__)

PLAN_BLOCK_PATTERN = re.compile(rf"```{PLAN_FENCE_TAG}\s*([\s\S]*?)\s*```")


class ProposedExercise(BaseModel):
    """One exercise line of a proposed plan."""

    exercise_name: str = Field(..., min_length=1)
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight_kg: Optional[float] = None
    duration_seconds: Optional[int] = None
    notes: Optional[str] = None
    exercise_id: Optional[UUID] = Field(default=None, description="Catalog id when already resolved.")

    @field_validator("sets", "reps", "duration_seconds", mode="before")
    @classmethod
    def _lenient_int(cls, value: Any) -> Optional[int]:
        number = _coerce_number(value)
        return None if number is None else int(round(number))

    @field_validator("weight_kg", mode="before")
    @classmethod
    def _lenient_float(cls, value: Any) -> Optional[float]:
        return _coerce_number(value)

    @field_validator("exercise_name", mode="before")
    @classmethod
    def _name_text(cls, value: Any) -> Any:
        text = _optional_text(value)
        return text.strip() if text is not None else value

    @field_validator("notes", mode="before")
    @classmethod
    def _lenient_notes(cls, value: Any) -> Optional[str]:
        return _optional_text(value)

    @field_validator("exercise_id", mode="before")
    @classmethod
    def _lenient_exercise_id(cls, value: Any) -> Optional[UUID]:
        if value is None or isinstance(value, UUID):
            return value
        try:
            return UUID(str(value))
        except ValueError:
            return None


class TrainingPlan(BaseModel):
    """Plan payload carried in a ``training_plan`` fenced block.

    Only ``session_date`` and ``exercises`` decide whether a block is a plan.
    Optional fields of the wrong type are coerced or dropped, and exercise
    entries without a usable name are skipped.
    """

    gym_name: Optional[str] = None
    session_date: str = Field(..., min_length=1)
    exercises: List[ProposedExercise]
    notes: Optional[str] = None

    @field_validator("gym_name", "notes", mode="before")
    @classmethod
    def _lenient_text(cls, value: Any) -> Optional[str]:
        return _optional_text(value)

    @field_validator("session_date", mode="before")
    @classmethod
    def _date_text(cls, value: Any) -> Any:
        text = _optional_text(value)
        return text if text is not None else value

    @field_validator("exercises", mode="before")
    @classmethod
    def _usable_exercises(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        usable = [entry for entry in value if isinstance(entry, dict) and _optional_text(entry.get("exercise_name"))]
        if len(usable) != len(value):
            logger.info("Dropping %d malformed exercise entries", len(value) - len(usable))
        return usable


def extract_training_plan(content: str | None) -> Optional[TrainingPlan]:
    """Return the first embedded plan, or None.

    A reply without a plan block is a normal conversational turn. Malformed
    JSON or a block missing ``session_date``/``exercises`` also yields None:
    the text is model-generated and never trusted to be well formed.
    """
    if not content:
        return None
    match = PLAN_BLOCK_PATTERN.search(content)
    if not match:
        return None

    try:
        raw = json.loads(match.group(1))
    except ValueError:
        logger.info("Ignoring training_plan block with invalid JSON")
        return None
    if not isinstance(raw, dict):
        return None

    try:
        return TrainingPlan.model_validate(raw)
    except ValidationError as exc:
        logger.info("Ignoring training_plan block that failed validation: %s", exc.error_count())
        return None


def _coerce_number(value: Any) -> Optional[float]:
    # Models occasionally emit "12" or "10-12"; keep what parses, drop the rest.
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip().replace(",", "."))
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None
