"""Training session ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text as sa_text,
)
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base

SESSION_STATUS_PLANNED = "planned"
SESSION_STATUS_COMPLETED = "completed"


class TrainingSession(Base):
    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint("status IN ('planned', 'completed')", name="ck_sessions_status"),
        Index("ix_sessions_client_id", "client_id"),
        Index("ix_sessions_session_date", "session_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    gym_id = Column(UUID(as_uuid=True), ForeignKey("gyms.id", ondelete="SET NULL"), nullable=True)
    session_date = Column(Date, nullable=False)
    status = Column(String(length=20), nullable=False, server_default=sa_text("'planned'"))
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SessionExercise(Base):
    __tablename__ = "session_exercises"
    __table_args__ = (Index("ix_session_exercises_session_id", "session_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    session_id = Column(UUID(as_uuid=True), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False)
    exercise_id = Column(UUID(as_uuid=True), ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False)
    order_index = Column(Integer, nullable=False, server_default=sa_text("0"))
    sets = Column(Integer, nullable=True)
    reps = Column(Integer, nullable=True)
    weight_kg = Column(Float, nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    completed = Column(Boolean, nullable=False, server_default=sa_text("false"))
    skipped = Column(Boolean, nullable=False, server_default=sa_text("false"))
