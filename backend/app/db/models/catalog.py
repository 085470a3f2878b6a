"""Exercise catalog and gym ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Exercise(Base):
    __tablename__ = "exercises"
    __table_args__ = (Index("ix_exercises_coach_id", "coach_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    # NULL coach_id marks a shared catalog entry.
    coach_id = Column(UUID(as_uuid=True), ForeignKey("coaches.id", ondelete="CASCADE"), nullable=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Gym(Base):
    __tablename__ = "gyms"
    __table_args__ = (Index("ix_gyms_coach_id", "coach_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    coach_id = Column(UUID(as_uuid=True), ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
