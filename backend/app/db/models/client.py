"""Client and goal-history ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import utcnow


class Client(Base):
    __tablename__ = "clients"
    __table_args__ = (Index("ix_clients_coach_id", "coach_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    coach_id = Column(UUID(as_uuid=True), ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    birth_date = Column(Date, nullable=True)
    age_years = Column(Integer, nullable=True)
    gender = Column(String(length=10), nullable=True)
    # Mirrors the open goal_history entry.
    current_goal = Column(Text, nullable=True)
    physical_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class GoalHistory(Base):
    __tablename__ = "goal_history"
    __table_args__ = (
        Index("ix_goal_history_client_id", "client_id"),
        # At most one open goal per client.
        Index(
            "uq_goal_history_open_per_client",
            "client_id",
            unique=True,
            postgresql_where=sa_text("ended_at IS NULL"),
            sqlite_where=sa_text("ended_at IS NULL"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    goal = Column(Text, nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    ended_at = Column(DateTime(timezone=True), nullable=True)
