"""Per-coach AI provider settings."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class CoachAISettings(Base):
    __tablename__ = "coach_ai_settings"
    __table_args__ = (UniqueConstraint("coach_id", name="uq_coach_ai_settings_coach_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    coach_id = Column(UUID(as_uuid=True), ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    preferred_provider = Column(String(length=20), nullable=False, server_default=sa_text("'openai'"))
    preferred_model = Column(Text, nullable=False, server_default=sa_text("'gpt-4o'"))
    openai_api_key = Column(Text, nullable=True)
    anthropic_api_key = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
