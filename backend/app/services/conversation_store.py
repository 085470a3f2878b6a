"""Persistence for planning conversations, their turns and proposed plans."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
from uuid import UUID

from sqlalchemy import asc, desc, false, update
from sqlalchemy.orm import Session

from app.db.models.ai_conversation import AIConversation, AIGeneratedPlan, AIMessage
from app.db.repositories import commit_or_rollback
from app.services.plan_extractor import TrainingPlan

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


@dataclass
class ConversationState:
    conversation: AIConversation
    messages: List[AIMessage] = field(default_factory=list)
    pending_plan: Optional[AIGeneratedPlan] = None


class ConversationStore:
    """Append-only store: conversations gain turns and plans, nothing is edited
    except a plan's accepted flag and the lazily set title."""

    def __init__(self, db: Session):
        self.db = db

    def create_conversation(self, coach_id: UUID, client_id: UUID) -> AIConversation:
        conversation = AIConversation(coach_id=coach_id, client_id=client_id, title=None)
        self.db.add(conversation)
        commit_or_rollback(self.db, conversation)
        return conversation

    def get_conversation(self, conversation_id: UUID) -> Optional[AIConversation]:
        return self.db.get(AIConversation, conversation_id)

    def load(self, conversation_id: UUID) -> Optional[ConversationState]:
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            return None
        return ConversationState(
            conversation=conversation,
            messages=self.list_messages(conversation_id),
            pending_plan=self.latest_unaccepted_plan(conversation_id),
        )

    def list_messages(self, conversation_id: UUID) -> List[AIMessage]:
        return (
            self.db.query(AIMessage)
            .filter(AIMessage.conversation_id == conversation_id)
            .order_by(asc(AIMessage.created_at))
            .all()
        )

    def append_message(self, conversation_id: UUID, role: str, content: str) -> AIMessage:
        message = AIMessage(conversation_id=conversation_id, role=role, content=content)
        self.db.add(message)
        commit_or_rollback(self.db, message)
        return message

    def append_plan(self, conversation_id: UUID, plan: TrainingPlan) -> AIGeneratedPlan:
        record = AIGeneratedPlan(
            conversation_id=conversation_id,
            plan_json=plan.model_dump(mode="json"),
            accepted=False,
        )
        self.db.add(record)
        commit_or_rollback(self.db, record)
        return record

    def latest_unaccepted_plan(self, conversation_id: UUID) -> Optional[AIGeneratedPlan]:
        return (
            self.db.query(AIGeneratedPlan)
            .filter(
                AIGeneratedPlan.conversation_id == conversation_id,
                AIGeneratedPlan.accepted == false(),
            )
            .order_by(desc(AIGeneratedPlan.created_at))
            .first()
        )

    def mark_plans_accepted(self, conversation_id: UUID, session_id: UUID) -> int:
        """Flip every still-unaccepted plan of the conversation; returns rows touched."""
        result = self.db.execute(
            update(AIGeneratedPlan)
            .where(
                AIGeneratedPlan.conversation_id == conversation_id,
                AIGeneratedPlan.accepted == false(),
            )
            .values(accepted=True, session_id=session_id)
            .execution_options(synchronize_session="fetch")
        )
        commit_or_rollback(self.db)
        return result.rowcount or 0

    def set_title_if_empty(self, conversation: AIConversation, title: str) -> bool:
        if conversation.title:
            return False
        conversation.title = title
        self.db.add(conversation)
        commit_or_rollback(self.db, conversation)
        return True
