"""Initial FitCoach planner schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def upgrade() -> None:
    op.create_table(
        "coaches",
        _id(),
        sa.Column("display_name", sa.Text(), nullable=True),
        _created_at(),
    )

    op.create_table(
        "clients",
        _id(),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("first_name", sa.Text(), nullable=False),
        sa.Column("last_name", sa.Text(), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("age_years", sa.Integer(), nullable=True),
        sa.Column("gender", sa.String(length=10), nullable=True),
        sa.Column("current_goal", sa.Text(), nullable=True),
        sa.Column("physical_notes", sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_clients_coach_id", "clients", ["coach_id"], unique=False)

    op.create_table(
        "goal_history",
        _id(),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("goal", sa.Text(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_goal_history_client_id", "goal_history", ["client_id"], unique=False)
    op.create_index(
        "uq_goal_history_open_per_client",
        "goal_history",
        ["client_id"],
        unique=True,
        postgresql_where=sa.text("ended_at IS NULL"),
    )

    op.create_table(
        "exercises",
        _id(),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_exercises_coach_id", "exercises", ["coach_id"], unique=False)

    op.create_table(
        "gyms",
        _id(),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_gyms_coach_id", "gyms", ["coach_id"], unique=False)

    op.create_table(
        "sessions",
        _id(),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("gym_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default=sa.text("'planned'")),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="SET NULL"),
        sa.CheckConstraint("status IN ('planned', 'completed')", name="ck_sessions_status"),
    )
    op.create_index("ix_sessions_client_id", "sessions", ["client_id"], unique=False)
    op.create_index("ix_sessions_session_date", "sessions", ["session_date"], unique=False)

    op.create_table(
        "session_exercises",
        _id(),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("exercise_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("sets", sa.Integer(), nullable=True),
        sa.Column("reps", sa.Integer(), nullable=True),
        sa.Column("weight_kg", sa.Float(), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("skipped", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["exercise_id"], ["exercises.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_session_exercises_session_id", "session_exercises", ["session_id"], unique=False)

    op.create_table(
        "ai_conversations",
        _id(),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_ai_conversations_coach_id", "ai_conversations", ["coach_id"], unique=False)
    op.create_index("ix_ai_conversations_client_id", "ai_conversations", ["client_id"], unique=False)

    op.create_table(
        "ai_messages",
        _id(),
        sa.Column("conversation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["conversation_id"], ["ai_conversations.id"], ondelete="CASCADE"),
        sa.CheckConstraint("role IN ('user', 'assistant')", name="ck_ai_messages_role"),
    )
    op.create_index("ix_ai_messages_conversation_id", "ai_messages", ["conversation_id"], unique=False)

    op.create_table(
        "ai_generated_plans",
        _id(),
        sa.Column("conversation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "plan_json",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("accepted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["conversation_id"], ["ai_conversations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_ai_generated_plans_conversation_id", "ai_generated_plans", ["conversation_id"], unique=False)
    op.create_index("ix_ai_generated_plans_accepted", "ai_generated_plans", ["accepted"], unique=False)

    op.create_table(
        "coach_ai_settings",
        _id(),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("preferred_provider", sa.String(length=20), nullable=False, server_default=sa.text("'openai'")),
        sa.Column("preferred_model", sa.Text(), nullable=False, server_default=sa.text("'gpt-4o'")),
        sa.Column("openai_api_key", sa.Text(), nullable=True),
        sa.Column("anthropic_api_key", sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("coach_id", name="uq_coach_ai_settings_coach_id"),
    )

    op.create_table(
        "coach_action_log",
        _id(),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action_type", sa.Text(), nullable=False),
        sa.Column(
            "action_payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("reason", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_coach_action_log_coach_id", "coach_action_log", ["coach_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_coach_action_log_coach_id", table_name="coach_action_log")
    op.drop_table("coach_action_log")
    op.drop_table("coach_ai_settings")
    op.drop_index("ix_ai_generated_plans_accepted", table_name="ai_generated_plans")
    op.drop_index("ix_ai_generated_plans_conversation_id", table_name="ai_generated_plans")
    op.drop_table("ai_generated_plans")
    op.drop_index("ix_ai_messages_conversation_id", table_name="ai_messages")
    op.drop_table("ai_messages")
    op.drop_index("ix_ai_conversations_client_id", table_name="ai_conversations")
    op.drop_index("ix_ai_conversations_coach_id", table_name="ai_conversations")
    op.drop_table("ai_conversations")
    op.drop_index("ix_session_exercises_session_id", table_name="session_exercises")
    op.drop_table("session_exercises")
    op.drop_index("ix_sessions_session_date", table_name="sessions")
    op.drop_index("ix_sessions_client_id", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("ix_gyms_coach_id", table_name="gyms")
    op.drop_table("gyms")
    op.drop_index("ix_exercises_coach_id", table_name="exercises")
    op.drop_table("exercises")
    op.drop_index("uq_goal_history_open_per_client", table_name="goal_history")
    op.drop_index("ix_goal_history_client_id", table_name="goal_history")
    op.drop_table("goal_history")
    op.drop_index("ix_clients_coach_id", table_name="clients")
    op.drop_table("clients")
    op.drop_table("coaches")
