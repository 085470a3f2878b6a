"""ORM models exposed for metadata discovery."""
from app.db.models.ai_conversation import AIConversation, AIGeneratedPlan, AIMessage
from app.db.models.catalog import Exercise, Gym
from app.db.models.client import Client, GoalHistory
from app.db.models.coach import Coach
from app.db.models.coach_action_log import CoachActionLog
from app.db.models.coach_ai_settings import CoachAISettings
from app.db.models.training_session import SessionExercise, TrainingSession

__all__ = [
    "AIConversation",
    "AIGeneratedPlan",
    "AIMessage",
    "Client",
    "Coach",
    "CoachAISettings",
    "CoachActionLog",
    "Exercise",
    "GoalHistory",
    "Gym",
    "SessionExercise",
    "TrainingSession",
]
