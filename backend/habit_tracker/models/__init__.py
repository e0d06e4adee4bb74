"""
Pydantic models for the application
"""
from habit_tracker.models.habit import (
    CreateHabitRequest,
    UpdateHabitRequest,
    Habit,
    HabitWithCompletion,
    ToggleResponse,
    DeleteHabitResponse,
    DailySummary,
    ReconcileResponse,
    PurgeResponse
)

__all__ = [
    "CreateHabitRequest",
    "UpdateHabitRequest",
    "Habit",
    "HabitWithCompletion",
    "ToggleResponse",
    "DeleteHabitResponse",
    "DailySummary",
    "ReconcileResponse",
    "PurgeResponse"
]
