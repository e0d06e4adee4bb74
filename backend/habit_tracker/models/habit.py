"""
Pydantic models for habits
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List


class CreateHabitRequest(BaseModel):
    """Request model for adding a new habit"""
    name: str = Field(..., min_length=1, max_length=200, description="Habit name")
    description: Optional[str] = Field(None, max_length=1000, description="Optional description")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject names that are only whitespace"""
        if not v.strip():
            raise ValueError("Habit name must not be empty")
        return v.strip()


class UpdateHabitRequest(BaseModel):
    """Request model for editing a habit. Only fields that are sent are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=200, description="New habit name")
    description: Optional[str] = Field(None, max_length=1000, description="New description")
    streak: Optional[int] = Field(None, ge=0, description="Stored streak value")


class Habit(BaseModel):
    """Stored habit record"""
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    streak: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator('id', 'user_id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        """Accept integer or uuid primary keys"""
        return str(v)


class HabitWithCompletion(Habit):
    """Habit with today's completion status"""
    completed_today: bool = False
    last_completed: Optional[str] = None


class ToggleResponse(BaseModel):
    """Outcome of toggling today's completion"""
    status: str
    habit_id: str
    completed: bool
    streak: Optional[int] = None
    changed: bool


class DeleteHabitResponse(BaseModel):
    """Outcome of deleting a habit"""
    status: str
    habit_id: str
    deleted: bool
    completions_deleted: int = 0


class DailySummary(BaseModel):
    """Today's progress across all of the user's habits"""
    status: str
    date: str
    total_habits: int
    completed: int
    pending: int
    completion_rate: int
    completed_habits: List[str]
    pending_habits: List[str]


class ReconcileResponse(BaseModel):
    """Result of recomputing a streak from completion history"""
    habit_id: str
    previous_streak: int
    streak: int
    changed: bool


class PurgeResponse(BaseModel):
    """Result of removing orphaned completions"""
    status: str
    deleted: int
