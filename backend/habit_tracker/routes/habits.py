"""
Habit Routes - Endpoints for habit management
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from habit_tracker.core.dependencies import get_current_actor
from habit_tracker.core.exceptions import (
    HabitNotFoundError,
    InvalidHabitDataError,
    PersistenceError,
    Unauthenticated
)
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
from habit_tracker.services import habit_service

router = APIRouter(prefix="/habits", tags=["habits"])


def _unauthorized(e: Unauthenticated) -> HTTPException:
    return HTTPException(status_code=401, detail=str(e), headers={"WWW-Authenticate": "Bearer"})


@router.get("", response_model=List[HabitWithCompletion])
async def list_habits(actor: Optional[str] = Depends(get_current_actor)):
    """Get all habits with today's completion status, newest first"""
    try:
        return habit_service.list_habits(actor)
    except Unauthenticated as e:
        raise _unauthorized(e)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Unexpected error: {str(e)}")


@router.post("", response_model=Habit, status_code=201)
async def create_habit(request: CreateHabitRequest, actor: Optional[str] = Depends(get_current_actor)):
    """Add a new habit"""
    try:
        return habit_service.create_habit(actor, request.name, request.description)
    except Unauthenticated as e:
        raise _unauthorized(e)
    except InvalidHabitDataError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Unexpected error: {str(e)}")


@router.get("/summary/today", response_model=DailySummary)
async def get_daily_summary(actor: Optional[str] = Depends(get_current_actor)):
    """Get today's summary of habit completion"""
    try:
        return habit_service.get_daily_summary(actor)
    except Unauthenticated as e:
        raise _unauthorized(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/maintenance/purge-orphans", response_model=PurgeResponse)
async def purge_orphaned_completions(actor: Optional[str] = Depends(get_current_actor)):
    """Delete completions left behind by deleted habits"""
    try:
        return habit_service.purge_orphaned_completions(actor)
    except Unauthenticated as e:
        raise _unauthorized(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{habit_id}", response_model=Habit)
async def update_habit(habit_id: str, request: UpdateHabitRequest,
                       actor: Optional[str] = Depends(get_current_actor)):
    """Edit a habit's name, description or stored streak"""
    try:
        return habit_service.update_habit(actor, habit_id, request.model_dump(exclude_unset=True))
    except Unauthenticated as e:
        raise _unauthorized(e)
    except HabitNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidHabitDataError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Unexpected error: {str(e)}")


@router.delete("/{habit_id}", response_model=DeleteHabitResponse)
async def delete_habit(habit_id: str, actor: Optional[str] = Depends(get_current_actor)):
    """Delete a habit"""
    try:
        return habit_service.delete_habit(actor, habit_id)
    except Unauthenticated as e:
        raise _unauthorized(e)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Unexpected error: {str(e)}")


@router.post("/{habit_id}/toggle", response_model=ToggleResponse)
async def toggle_habit(habit_id: str, actor: Optional[str] = Depends(get_current_actor)):
    """Mark a habit complete for today, or undo today's completion"""
    try:
        return habit_service.toggle_habit_completion(actor, habit_id)
    except Unauthenticated as e:
        raise _unauthorized(e)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Unexpected error: {str(e)}")


@router.post("/{habit_id}/reconcile", response_model=ReconcileResponse)
async def reconcile_streak(habit_id: str, actor: Optional[str] = Depends(get_current_actor)):
    """Recompute a habit's streak from its completion history"""
    try:
        return habit_service.reconcile_streak(actor, habit_id)
    except Unauthenticated as e:
        raise _unauthorized(e)
    except HabitNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Unexpected error: {str(e)}")
