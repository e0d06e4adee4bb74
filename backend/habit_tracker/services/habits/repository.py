"""
Habits Repository - Centralized database access layer
All persistence gateway calls for habits and completions.
Every query is filtered by the owning user_id.
"""
from datetime import date, datetime
from typing import List, Dict, Any, Optional
import logging

from habit_tracker.core.constants import COMPLETIONS_TABLE, HABITS_TABLE
from habit_tracker.core import dependencies
from habit_tracker.core.exceptions import PersistenceError, UniqueViolationError

logger = logging.getLogger(__name__)


def _single(rows: List[Dict[str, Any]], what: str) -> Optional[Dict[str, Any]]:
    """Return the only row, None for no rows, and fail on ambiguity"""
    if not rows:
        return None
    if len(rows) > 1:
        raise PersistenceError(f"Expected a single {what}, found {len(rows)}")
    return rows[0]


# ============================================================================
# HABITS TABLE
# ============================================================================

def get_habits(user_id: str) -> List[Dict[str, Any]]:
    """
    Get all habits owned by a user, newest first

    Args:
        user_id: The owning user's id

    Returns:
        List of habit dictionaries ordered by created_at descending

    Raises:
        PersistenceError: If query fails
    """
    try:
        return dependencies.get_gateway().select(HABITS_TABLE, {"user_id": user_id}, order_by="created_at", desc=True)
    except Exception as e:
        logger.error(f"Database error fetching habits for {user_id}: {e}")
        raise PersistenceError(f"Failed to fetch habits: {e}")


def get_habit(user_id: str, habit_id: str) -> Optional[Dict[str, Any]]:
    """
    Get a single habit owned by a user

    Returns:
        Habit dictionary or None if not found

    Raises:
        PersistenceError: If query fails
    """
    try:
        rows = dependencies.get_gateway().select(HABITS_TABLE, {"id": habit_id, "user_id": user_id})
    except Exception as e:
        logger.error(f"Database error fetching habit {habit_id}: {e}")
        raise PersistenceError(f"Failed to fetch habit: {e}")
    return _single(rows, "habit")


def create_habit(user_id: str, name: str, description: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a new habit. Streak, id and timestamps come from storage defaults.

    Args:
        user_id: Owner
        name: Habit name
        description: Optional description

    Returns:
        Created habit data

    Raises:
        PersistenceError: If insert fails
    """
    try:
        return dependencies.get_gateway().insert(HABITS_TABLE, {
            "user_id": user_id,
            "name": name,
            "description": description
        })
    except Exception as e:
        logger.error(f"Database error creating habit: {e}")
        raise PersistenceError(f"Failed to create habit: {e}")


def update_habit(user_id: str, habit_id: str, update_data: Dict[str, Any],
                 expected: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """
    Update a habit

    Args:
        user_id: Owner
        habit_id: The habit ID
        update_data: Dictionary of fields to update
        expected: Optional column values the row must still hold (compare-and-set)

    Returns:
        Updated habit data, or None when no owned habit matched

    Raises:
        PersistenceError: If update fails
    """
    try:
        filters = {**(expected or {}), "id": habit_id, "user_id": user_id}
        rows = dependencies.get_gateway().update(HABITS_TABLE, filters, update_data)
    except Exception as e:
        logger.error(f"Database error updating habit {habit_id}: {e}")
        raise PersistenceError(f"Failed to update habit: {e}")
    return _single(rows, "habit")


def delete_habit(user_id: str, habit_id: str) -> List[Dict[str, Any]]:
    """
    Delete a habit

    Returns:
        Deleted rows (empty when nothing matched)

    Raises:
        PersistenceError: If delete fails
    """
    try:
        return dependencies.get_gateway().delete(HABITS_TABLE, {"id": habit_id, "user_id": user_id})
    except Exception as e:
        logger.error(f"Database error deleting habit {habit_id}: {e}")
        raise PersistenceError(f"Failed to delete habit: {e}")


# ============================================================================
# HABIT_COMPLETIONS TABLE
# ============================================================================

def get_completions(user_id: str) -> List[Dict[str, Any]]:
    """
    Get every completion owned by a user

    Raises:
        PersistenceError: If query fails
    """
    try:
        return dependencies.get_gateway().select(COMPLETIONS_TABLE, {"user_id": user_id})
    except Exception as e:
        logger.error(f"Database error fetching completions for {user_id}: {e}")
        raise PersistenceError(f"Failed to fetch completions: {e}")


def get_completions_for_date(user_id: str, target_date: date) -> List[Dict[str, Any]]:
    """
    Get a user's completions for a specific date

    Args:
        user_id: Owner
        target_date: The date to fetch completions for

    Returns:
        List of completion dictionaries

    Raises:
        PersistenceError: If query fails
    """
    try:
        return dependencies.get_gateway().select(COMPLETIONS_TABLE, {"user_id": user_id, "date": str(target_date)})
    except Exception as e:
        logger.error(f"Database error fetching completions for {target_date}: {e}")
        raise PersistenceError(f"Failed to fetch completions: {e}")


def get_completions_for_habit(user_id: str, habit_id: str) -> List[Dict[str, Any]]:
    """
    Get the full completion history of one habit

    Raises:
        PersistenceError: If query fails
    """
    try:
        return dependencies.get_gateway().select(COMPLETIONS_TABLE, {"habit_id": habit_id, "user_id": user_id},
                                                 order_by="date", desc=True)
    except Exception as e:
        logger.error(f"Database error fetching completions for habit {habit_id}: {e}")
        raise PersistenceError(f"Failed to fetch completions: {e}")


def get_completion_for_habit_and_date(user_id: str, habit_id: str, target_date: date) -> Optional[Dict[str, Any]]:
    """
    Get completion for a specific habit and date

    Returns:
        Completion dictionary or None if not found

    Raises:
        PersistenceError: If query fails or more than one row matches
    """
    try:
        rows = dependencies.get_gateway().select(COMPLETIONS_TABLE, {
            "habit_id": habit_id,
            "user_id": user_id,
            "date": str(target_date)
        })
    except Exception as e:
        logger.error(f"Database error fetching completion for habit {habit_id} on {target_date}: {e}")
        raise PersistenceError(f"Failed to fetch completion: {e}")
    return _single(rows, "completion")


def create_completion(user_id: str, habit_id: str, target_date: date, completed_at: datetime) -> Dict[str, Any]:
    """
    Create a new completion entry

    Returns:
        Created completion data

    Raises:
        UniqueViolationError: If the habit already has a completion for target_date
        PersistenceError: If insert fails
    """
    try:
        return dependencies.get_gateway().insert(COMPLETIONS_TABLE, {
            "habit_id": habit_id,
            "user_id": user_id,
            "date": str(target_date),
            "completed_at": completed_at.isoformat()
        })
    except UniqueViolationError:
        raise
    except Exception as e:
        logger.error(f"Database error creating completion: {e}")
        raise PersistenceError(f"Failed to add completion: {e}")


def delete_completion(user_id: str, completion_id: str) -> List[Dict[str, Any]]:
    """
    Delete one completion

    Returns:
        Deleted rows (empty if another request removed it first)

    Raises:
        PersistenceError: If delete fails
    """
    try:
        return dependencies.get_gateway().delete(COMPLETIONS_TABLE, {"id": completion_id, "user_id": user_id})
    except Exception as e:
        logger.error(f"Database error deleting completion {completion_id}: {e}")
        raise PersistenceError(f"Failed to remove completion: {e}")


def delete_completions_for_habit(user_id: str, habit_id: str) -> List[Dict[str, Any]]:
    """
    Delete all completions of one habit

    Raises:
        PersistenceError: If delete fails
    """
    try:
        return dependencies.get_gateway().delete(COMPLETIONS_TABLE, {"habit_id": habit_id, "user_id": user_id})
    except Exception as e:
        logger.error(f"Database error deleting completions for habit {habit_id}: {e}")
        raise PersistenceError(f"Failed to remove completions: {e}")
