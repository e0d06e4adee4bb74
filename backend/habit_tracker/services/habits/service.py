"""
Habits Service - Business logic for habit management
Handles listing, creating, editing and deleting habits, and toggling
today's completion with the matching streak adjustment
"""
from typing import Optional, Dict, Any, List
import logging

from habit_tracker.core.config import settings
from habit_tracker.core.constants import HABIT_EDITABLE_FIELDS, STREAK_UPDATE_ATTEMPTS
from habit_tracker.core.exceptions import (
    HabitTrackerException,
    HabitNotFoundError,
    InvalidHabitDataError,
    PersistenceError,
    Unauthenticated,
    UniqueViolationError
)
from habit_tracker.utils.timezone import get_now, get_today_date
from . import repository

logger = logging.getLogger(__name__)


def require_actor(actor: Optional[str]) -> str:
    """Fail fast before any persistence call when nobody is signed in"""
    if not actor:
        raise Unauthenticated()
    return actor


def list_habits(actor: Optional[str]) -> List[Dict[str, Any]]:
    """
    Get the actor's habits, newest first, with today's completion status

    Args:
        actor: Authenticated user id

    Returns:
        Habit dictionaries extended with completed_today and last_completed

    Raises:
        Unauthenticated: If actor is missing
        PersistenceError: If a query fails
    """
    user_id = require_actor(actor)
    today = get_today_date()

    habits = repository.get_habits(user_id)
    completions = repository.get_completions_for_date(user_id, today)
    completion_map = {c["habit_id"]: c["completed_at"] for c in completions}

    return [
        {
            **habit,
            "completed_today": habit["id"] in completion_map,
            "last_completed": completion_map.get(habit["id"])
        }
        for habit in habits
    ]


def create_habit(actor: Optional[str], name: str, description: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a habit owned by the actor. The streak starts at 0.

    Raises:
        Unauthenticated: If actor is missing
        InvalidHabitDataError: If the name is blank
        PersistenceError: If the insert fails
    """
    user_id = require_actor(actor)

    name = (name or "").strip()
    if not name:
        raise InvalidHabitDataError("Habit name must not be empty")
    description = (description or "").strip() or None

    habit = repository.create_habit(user_id, name, description)
    logger.info(f"Created habit {habit.get('id')} '{name}' for {user_id}")
    return habit


def update_habit(actor: Optional[str], habit_id: str, updates: Dict[str, Any],
                 expected: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    General habit edit path (name, description, streak)

    Args:
        actor: Authenticated user id
        habit_id: The habit ID
        updates: Fields to change
        expected: Column values the stored row must still hold for the write to apply

    Returns:
        Updated habit data

    Raises:
        Unauthenticated: If actor is missing
        InvalidHabitDataError: If updates are empty or invalid
        HabitNotFoundError: If the actor owns no such habit
        PersistenceError: If the update fails
    """
    user_id = require_actor(actor)

    unknown = set(updates) - set(HABIT_EDITABLE_FIELDS)
    if unknown:
        raise InvalidHabitDataError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    if not updates:
        raise InvalidHabitDataError("Must provide at least one field to update")

    update_data = dict(updates)
    if "name" in update_data:
        update_data["name"] = (update_data["name"] or "").strip()
        if not update_data["name"]:
            raise InvalidHabitDataError("Habit name must not be empty")
    if "description" in update_data:
        update_data["description"] = (update_data["description"] or "").strip() or None
    if "streak" in update_data:
        streak = update_data["streak"]
        if isinstance(streak, bool) or not isinstance(streak, int) or streak < 0:
            raise InvalidHabitDataError(f"Invalid streak: {streak}. Must be a non-negative integer")
    update_data["updated_at"] = get_now().isoformat()

    habit = repository.update_habit(user_id, habit_id, update_data, expected=expected)
    if habit is None:
        raise HabitNotFoundError(f"Habit {habit_id} not found")
    return habit


def delete_habit(actor: Optional[str], habit_id: str) -> Dict[str, Any]:
    """
    Delete one of the actor's habits.

    Deleting a habit that does not exist is not an error. Completions are
    removed as well only when CASCADE_DELETE_COMPLETIONS is enabled;
    otherwise they stay behind until purge_orphaned_completions runs.

    Raises:
        Unauthenticated: If actor is missing
        PersistenceError: If a delete fails
    """
    user_id = require_actor(actor)

    deleted = repository.delete_habit(user_id, habit_id)

    completions_deleted = 0
    if settings.CASCADE_DELETE_COMPLETIONS:
        completions_deleted = len(repository.delete_completions_for_habit(user_id, habit_id))

    return {
        "status": "success",
        "habit_id": habit_id,
        "deleted": bool(deleted),
        "completions_deleted": completions_deleted
    }


def update_habit_streak(actor: Optional[str], habit_id: str, completed: bool) -> Optional[int]:
    """
    Move the stored streak one step: up when completed, down (floored at 0) otherwise.
    A habit that cannot be found is skipped.

    The write only applies while the stored streak still equals the value it
    was computed from; a concurrent step in between forces a re-read.

    Returns:
        The new streak, or None if the habit does not exist

    Raises:
        Unauthenticated: If actor is missing
        PersistenceError: If reading or writing the habit fails, or the
            streak keeps changing underneath for every attempt
    """
    user_id = require_actor(actor)

    for attempt in range(1, STREAK_UPDATE_ATTEMPTS + 1):
        habit = repository.get_habit(user_id, habit_id)
        if not habit:
            logger.debug(f"Streak update skipped, habit {habit_id} not found")
            return None

        current = habit.get("streak") or 0
        new_streak = current + 1 if completed else max(0, current - 1)

        try:
            update_habit(user_id, habit_id, {"streak": new_streak}, expected={"streak": habit.get("streak")})
            return new_streak
        except HabitNotFoundError:
            logger.warning(f"Streak for habit {habit_id} changed during update (attempt {attempt}), retrying")

    raise PersistenceError(
        f"Failed to update streak for habit {habit_id}: concurrent changes after {STREAK_UPDATE_ATTEMPTS} attempts"
    )


def _current_streak(user_id: str, habit_id: str) -> Optional[int]:
    habit = repository.get_habit(user_id, habit_id)
    return habit.get("streak") if habit else None


def _toggle_result(habit_id: str, completed: bool, streak: Optional[int], changed: bool) -> Dict[str, Any]:
    return {
        "status": "success",
        "habit_id": habit_id,
        "completed": completed,
        "streak": streak,
        "changed": changed
    }


def _adjust_streak_after_toggle(user_id: str, habit_id: str, completed: bool) -> Optional[int]:
    """Apply the streak step; on failure try to repair from history, then re-raise"""
    # Import here to avoid circular dependency
    from .maintenance import reconcile_streak

    try:
        return update_habit_streak(user_id, habit_id, completed)
    except PersistenceError as e:
        logger.error(
            f"Completion for habit {habit_id} set to {completed} but streak update failed: {e}"
        )
        try:
            reconcile_streak(user_id, habit_id)
        except HabitTrackerException as repair_error:
            logger.error(f"Streak repair for habit {habit_id} failed: {repair_error}")
        raise


def toggle_habit_completion(actor: Optional[str], habit_id: str) -> Dict[str, Any]:
    """
    Flip today's completion for a habit and step its streak.

    NotCompleted -> Completed inserts a completion dated today and adds one
    to the streak. Completed -> NotCompleted deletes it and subtracts one,
    never going below 0.

    The (habit_id, date, user_id) unique key settles concurrent toggles: an
    insert rejected by it, or a delete that finds nothing left to remove,
    means another request already made the change, so this one leaves the
    streak alone. Turning on an id the actor owns no habit for writes
    nothing and reports changed=False.

    Returns:
        Dict with status, habit_id, completed, streak and changed

    Raises:
        Unauthenticated: If actor is missing
        PersistenceError: If any gateway step fails
    """
    user_id = require_actor(actor)
    today = get_today_date()

    existing = repository.get_completion_for_habit_and_date(user_id, habit_id, today)

    if existing:
        removed = repository.delete_completion(user_id, existing["id"])
        if not removed:
            logger.warning(f"Completion for habit {habit_id} on {today} already removed, skipping streak update")
            return _toggle_result(habit_id, False, _current_streak(user_id, habit_id), changed=False)
        completed = False
    else:
        try:
            inserted = repository.create_completion(user_id, habit_id, today, get_now())
        except UniqueViolationError:
            logger.warning(f"Habit {habit_id} already completed on {today}, skipping streak update")
            return _toggle_result(habit_id, True, _current_streak(user_id, habit_id), changed=False)
        completed = True

    streak = _adjust_streak_after_toggle(user_id, habit_id, completed)

    if completed and streak is None:
        # No owned habit behind this id; drop the completion just written
        repository.delete_completion(user_id, inserted["id"])
        logger.warning(f"Toggle for unknown habit {habit_id} by {user_id} discarded")
        return _toggle_result(habit_id, False, None, changed=False)

    logger.info(f"Habit {habit_id} marked {'complete' if completed else 'incomplete'} for {today}")
    return _toggle_result(habit_id, completed, streak, changed=True)


def get_daily_summary(actor: Optional[str]) -> Dict[str, Any]:
    """
    Get today's progress: totals, completion rate, and habit names by status

    Raises:
        Unauthenticated: If actor is missing
        PersistenceError: If a query fails
    """
    habits = list_habits(actor)
    today = get_today_date()

    completed_habits = [h["name"] for h in habits if h["completed_today"]]
    pending_habits = [h["name"] for h in habits if not h["completed_today"]]
    total_habits = len(habits)

    completion_rate = round(len(completed_habits) / total_habits * 100) if total_habits else 0

    return {
        "status": "success",
        "date": str(today),
        "total_habits": total_habits,
        "completed": len(completed_habits),
        "pending": len(pending_habits),
        "completion_rate": completion_rate,
        "completed_habits": completed_habits,
        "pending_habits": pending_habits
    }
