"""
Habit maintenance - repair operations for the stored streak counter and
completions left behind by deleted habits. Not used on the request hot path.
"""
from datetime import date, timedelta
from typing import Dict, Any, Iterable, Optional, Union
import logging

from habit_tracker.core.exceptions import HabitNotFoundError
from habit_tracker.utils.timezone import get_today_date
from . import repository
from .service import require_actor, update_habit

logger = logging.getLogger(__name__)


def compute_streak(dates: Iterable[Union[date, str]], today: date) -> int:
    """
    Count consecutive completed days ending today.

    A habit not yet done today still keeps the run that ended yesterday.

    Args:
        dates: Completion dates (date objects or ISO strings)
        today: Reference day

    Returns:
        Length of the current run of consecutive days
    """
    days = {d if isinstance(d, date) else date.fromisoformat(d) for d in dates}

    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def reconcile_streak(actor: Optional[str], habit_id: str) -> Dict[str, Any]:
    """
    Recompute a habit's streak from its completion history and store it

    Returns:
        Dict with habit_id, previous_streak, streak and changed

    Raises:
        Unauthenticated: If actor is missing
        HabitNotFoundError: If the actor owns no such habit
        PersistenceError: If a query or update fails
    """
    user_id = require_actor(actor)

    habit = repository.get_habit(user_id, habit_id)
    if not habit:
        raise HabitNotFoundError(f"Habit {habit_id} not found")

    completions = repository.get_completions_for_habit(user_id, habit_id)
    streak = compute_streak((c["date"] for c in completions), get_today_date())
    previous = habit.get("streak") or 0

    if streak != previous:
        update_habit(user_id, habit_id, {"streak": streak})
        logger.info(f"Reconciled streak for habit {habit_id}: {previous} -> {streak}")

    return {
        "habit_id": habit_id,
        "previous_streak": previous,
        "streak": streak,
        "changed": streak != previous
    }


def purge_orphaned_completions(actor: Optional[str]) -> Dict[str, Any]:
    """
    Delete the actor's completions whose habit no longer exists

    Returns:
        Dict with the number of deleted completions

    Raises:
        Unauthenticated: If actor is missing
        PersistenceError: If a query or delete fails
    """
    user_id = require_actor(actor)

    habit_ids = {h["id"] for h in repository.get_habits(user_id)}
    orphaned = {c["habit_id"] for c in repository.get_completions(user_id) if c["habit_id"] not in habit_ids}

    deleted = 0
    for habit_id in orphaned:
        deleted += len(repository.delete_completions_for_habit(user_id, habit_id))

    if deleted:
        logger.info(f"Purged {deleted} orphaned completion(s) for {user_id}")
    return {"status": "success", "deleted": deleted}
