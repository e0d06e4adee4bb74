"""
Habits module - Core habit management functionality
"""
from . import repository
from . import service
from . import maintenance

# Export commonly used functions for convenience
from .service import (
    list_habits,
    create_habit,
    update_habit,
    delete_habit,
    toggle_habit_completion,
    update_habit_streak,
    get_daily_summary
)

from .maintenance import (
    compute_streak,
    reconcile_streak,
    purge_orphaned_completions
)

__all__ = [
    # Modules
    'repository',
    'service',
    'maintenance',

    # Service functions
    'list_habits',
    'create_habit',
    'update_habit',
    'delete_habit',
    'toggle_habit_completion',
    'update_habit_streak',
    'get_daily_summary',

    # Maintenance functions
    'compute_streak',
    'reconcile_streak',
    'purge_orphaned_completions'
]
