"""
Shared constants
"""

# Tables
HABITS_TABLE = "habits"
COMPLETIONS_TABLE = "habit_completions"

# Columns a caller may change through the general habit edit path
HABIT_EDITABLE_FIELDS = ("name", "description", "streak")

# Unique key on habit_completions
COMPLETION_UNIQUE_KEY = ("habit_id", "date", "user_id")

# Postgres SQLSTATE for unique_violation, surfaced by PostgREST as the error code
PG_UNIQUE_VIOLATION = "23505"

DEFAULT_DAY_TIMEZONE = "UTC"

STORAGE_BACKEND_SUPABASE = "supabase"
STORAGE_BACKEND_MEMORY = "memory"

# Compare-and-set rounds for a streak step before giving up
STREAK_UPDATE_ATTEMPTS = 5
