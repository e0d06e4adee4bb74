"""
Timezone Utilities - Centralized reference clock
All "now" and "today" values used by the habit service come from here
"""
from datetime import date, datetime
import logging

import pytz

from habit_tracker.core.config import settings
from habit_tracker.core.constants import DEFAULT_DAY_TIMEZONE

logger = logging.getLogger(__name__)


def get_app_tz():
    """
    Get the timezone that defines calendar day boundaries

    Returns:
        pytz timezone for settings.DAY_TIMEZONE, UTC if the name is unknown
    """
    try:
        return pytz.timezone(settings.DAY_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown DAY_TIMEZONE '{settings.DAY_TIMEZONE}', falling back to {DEFAULT_DAY_TIMEZONE}")
        return pytz.timezone(DEFAULT_DAY_TIMEZONE)


def get_now() -> datetime:
    """
    Get current datetime in the application timezone

    Returns:
        Timezone-aware datetime object
    """
    return datetime.now(get_app_tz())


def get_today_date() -> date:
    """
    Get today's date in the application timezone

    Returns:
        date object for today
    """
    return get_now().date()
