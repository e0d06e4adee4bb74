"""
Custom Exceptions - Application-specific error types
"""


class HabitTrackerException(Exception):
    """Base exception for all habit tracker errors"""
    pass


class Unauthenticated(HabitTrackerException):
    """Raised when an operation is invoked without a resolved actor"""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class HabitNotFoundError(HabitTrackerException):
    """Raised when a habit cannot be found"""
    pass


class InvalidHabitDataError(HabitTrackerException):
    """Raised when habit data validation fails"""
    pass


class PersistenceError(HabitTrackerException):
    """Raised when a persistence gateway operation fails"""
    pass


class UniqueViolationError(PersistenceError):
    """Raised when an insert is rejected by a unique key"""
    pass
