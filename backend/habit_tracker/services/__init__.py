"""
Business logic services
"""
from . import storage
from . import auth
from . import habits

# Convenience alias used by the routes
habit_service = habits

__all__ = [
    'storage',
    'auth',
    'habits',
    'habit_service'
]
