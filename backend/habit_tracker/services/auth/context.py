"""
Auth Context - resolves the actor a request runs on behalf of
"""
from abc import ABC, abstractmethod
from typing import Optional
import logging

from supabase import Client

logger = logging.getLogger(__name__)


class AuthContext(ABC):
    """Identifies the current authenticated actor"""

    @abstractmethod
    def current_actor(self) -> Optional[str]:
        """Return the actor id, or None when nobody is signed in"""


class SupabaseAuthContext(AuthContext):
    """Resolves a Supabase access token (JWT) to its user id"""

    def __init__(self, client: Client, token: Optional[str]):
        self.client = client
        self.token = token

    def current_actor(self) -> Optional[str]:
        if not self.token:
            return None
        try:
            response = self.client.auth.get_user(self.token)
        except Exception as e:
            logger.warning(f"Could not resolve access token: {e}")
            return None
        user = getattr(response, "user", None)
        return str(user.id) if user else None


class TrustedHeaderAuthContext(AuthContext):
    """Treats the bearer token as the actor id. Development only."""

    def __init__(self, token: Optional[str]):
        self.token = token

    def current_actor(self) -> Optional[str]:
        return self.token or None
