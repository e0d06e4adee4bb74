"""
Dependency injection for shared clients and resources
"""
from typing import Optional
import logging
import threading

from fastapi import Header
from supabase import create_client, Client

from habit_tracker.core.config import settings
from habit_tracker.core.constants import STORAGE_BACKEND_MEMORY
from habit_tracker.services.auth import AuthContext, SupabaseAuthContext, TrustedHeaderAuthContext
from habit_tracker.services.storage import Gateway, InMemoryGateway, SupabaseGateway

logger = logging.getLogger(__name__)

# Singleton instances, created on first use
_supabase_client: Optional[Client] = None
_gateway: Optional[Gateway] = None
_lock = threading.Lock()


def get_supabase_client() -> Client:
    """Get Supabase client instance"""
    global _supabase_client

    if _supabase_client is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")
        _supabase_client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)

    return _supabase_client


def get_gateway() -> Gateway:
    """Get the persistence gateway for the configured storage backend"""
    global _gateway

    with _lock:
        if _gateway is None:
            if settings.STORAGE_BACKEND == STORAGE_BACKEND_MEMORY:
                logger.warning("Using in-memory storage; data is lost on restart")
                _gateway = InMemoryGateway()
            else:
                _gateway = SupabaseGateway(get_supabase_client())
        return _gateway


def set_gateway(gateway: Optional[Gateway]):
    """Replace the gateway singleton (None resets to the configured backend)"""
    global _gateway

    with _lock:
        _gateway = gateway


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_auth_context(token: Optional[str]) -> AuthContext:
    """Build the auth context matching the configured storage backend"""
    if settings.STORAGE_BACKEND == STORAGE_BACKEND_MEMORY:
        return TrustedHeaderAuthContext(token)
    return SupabaseAuthContext(get_supabase_client(), token)


def get_current_actor(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """FastAPI dependency: resolve the actor from the Authorization header"""
    token = _bearer_token(authorization)
    if token is None:
        return None
    return get_auth_context(token).current_actor()
