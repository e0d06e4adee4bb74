"""
Authentication collaborators
"""
from .context import AuthContext, SupabaseAuthContext, TrustedHeaderAuthContext

__all__ = [
    'AuthContext',
    'SupabaseAuthContext',
    'TrustedHeaderAuthContext'
]
