"""
Storage backends implementing the persistence gateway
"""
from .gateway import Gateway
from .memory_gateway import InMemoryGateway
from .supabase_gateway import SupabaseGateway

__all__ = [
    'Gateway',
    'InMemoryGateway',
    'SupabaseGateway'
]
