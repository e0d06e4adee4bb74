"""
Supabase Gateway - PostgREST-backed persistence
"""
from typing import List, Optional
import logging

from supabase import Client

from habit_tracker.core.constants import PG_UNIQUE_VIOLATION
from habit_tracker.core.exceptions import PersistenceError, UniqueViolationError
from .gateway import Gateway, Filters, Row

logger = logging.getLogger(__name__)


def _apply_filters(query, filters: Filters):
    for column, value in filters.items():
        query = query.eq(column, value)
    return query


def _raise_persistence_error(action: str, table: str, e: Exception):
    # PostgREST APIError carries the SQLSTATE in .code and the text in .message
    message = getattr(e, "message", None) or str(e)
    if getattr(e, "code", None) == PG_UNIQUE_VIOLATION:
        logger.warning(f"Unique key rejected {action} on {table}: {message}")
        raise UniqueViolationError(message)
    logger.error(f"Database error during {action} on {table}: {message}")
    raise PersistenceError(message)


class SupabaseGateway(Gateway):
    """Gateway over a supabase-py client"""

    def __init__(self, client: Client):
        self.client = client

    def select(self, table: str, filters: Filters, order_by: Optional[str] = None,
               desc: bool = False) -> List[Row]:
        try:
            query = _apply_filters(self.client.table(table).select("*"), filters)
            if order_by:
                query = query.order(order_by, desc=desc)
            result = query.execute()
            return result.data or []
        except Exception as e:
            _raise_persistence_error("select", table, e)

    def insert(self, table: str, record: Row) -> Row:
        try:
            result = self.client.table(table).insert(record).execute()
        except Exception as e:
            _raise_persistence_error("insert into", table, e)
        if not result.data:
            raise PersistenceError(f"Insert into {table} returned no row")
        return result.data[0]

    def update(self, table: str, filters: Filters, patch: Row) -> List[Row]:
        if not filters:
            raise PersistenceError(f"Refusing unfiltered update on {table}")
        try:
            query = _apply_filters(self.client.table(table).update(patch), filters)
            result = query.execute()
            return result.data or []
        except Exception as e:
            _raise_persistence_error("update", table, e)

    def delete(self, table: str, filters: Filters) -> List[Row]:
        if not filters:
            raise PersistenceError(f"Refusing unfiltered delete on {table}")
        try:
            query = _apply_filters(self.client.table(table).delete(), filters)
            result = query.execute()
            return result.data or []
        except Exception as e:
            _raise_persistence_error("delete from", table, e)
