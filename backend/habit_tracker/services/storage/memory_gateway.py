"""
In-Memory Gateway - process-local persistence for development and tests
Mirrors the hosted schema defaults and the habit_completions unique key
"""
from itertools import count
from typing import Dict, List, Optional, Tuple
import copy
import logging
import threading
import uuid

from habit_tracker.core.constants import COMPLETIONS_TABLE, COMPLETION_UNIQUE_KEY, HABITS_TABLE
from habit_tracker.core.exceptions import PersistenceError, UniqueViolationError
from habit_tracker.utils.timezone import get_now
from .gateway import Gateway, Filters, Row

logger = logging.getLogger(__name__)


def _matches(row: Row, filters: Filters) -> bool:
    return all(row.get(column) == value for column, value in filters.items())


class InMemoryGateway(Gateway):
    """Thread-safe dictionary store with server-side defaults"""

    unique_keys: Dict[str, Tuple[str, ...]] = {
        COMPLETIONS_TABLE: COMPLETION_UNIQUE_KEY,
    }

    def __init__(self):
        self._lock = threading.Lock()
        self._tables: Dict[str, List[Tuple[int, Row]]] = {}
        self._sequence = count()

    def _apply_defaults(self, table: str, record: Row) -> Row:
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        now = get_now().isoformat()
        if table == HABITS_TABLE:
            row.setdefault("description", None)
            row.setdefault("streak", 0)
            row.setdefault("created_at", now)
            row.setdefault("updated_at", now)
        elif table == COMPLETIONS_TABLE:
            row.setdefault("completed_at", now)
        return row

    def _check_unique(self, table: str, row: Row):
        key = self.unique_keys.get(table)
        if not key:
            return
        for _, existing in self._tables.get(table, []):
            if all(existing.get(column) == row.get(column) for column in key):
                values = ", ".join(f"{column}={row.get(column)}" for column in key)
                raise UniqueViolationError(f"duplicate key value violates unique constraint ({values})")

    def select(self, table: str, filters: Filters, order_by: Optional[str] = None,
               desc: bool = False) -> List[Row]:
        with self._lock:
            entries = [(seq, row) for seq, row in self._tables.get(table, []) if _matches(row, filters)]
            if order_by:
                entries.sort(key=lambda entry: (entry[1].get(order_by) or "", entry[0]), reverse=desc)
            return [copy.deepcopy(row) for _, row in entries]

    def insert(self, table: str, record: Row) -> Row:
        with self._lock:
            row = self._apply_defaults(table, record)
            self._check_unique(table, row)
            self._tables.setdefault(table, []).append((next(self._sequence), row))
            return copy.deepcopy(row)

    def update(self, table: str, filters: Filters, patch: Row) -> List[Row]:
        if not filters:
            raise PersistenceError(f"Refusing unfiltered update on {table}")
        with self._lock:
            updated = []
            for _, row in self._tables.get(table, []):
                if _matches(row, filters):
                    row.update(patch)
                    updated.append(copy.deepcopy(row))
            return updated

    def delete(self, table: str, filters: Filters) -> List[Row]:
        if not filters:
            raise PersistenceError(f"Refusing unfiltered delete on {table}")
        with self._lock:
            kept, removed = [], []
            for entry in self._tables.get(table, []):
                (removed if _matches(entry[1], filters) else kept).append(entry)
            self._tables[table] = kept
            return [row for _, row in removed]
