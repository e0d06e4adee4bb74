"""
Persistence Gateway - storage contract consumed by the habit repository
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

Row = Dict[str, Any]
Filters = Dict[str, Any]


class Gateway(ABC):
    """
    Minimal table-oriented storage interface.

    Filters are equality matches on every key. Implementations raise
    PersistenceError on failure and UniqueViolationError when an insert
    collides with a unique key.
    """

    @abstractmethod
    def select(self, table: str, filters: Filters, order_by: Optional[str] = None,
               desc: bool = False) -> List[Row]:
        """Return rows matching filters, optionally ordered by one column"""

    @abstractmethod
    def insert(self, table: str, record: Row) -> Row:
        """Insert a record and return the stored row"""

    @abstractmethod
    def update(self, table: str, filters: Filters, patch: Row) -> List[Row]:
        """Apply patch to matching rows and return them"""

    @abstractmethod
    def delete(self, table: str, filters: Filters) -> List[Row]:
        """Delete matching rows and return what was removed"""
