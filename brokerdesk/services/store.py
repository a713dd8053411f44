"""
Record Store

Persistence collaborator: read-one / insert-one / update-one / delete-one
keyed by table and record id. The in-memory implementation stands in for
the hosted relational backend (last write wins, single-row updates are atomic).
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, TypeVar

from pydantic import BaseModel

from brokerdesk.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

CLAIMS = "claims"
WORKFLOWS = "workflows"
AUDIT_LOGS = "audit_logs"
NOTIFICATIONS = "notifications"


class RecordStore(ABC):
    """Interface every persistence backend implements."""

    @abstractmethod
    def get(self, table: str, record_id: str) -> Optional[BaseModel]:
        """Return the record, or None if it does not exist."""

    @abstractmethod
    def insert(self, table: str, record: RecordT) -> RecordT:
        """Insert a record keyed by its id."""

    @abstractmethod
    def update(self, table: str, record_id: str, changes: Dict[str, Any]) -> BaseModel:
        """Apply changes to one record and return the updated record."""

    @abstractmethod
    def delete(self, table: str, record_id: str) -> None:
        """Delete one record."""

    @abstractmethod
    def query(
        self,
        table: str,
        predicate: Optional[Callable[[Any], bool]] = None
    ) -> List[BaseModel]:
        """Return all records in a table matching the predicate."""


class InMemoryStore(RecordStore):
    """
    Dict-backed store.

    Records are copied on the way in and out so callers never hold a
    reference to stored state.
    """

    def __init__(self):
        self._tables: Dict[str, Dict[str, BaseModel]] = {}

    def _table(self, table: str) -> Dict[str, BaseModel]:
        return self._tables.setdefault(table, {})

    def get(self, table: str, record_id: str) -> Optional[BaseModel]:
        record = self._table(table).get(record_id)
        return record.model_copy(deep=True) if record is not None else None

    def insert(self, table: str, record: RecordT) -> RecordT:
        record_id = getattr(record, "id", None)
        if not record_id:
            raise PersistenceError(f"Cannot insert into {table}: record has no id")
        rows = self._table(table)
        if record_id in rows:
            raise PersistenceError(
                f"Duplicate key {record_id} in {table}",
                details={"table": table, "id": record_id}
            )
        rows[record_id] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    def update(self, table: str, record_id: str, changes: Dict[str, Any]) -> BaseModel:
        rows = self._table(table)
        current = rows.get(record_id)
        if current is None:
            raise PersistenceError(
                f"No row {record_id} in {table}",
                details={"table": table, "id": record_id}
            )
        updated = current.model_copy(update=changes, deep=True)
        rows[record_id] = updated
        return updated.model_copy(deep=True)

    def delete(self, table: str, record_id: str) -> None:
        rows = self._table(table)
        if record_id not in rows:
            raise PersistenceError(
                f"No row {record_id} in {table}",
                details={"table": table, "id": record_id}
            )
        del rows[record_id]

    def query(
        self,
        table: str,
        predicate: Optional[Callable[[Any], bool]] = None
    ) -> List[BaseModel]:
        return [
            record.model_copy(deep=True)
            for record in self._table(table).values()
            if predicate is None or predicate(record)
        ]

    def count(self, table: str) -> int:
        return len(self._table(table))
