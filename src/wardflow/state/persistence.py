"""Persistence collaborator contract.

The hosted store (tables plus a realtime change feed) lives outside the
core. This module defines the contract the store must satisfy and an
in-memory implementation used for offline demo mode and tests.

Contract:
- ``fetch_all(table)`` returns the table's records in order.
- ``insert(table, record)`` returns the created record, with any
  server-generated fields (e.g. id) filled in.
- ``update(table, id, changes)`` applies a partial record.
- ``subscribe(table, callback)`` delivers ``ChangeEvent``s; no ordering
  or delivery guarantee across tables. Returns an unsubscribe callable.
- Any failure is raised as ``PersistenceError``.
"""

import copy
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from wardflow.core.entities import ChangeKind

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when the persistence backend cannot complete a request."""


@dataclass(frozen=True)
class ChangeEvent:
    """One change pushed by the realtime feed.

    Attributes:
        kind: INSERT, UPDATE or DELETE.
        record: New record for INSERT/UPDATE; old record (at least its id)
            for DELETE.
        table: Table the change belongs to.
    """
    kind: ChangeKind
    record: Dict[str, Any]
    table: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], table: str = "") -> "ChangeEvent":
        """Build from a wire payload ``{"eventType", "new", "old"}``.

        Raises:
            ValueError: If the event type is unknown or the record is missing.
        """
        try:
            kind = ChangeKind(str(payload.get("eventType", "")).upper())
        except ValueError:
            raise ValueError(f"Unknown change event type: {payload.get('eventType')!r}")

        key = "old" if kind == ChangeKind.DELETE else "new"
        record = payload.get(key)
        if not isinstance(record, Mapping):
            raise ValueError(f"{kind.value} event has no '{key}' record")
        return cls(kind=kind, record=dict(record), table=table or str(payload.get("table", "")))


ChangeCallback = Callable[[ChangeEvent], None]


@runtime_checkable
class PersistenceBackend(Protocol):
    """Interface the state store expects from the hosted database."""

    def is_available(self) -> bool:
        """True when the backend is configured and reachable."""
        ...

    def fetch_all(self, table: str) -> List[Dict[str, Any]]:
        ...

    def insert(self, table: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    def update(self, table: str, record_id: str, changes: Mapping[str, Any]) -> None:
        ...

    def subscribe(self, table: str, callback: ChangeCallback) -> Callable[[], None]:
        ...


@dataclass
class InMemoryBackend:
    """
    Dict-backed persistence with a synchronous change feed.

    Useful for offline demos and for exercising the store's sync paths:
    - ``available=False`` makes the store treat the backend as unreachable
    - ``failing_tables`` makes writes to those tables raise PersistenceError
    - ``auto_push=False`` queues change events until ``flush()`` is called,
      simulating feed latency

    Attributes:
        tables: Records per table name.
        id_prefixes: Prefix used when a server-side id must be generated.
    """
    tables: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    available: bool = True
    auto_push: bool = True
    failing_tables: set = field(default_factory=set)
    id_prefixes: Dict[str, str] = field(default_factory=lambda: {"appointments": "APT"})

    def __post_init__(self):
        self._subscribers: Dict[str, List[ChangeCallback]] = {}
        self._pending: List[ChangeEvent] = []
        self._id_counter = itertools.count(1)

    def is_available(self) -> bool:
        return self.available

    def _check(self, table: str) -> None:
        if not self.available:
            raise PersistenceError("Backend unavailable")
        if table in self.failing_tables:
            raise PersistenceError(f"Write to '{table}' rejected")

    def fetch_all(self, table: str) -> List[Dict[str, Any]]:
        if not self.available:
            raise PersistenceError("Backend unavailable")
        return copy.deepcopy(self.tables.get(table, []))

    def insert(self, table: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        self._check(table)
        created = copy.deepcopy(dict(record))
        if not created.get("id"):
            prefix = self.id_prefixes.get(table, table[:3].upper())
            created["id"] = f"{prefix}-{next(self._id_counter):05d}"
        self.tables.setdefault(table, []).append(created)
        self._emit(ChangeEvent(ChangeKind.INSERT, copy.deepcopy(created), table))
        return copy.deepcopy(created)

    def update(self, table: str, record_id: str, changes: Mapping[str, Any]) -> None:
        self._check(table)
        for row in self.tables.get(table, []):
            if row.get("id") == record_id:
                row.update(copy.deepcopy(dict(changes)))
                self._emit(ChangeEvent(ChangeKind.UPDATE, copy.deepcopy(row), table))
                return
        raise PersistenceError(f"No '{table}' record with id {record_id}")

    def delete(self, table: str, record_id: str) -> None:
        """Remove a record, as another client or an operator might."""
        self._check(table)
        rows = self.tables.get(table, [])
        for row in rows:
            if row.get("id") == record_id:
                rows.remove(row)
                self._emit(ChangeEvent(ChangeKind.DELETE, {"id": record_id}, table))
                return
        raise PersistenceError(f"No '{table}' record with id {record_id}")

    def subscribe(self, table: str, callback: ChangeCallback) -> Callable[[], None]:
        self._subscribers.setdefault(table, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(table, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def flush(self) -> int:
        """Deliver queued change events. Returns the number delivered."""
        pending, self._pending = self._pending, []
        for event in pending:
            self._deliver(event)
        if pending:
            logger.debug(f"Flushed {len(pending)} queued change events")
        return len(pending)

    def _emit(self, event: ChangeEvent) -> None:
        if self.auto_push:
            self._deliver(event)
        else:
            self._pending.append(event)

    def _deliver(self, event: ChangeEvent) -> None:
        for callback in list(self._subscribers.get(event.table, [])):
            callback(event)

    def find(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Stored record by id (copy), for inspection."""
        for row in self.tables.get(table, []):
            if row.get("id") == record_id:
                return copy.deepcopy(row)
        return None
