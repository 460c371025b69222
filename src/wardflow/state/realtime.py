"""Change-feed merge.

Applies one pushed change to one collection, keyed by record id:
- INSERT adds the record only if no record shares its id, so an insert
  the client already applied optimistically is not duplicated
- UPDATE replaces the record with the same id and leaves the rest alone
- DELETE removes the record with the same id

No ordering is assumed beyond last-write-wins per id.
"""

import logging
from typing import Tuple, Type, TypeVar

from wardflow.core.entities import ChangeKind
from wardflow.core.models import RecordValidationError
from wardflow.state.persistence import ChangeEvent
from wardflow.state.snapshot import TABLES, HospitalState

logger = logging.getLogger(__name__)

T = TypeVar("T")


def merge_change(
    collection: Tuple[T, ...], event: ChangeEvent, record_type: Type[T]
) -> Tuple[T, ...]:
    """Merge a change event into a collection.

    Args:
        collection: Current records.
        event: Pushed change.
        record_type: Entity class with a ``from_record`` constructor.

    Returns:
        New collection (the same tuple when the event is a no-op).

    Raises:
        RecordValidationError: If the pushed record cannot be coerced.
    """
    if event.kind == ChangeKind.DELETE:
        record_id = event.record.get("id")
        if record_id is None:
            raise RecordValidationError("DELETE event without record id")
        return tuple(r for r in collection if r.id != str(record_id))

    record = record_type.from_record(event.record)

    if event.kind == ChangeKind.INSERT:
        if any(r.id == record.id for r in collection):
            return collection
        return collection + (record,)

    # UPDATE
    if not any(r.id == record.id for r in collection):
        logger.debug(f"Update for unknown {record_type.__name__} {record.id} ignored")
        return collection
    return tuple(record if r.id == record.id else r for r in collection)


def apply_change(state: HospitalState, event: ChangeEvent) -> HospitalState:
    """Merge a change event into the matching collection of a snapshot.

    Events for unknown tables and records that fail validation are logged
    and leave the snapshot unchanged.
    """
    if event.table not in TABLES:
        logger.warning(f"Change event for unknown table '{event.table}' ignored")
        return state

    _, record_type = TABLES[event.table]
    try:
        merged = merge_change(state.collection(event.table), event, record_type)
    except RecordValidationError as e:
        logger.warning(f"Rejected {event.kind.value} on '{event.table}': {e}")
        return state

    if merged is state.collection(event.table):
        return state
    return state.with_collection(event.table, merged)
