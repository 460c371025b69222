"""State reconciliation: snapshot, persistence contract, change feed and store."""

from wardflow.state.persistence import (
    ChangeEvent,
    InMemoryBackend,
    PersistenceBackend,
    PersistenceError,
)
from wardflow.state.realtime import apply_change, merge_change
from wardflow.state.seed import generate_initial_state
from wardflow.state.snapshot import TABLES, HospitalState
from wardflow.state.store import HospitalStore

__all__ = [
    "ChangeEvent",
    "HospitalState",
    "HospitalStore",
    "InMemoryBackend",
    "PersistenceBackend",
    "PersistenceError",
    "TABLES",
    "apply_change",
    "generate_initial_state",
    "merge_change",
]
