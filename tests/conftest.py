"""Pytest fixtures for wardflow tests."""

from datetime import datetime

import numpy as np
import pytest

from wardflow.core.entities import AcuityLevel
from wardflow.core.models import Patient
from wardflow.state.persistence import InMemoryBackend
from wardflow.state.seed import generate_initial_state
from wardflow.state.store import HospitalStore


@pytest.fixture
def default_seed() -> int:
    """Default random seed for reproducible tests."""
    return 42


@pytest.fixture
def rng(default_seed) -> np.random.Generator:
    return np.random.default_rng(default_seed)


@pytest.fixture
def fixed_clock():
    """Clock frozen at 2026-03-01 09:30 for deterministic ids and dates."""
    moment = datetime(2026, 3, 1, 9, 30, 0)
    return lambda: moment


@pytest.fixture
def demo_state():
    """Offline demo snapshot: 20 beds, 4 staff, 4 stock items."""
    return generate_initial_state()


@pytest.fixture
def critical_patient() -> Patient:
    return Patient(id="P-001", name="Jane Doe", acuity_score=AcuityLevel.CRITICAL,
                   condition="Polytrauma")


@pytest.fixture
def low_patient() -> Patient:
    return Patient(id="P-002", name="John Roe", acuity_score=AcuityLevel.LOW,
                   condition="Sprained ankle")


@pytest.fixture
def offline_store(demo_state, rng, fixed_clock) -> HospitalStore:
    """Store with no backend, running in offline demo mode."""
    return HospitalStore(backend=None, rng=rng, state=demo_state, clock=fixed_clock)


@pytest.fixture
def backend(demo_state, critical_patient, low_patient) -> InMemoryBackend:
    """In-memory backend preloaded with the demo records and two patients."""
    tables = {
        "patients": [critical_patient.to_record(), low_patient.to_record()],
        "beds": [b.to_record() for b in demo_state.beds],
        "staff": [s.to_record() for s in demo_state.staff],
        "inventory": [i.to_record() for i in demo_state.inventory],
        "appointments": [],
    }
    return InMemoryBackend(tables=tables)


@pytest.fixture
def connected_store(backend, rng, fixed_clock) -> HospitalStore:
    """Store connected to the in-memory backend."""
    store = HospitalStore(backend=backend, rng=rng, clock=fixed_clock)
    assert store.connect()
    return store
