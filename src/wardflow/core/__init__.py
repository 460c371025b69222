"""Core foundation layer: domain enums, records and operating rules."""

from wardflow.core.config import DEFAULT_CONFIG, OperationsConfig, load_config
from wardflow.core.entities import AcuityLevel, PatientStatus, StaffRole
from wardflow.core.models import (
    Appointment,
    Bed,
    InventoryItem,
    Patient,
    RecordValidationError,
    Staff,
)

__all__ = [
    "DEFAULT_CONFIG",
    "OperationsConfig",
    "load_config",
    "AcuityLevel",
    "PatientStatus",
    "StaffRole",
    "Appointment",
    "Bed",
    "InventoryItem",
    "Patient",
    "RecordValidationError",
    "Staff",
]
