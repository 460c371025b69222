"""Core entity definitions for the operations dashboard.

This module contains enums and basic types that are used across
the codebase, placed here to avoid circular imports.
"""

from enum import Enum, IntEnum


class AcuityLevel(IntEnum):
    """Patient acuity levels. Higher value = more severe.

    Ordinal scale used to decide which bed capability a patient needs.
    """
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class StaffRole(Enum):
    """Staff role on the roster."""
    NURSE = "Nurse"
    DOCTOR = "Doctor"
    SPECIALIST = "Specialist"
    ADMIN = "Admin"


class PatientStatus(Enum):
    """Patient lifecycle status.

    Waiting -> Admitted -> Discharged. Discharge is a status transition,
    patients are never removed from the snapshot by the core.
    """
    WAITING = "Waiting"
    ADMITTED = "Admitted"
    DISCHARGED = "Discharged"


class InventoryCategory(Enum):
    """Inventory item categories."""
    CONSUMABLE = "Consumable"
    SURGICAL = "Surgical"
    PHARMA = "Pharma"


class AppointmentStatus(Enum):
    """Appointment booking status (toggle-able)."""
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class ProcedureType(Enum):
    """Procedure implied by an admission, drives stock consumption."""
    SURGERY = "Surgery"
    ROUTINE = "Routine"


class BedMatch(Enum):
    """Advisory classification of a bed against a patient under consideration.

    Display only, never used to decide an allocation:
    - OCCUPIED / RESERVED: bed not usable right now
    - AVAILABLE: no patient selected
    - INCOMPATIBLE: bed capability below what the patient needs
    - OPTIMAL: capability sufficient and within the efficiency band
    - SUBOPTIMAL: compatible but over-resourced (e.g. low acuity in ICU)
    """
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    INCOMPATIBLE = "incompatible"
    OPTIMAL = "optimal"
    SUBOPTIMAL = "suboptimal"
    AVAILABLE = "available"


class Urgency(Enum):
    """Reorder urgency levels."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ChangeKind(Enum):
    """Kind of change pushed by the persistence change feed."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# Minimum bed skill level required for each acuity level
ACUITY_SKILL_THRESHOLDS = {
    AcuityLevel.LOW: 1,
    AcuityLevel.MEDIUM: 4,
    AcuityLevel.HIGH: 7,
    AcuityLevel.CRITICAL: 9,
}
