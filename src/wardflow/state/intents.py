"""Mutation intents accepted by ``HospitalStore.dispatch``.

One frozen dataclass per kind of change a caller can request. The store
maps each intent type to exactly one handler.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from wardflow.core.models import Appointment, InventoryItem, Patient, Staff


@dataclass(frozen=True)
class AdmitPatient:
    """Admit a patient into a chosen bed."""
    patient_id: str
    bed_id: str


@dataclass(frozen=True)
class AutoAllocate:
    """Admit a patient into the bed the allocation engine picks."""
    patient_id: str


@dataclass(frozen=True)
class AddPatient:
    patient: Patient


@dataclass(frozen=True)
class AdmitSurge:
    """Register a batch of mass-casualty patients as Waiting."""
    patients: Tuple[Patient, ...]
    title: str = ""
    description: str = ""


@dataclass(frozen=True)
class DischargePatient:
    patient_id: str


@dataclass(frozen=True)
class AddBed:
    ward: str
    skill_level: int


@dataclass(frozen=True)
class ToggleBedReservation:
    bed_id: str


@dataclass(frozen=True)
class AssignStaff:
    """Assign (or with ``staff_id=None`` unassign) a patient's staff member."""
    patient_id: str
    staff_id: Optional[str]


@dataclass(frozen=True)
class TreatPatient:
    """Record a treatment event on a patient's history."""
    patient_id: str
    treatment: str
    notes: str = ""
    detailed_condition: Optional[str] = None


@dataclass(frozen=True)
class AddStaff:
    staff: Staff


@dataclass(frozen=True)
class UpdateStaff:
    staff: Staff


@dataclass(frozen=True)
class UpdateStaffHours:
    """Change shift hours; fatigue is re-derived unless overridden."""
    staff_id: str
    current_hours: float
    max_hours: Optional[float] = None


@dataclass(frozen=True)
class OverrideFatigue:
    """Set fatigue by hand, or with ``score=None`` return to auto-derived."""
    staff_id: str
    score: Optional[int]


@dataclass(frozen=True)
class AddInventoryItem:
    item: InventoryItem


@dataclass(frozen=True)
class UpdateInventoryItem:
    item: InventoryItem


@dataclass(frozen=True)
class AddAppointment:
    doctor_name: str
    patient_name: str
    time: str
    reason: str = ""


@dataclass(frozen=True)
class UpdateAppointment:
    appointment: Appointment


@dataclass(frozen=True)
class ToggleAppointmentStatus:
    appointment_id: str
