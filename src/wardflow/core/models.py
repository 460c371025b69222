"""Domain record definitions.

Entities are frozen dataclasses: a change produces a new value via
``dataclasses.replace`` and the snapshot holding it is swapped whole.

Records arriving from the persistence backend or the advisory service are
duck-typed dicts. Each entity exposes ``from_record()`` which coerces such a
dict into typed fields and raises ``RecordValidationError`` when it cannot,
and ``to_record()`` which produces the flat dict the backend stores.
"""

import math
from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Type, TypeVar

from wardflow.core.entities import (
    AcuityLevel,
    AppointmentStatus,
    InventoryCategory,
    PatientStatus,
    StaffRole,
    Urgency,
)


class RecordValidationError(ValueError):
    """Raised when an external record cannot be coerced into an entity."""


E = TypeVar("E", bound=Enum)


def _require(record: Mapping[str, Any], key: str) -> Any:
    value = record.get(key)
    if value is None or value == "":
        raise RecordValidationError(f"Record is missing required field '{key}'")
    return value


def _coerce_enum(enum_cls: Type[E], value: Any, name: str) -> E:
    """Accept an enum member, its value, or its name (case-insensitive)."""
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if value == member.value:
            return member
        if isinstance(value, str) and isinstance(member.value, str):
            if value.strip().lower() == member.value.lower():
                return member
        if isinstance(value, str) and value.strip().upper() == member.name:
            return member
    raise RecordValidationError(f"Invalid {name}: {value!r}")


def _coerce_float(value: Any, name: str, default: Optional[float] = None) -> float:
    """Coerce to a finite float. Infinity and NaN are rejected."""
    if value is None or value == "":
        if default is None:
            raise RecordValidationError(f"Missing numeric field '{name}'")
        return default
    if isinstance(value, bool):
        raise RecordValidationError(f"Invalid number for '{name}': {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise RecordValidationError(f"Invalid number for '{name}': {value!r}")
    if not math.isfinite(number):
        raise RecordValidationError(f"Non-finite number for '{name}': {value!r}")
    return number


def _coerce_int(value: Any, name: str, default: Optional[int] = None) -> int:
    if value is None or value == "":
        if default is None:
            raise RecordValidationError(f"Missing integer field '{name}'")
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(_coerce_float(value, name))
    except RecordValidationError:
        raise RecordValidationError(f"Invalid integer for '{name}': {value!r}")


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "t")
    return bool(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _str_tuple(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def to_plain(value: Any) -> Any:
    """Convert entities, enums and tuples into JSON-friendly structures."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    return value


@dataclass(frozen=True)
class MedicalEvent:
    """Single entry in a patient's treatment history."""

    date: str
    condition: str
    treatment: str
    notes: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "MedicalEvent":
        return cls(
            date=str(record.get("date") or ""),
            condition=str(record.get("condition") or ""),
            treatment=str(record.get("treatment") or ""),
            notes=str(record.get("notes") or ""),
        )


@dataclass(frozen=True)
class Vitals:
    """Vital signs snapshot. Every reading is optional."""

    hr: Optional[float] = None
    bp_sys: Optional[float] = None
    bp_dia: Optional[float] = None
    spo2: Optional[float] = None
    rr: Optional[float] = None
    temp: Optional[float] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Vitals":
        values = {}
        for f in fields(cls):
            raw = record.get(f.name)
            values[f.name] = None if raw is None else _coerce_float(raw, f.name)
        return cls(**values)


@dataclass(frozen=True)
class TriageEntry:
    """One triage scoring result kept in a patient's triage history."""

    score: float
    severity: str
    recommended_actions: Tuple[str, ...] = ()
    timestamp: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "TriageEntry":
        return cls(
            score=_coerce_float(record.get("score"), "score", 0.0),
            severity=str(record.get("severity") or ""),
            recommended_actions=_str_tuple(record.get("recommended_actions")),
            timestamp=str(record.get("timestamp") or ""),
        )


@dataclass(frozen=True)
class RiskProfile:
    """Sepsis and deterioration risk, each 0-100."""

    sepsis_risk: float
    deterioration_risk: float
    rationale: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "RiskProfile":
        return cls(
            sepsis_risk=_clamp(_coerce_float(record.get("sepsis_risk"), "sepsis_risk"), 0, 100),
            deterioration_risk=_clamp(
                _coerce_float(record.get("deterioration_risk"), "deterioration_risk"), 0, 100
            ),
            rationale=str(record.get("rationale") or ""),
        )


@dataclass(frozen=True)
class ClinicalInsights:
    """Clinical risk assessment attached to a patient."""

    deterioration_probability: str
    risk_factors: Tuple[str, ...] = ()
    suggested_labs: Tuple[str, ...] = ()
    recommended_intervention: str = ""
    last_updated: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ClinicalInsights":
        return cls(
            deterioration_probability=str(_require(record, "deterioration_probability")),
            risk_factors=_str_tuple(record.get("risk_factors")),
            suggested_labs=_str_tuple(record.get("suggested_labs")),
            recommended_intervention=str(record.get("recommended_intervention") or ""),
            last_updated=str(record.get("last_updated") or ""),
        )


@dataclass(frozen=True)
class ReorderSuggestion:
    """Restock recommendation for a low-stock item."""

    suggested_qty: int
    urgency: Urgency
    reason: str
    item_name: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ReorderSuggestion":
        return cls(
            suggested_qty=max(0, _coerce_int(record.get("suggested_qty"), "suggested_qty")),
            urgency=_coerce_enum(Urgency, record.get("urgency"), "urgency"),
            reason=str(record.get("reason") or ""),
            item_name=str(record.get("item_name") or ""),
        )


@dataclass(frozen=True)
class Patient:
    """Patient record.

    Attributes:
        id: Unique patient identifier.
        name: Display name.
        acuity_score: Ordinal severity (Low to Critical).
        condition: Short condition text.
        detailed_condition: Clinical presentation text.
        history: Treatment events, newest first. Append-only.
        status: Lifecycle status (Waiting/Admitted/Discharged).
        assigned_bed_id: Bed the patient occupies. Only set while Admitted.
        assigned_staff_id: Responsible staff member, if any.
    """

    id: str
    name: str
    acuity_score: AcuityLevel
    condition: str = ""
    detailed_condition: str = ""
    history: Tuple[MedicalEvent, ...] = ()
    status: PatientStatus = PatientStatus.WAITING
    assigned_bed_id: Optional[str] = None
    assigned_staff_id: Optional[str] = None
    vitals: Optional[Vitals] = None
    triage_score: Optional[float] = None
    triage_history: Tuple[TriageEntry, ...] = ()
    risk_profile: Optional[RiskProfile] = None
    clinical_insights: Optional[ClinicalInsights] = None

    def __post_init__(self):
        acuity = self.acuity_score
        if isinstance(acuity, bool) or not isinstance(acuity, int):
            raise RecordValidationError(f"Invalid acuity score: {acuity!r}")
        try:
            object.__setattr__(self, "acuity_score", AcuityLevel(acuity))
        except ValueError:
            raise RecordValidationError(f"Invalid acuity score: {acuity!r}")
        if self.assigned_bed_id is not None and self.status != PatientStatus.ADMITTED:
            raise RecordValidationError(
                f"Patient {self.id} has bed {self.assigned_bed_id} "
                f"but status {self.status.value}"
            )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Patient":
        vitals = record.get("vitals")
        risk = record.get("risk_profile")
        insights = record.get("clinical_insights")
        triage_score = record.get("triage_score")

        return cls(
            id=str(_require(record, "id")),
            name=str(record.get("name") or ""),
            acuity_score=_coerce_int(_require(record, "acuity_score"), "acuity_score"),
            condition=str(record.get("condition") or ""),
            detailed_condition=str(record.get("detailed_condition") or ""),
            history=tuple(MedicalEvent.from_record(e) for e in (record.get("history") or [])),
            status=_coerce_enum(PatientStatus, record.get("status") or "Waiting", "status"),
            assigned_bed_id=_optional_str(record.get("assigned_bed_id")),
            assigned_staff_id=_optional_str(record.get("assigned_staff_id")),
            vitals=Vitals.from_record(vitals) if vitals else None,
            triage_score=None if triage_score is None else _coerce_float(triage_score, "triage_score"),
            triage_history=tuple(
                TriageEntry.from_record(t) for t in (record.get("triage_history") or [])
            ),
            risk_profile=RiskProfile.from_record(risk) if risk else None,
            clinical_insights=ClinicalInsights.from_record(insights) if insights else None,
        )

    def to_record(self) -> dict:
        return to_plain(self)


@dataclass(frozen=True)
class Bed:
    """Bed record.

    Occupied and reserved are independent flags. Occupied takes precedence
    for display; a bed is available for allocation only when both are false.
    """

    id: str
    ward: str
    required_skill_level: int
    is_occupied: bool = False
    is_reserved: bool = False
    assigned_patient_id: Optional[str] = None
    assigned_staff_id: Optional[str] = None

    def __post_init__(self):
        if not 1 <= self.required_skill_level <= 10:
            raise RecordValidationError(
                f"Bed {self.id} skill level must be 1-10, got {self.required_skill_level}"
            )

    @property
    def is_available(self) -> bool:
        """True when the bed can receive a new allocation."""
        return not self.is_occupied and not self.is_reserved

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Bed":
        return cls(
            id=str(_require(record, "id")),
            ward=str(record.get("ward") or "General"),
            required_skill_level=_coerce_int(
                record.get("required_skill_level"), "required_skill_level"
            ),
            is_occupied=_coerce_bool(record.get("is_occupied")),
            is_reserved=_coerce_bool(record.get("is_reserved")),
            assigned_patient_id=_optional_str(record.get("assigned_patient_id")),
            assigned_staff_id=_optional_str(record.get("assigned_staff_id")),
        )

    def to_record(self) -> dict:
        return to_plain(self)


@dataclass(frozen=True)
class Staff:
    """Staff roster record.

    Attributes:
        skill_level: Clinical capability 1-10.
        current_fatigue_score: 0 (rested) to 100 (exhausted).
        max_hours_shift: Contracted shift length in hours.
        current_hours_worked: Hours worked so far this shift.
        fatigue_overridden: True when the fatigue score was set by hand
            rather than derived from hours worked.
    """

    id: str
    name: str
    role: StaffRole
    skill_level: int
    current_fatigue_score: int = 0
    max_hours_shift: float = 12
    current_hours_worked: float = 0
    fatigue_overridden: bool = False

    def __post_init__(self):
        if not 1 <= self.skill_level <= 10:
            raise RecordValidationError(
                f"Staff {self.id} skill level must be 1-10, got {self.skill_level}"
            )
        if not 0 <= self.current_fatigue_score <= 100:
            raise RecordValidationError(
                f"Staff {self.id} fatigue must be 0-100, got {self.current_fatigue_score}"
            )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Staff":
        fatigue = _coerce_int(record.get("current_fatigue_score"), "current_fatigue_score", 0)
        return cls(
            id=str(_require(record, "id")),
            name=str(record.get("name") or ""),
            role=_coerce_enum(StaffRole, record.get("role") or "Nurse", "role"),
            skill_level=_coerce_int(record.get("skill_level"), "skill_level"),
            current_fatigue_score=int(_clamp(fatigue, 0, 100)),
            max_hours_shift=max(0.0, _coerce_float(record.get("max_hours_shift"), "max_hours_shift", 12.0)),
            current_hours_worked=max(
                0.0, _coerce_float(record.get("current_hours_worked"), "current_hours_worked", 0.0)
            ),
            fatigue_overridden=_coerce_bool(record.get("fatigue_overridden")),
        )

    def to_record(self) -> dict:
        return to_plain(self)


@dataclass(frozen=True)
class InventoryItem:
    """Stock-keeping record. Stock is never negative."""

    id: str
    item_name: str
    category: InventoryCategory
    current_stock: int
    reorder_threshold: int
    usage_rate_per_surgery: float = 0.0
    last_reorder_suggestion: Optional[ReorderSuggestion] = None

    def __post_init__(self):
        if self.current_stock < 0:
            raise RecordValidationError(
                f"Inventory {self.id} stock cannot be negative ({self.current_stock})"
            )

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.reorder_threshold

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "InventoryItem":
        suggestion = record.get("last_reorder_suggestion")
        return cls(
            id=str(_require(record, "id")),
            item_name=str(record.get("item_name") or ""),
            category=_coerce_enum(
                InventoryCategory, record.get("category") or "Consumable", "category"
            ),
            current_stock=max(0, _coerce_int(record.get("current_stock"), "current_stock", 0)),
            reorder_threshold=max(
                0, _coerce_int(record.get("reorder_threshold"), "reorder_threshold", 0)
            ),
            usage_rate_per_surgery=max(
                0.0,
                _coerce_float(record.get("usage_rate_per_surgery"), "usage_rate_per_surgery", 0.0),
            ),
            last_reorder_suggestion=(
                ReorderSuggestion.from_record(suggestion) if suggestion else None
            ),
        )

    def to_record(self) -> dict:
        return to_plain(self)


@dataclass(frozen=True)
class Appointment:
    """Appointment booking."""

    id: str
    doctor_name: str
    patient_name: str
    time: str
    reason: str = ""
    status: AppointmentStatus = AppointmentStatus.CONFIRMED

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Appointment":
        return cls(
            id=str(_require(record, "id")),
            doctor_name=str(record.get("doctor_name") or ""),
            patient_name=str(record.get("patient_name") or ""),
            time=str(record.get("time") or ""),
            reason=str(record.get("reason") or ""),
            status=_coerce_enum(
                AppointmentStatus, record.get("status") or "Confirmed", "status"
            ),
        )

    def to_record(self) -> dict:
        return to_plain(self)
