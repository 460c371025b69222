"""Tests for domain records and their coercion from external dicts."""

import pytest

from wardflow.core.entities import (
    AcuityLevel,
    AppointmentStatus,
    InventoryCategory,
    PatientStatus,
    StaffRole,
    Urgency,
)
from wardflow.core.models import (
    Appointment,
    Bed,
    InventoryItem,
    Patient,
    RecordValidationError,
    Staff,
)


class TestPatient:
    """Test Patient invariants and coercion."""

    def test_bed_requires_admitted_status(self):
        with pytest.raises(RecordValidationError, match="bed"):
            Patient(id="P1", name="A", acuity_score=AcuityLevel.LOW, assigned_bed_id="BED-01")

    def test_admitted_with_bed_ok(self):
        p = Patient(id="P1", name="A", acuity_score=AcuityLevel.LOW,
                    status=PatientStatus.ADMITTED, assigned_bed_id="BED-01")
        assert p.assigned_bed_id == "BED-01"

    def test_from_record_coerces_strings(self):
        p = Patient.from_record({
            "id": "P1",
            "name": "Jane",
            "acuity_score": "4",
            "status": "admitted",
            "assigned_bed_id": "BED-02",
            "history": [{"date": "2026-01-01", "condition": "X", "treatment": "Y"}],
            "vitals": {"hr": "110", "spo2": 92},
        })
        assert p.acuity_score == AcuityLevel.CRITICAL
        assert p.status == PatientStatus.ADMITTED
        assert p.history[0].treatment == "Y"
        assert p.vitals.hr == 110.0

    def test_from_record_defaults_to_waiting(self):
        p = Patient.from_record({"id": "P1", "acuity_score": 1})
        assert p.status == PatientStatus.WAITING
        assert p.assigned_bed_id is None

    @pytest.mark.parametrize("acuity", [0, 5, "high"])
    def test_invalid_acuity_rejected(self, acuity):
        with pytest.raises(RecordValidationError):
            Patient.from_record({"id": "P1", "acuity_score": acuity})

    def test_plain_int_acuity_coerced(self):
        p = Patient(id="P1", name="A", acuity_score=4)
        assert p.acuity_score is AcuityLevel.CRITICAL
        assert p.acuity_score.name == "CRITICAL"

    @pytest.mark.parametrize("acuity", [7, 0, True, "3", None])
    def test_constructor_rejects_bad_acuity(self, acuity):
        with pytest.raises(RecordValidationError, match="acuity"):
            Patient(id="P1", name="A", acuity_score=acuity)

    def test_missing_id_rejected(self):
        with pytest.raises(RecordValidationError, match="id"):
            Patient.from_record({"acuity_score": 2})

    def test_to_record_uses_plain_values(self):
        record = Patient(id="P1", name="A", acuity_score=AcuityLevel.HIGH).to_record()
        assert record["acuity_score"] == 3
        assert record["status"] == "Waiting"
        assert record["history"] == []


class TestBed:
    """Test Bed invariants."""

    @pytest.mark.parametrize("skill", [0, 11])
    def test_skill_range(self, skill):
        with pytest.raises(RecordValidationError):
            Bed(id="BED-01", ward="ICU", required_skill_level=skill)

    def test_availability(self):
        assert Bed("BED-01", "ICU", 9).is_available
        assert not Bed("BED-01", "ICU", 9, is_reserved=True).is_available
        assert not Bed("BED-01", "ICU", 9, is_occupied=True).is_available

    def test_from_record_bool_strings(self):
        bed = Bed.from_record({"id": "BED-01", "required_skill_level": "6",
                               "is_occupied": "true", "is_reserved": "false"})
        assert bed.is_occupied is True
        assert bed.is_reserved is False


class TestStaff:
    """Test Staff invariants."""

    def test_fatigue_range(self):
        with pytest.raises(RecordValidationError):
            Staff(id="S1", name="A", role=StaffRole.NURSE, skill_level=5,
                  current_fatigue_score=101)

    def test_from_record_clamps_fatigue(self):
        s = Staff.from_record({"id": "S1", "role": "Doctor", "skill_level": 8,
                               "current_fatigue_score": 140})
        assert s.current_fatigue_score == 100
        assert s.role == StaffRole.DOCTOR
        assert s.fatigue_overridden is False

    def test_role_by_name(self):
        s = Staff.from_record({"id": "S1", "role": "SPECIALIST", "skill_level": 10})
        assert s.role == StaffRole.SPECIALIST


class TestInventoryItem:
    """Test InventoryItem invariants."""

    def test_negative_stock_rejected(self):
        with pytest.raises(RecordValidationError, match="negative"):
            InventoryItem("INV-1", "X", InventoryCategory.PHARMA, -1, 5)

    def test_from_record_clamps_negative_stock(self):
        item = InventoryItem.from_record({"id": "INV-1", "current_stock": -4,
                                          "reorder_threshold": 2, "category": "pharma"})
        assert item.current_stock == 0
        assert item.category == InventoryCategory.PHARMA
        assert item.is_low_stock

    def test_reorder_suggestion_nested(self):
        item = InventoryItem.from_record({
            "id": "INV-1", "current_stock": 1, "reorder_threshold": 2,
            "last_reorder_suggestion": {"suggested_qty": 6, "urgency": "Medium", "reason": "r"},
        })
        assert item.last_reorder_suggestion.urgency == Urgency.MEDIUM


class TestAppointment:
    def test_defaults_confirmed(self):
        a = Appointment.from_record({"id": "APT-1", "doctor_name": "Dr. House",
                                     "patient_name": "Jane", "time": "2:00 PM"})
        assert a.status == AppointmentStatus.CONFIRMED

    def test_invalid_status(self):
        with pytest.raises(RecordValidationError, match="status"):
            Appointment.from_record({"id": "APT-1", "status": "Pending"})


class TestNonFiniteNumbers:
    """Test that overflowing and non-finite numbers are rejected as invalid records."""

    @pytest.mark.parametrize("skill", ["Infinity", "-inf", "nan", 1e309, "1e400"])
    def test_bed_skill_rejected(self, skill):
        with pytest.raises(RecordValidationError, match="required_skill_level"):
            Bed.from_record({"id": "BED-99", "required_skill_level": skill})

    @pytest.mark.parametrize("stock", [1e309, float("nan"), "Infinity"])
    def test_inventory_stock_rejected(self, stock):
        with pytest.raises(RecordValidationError, match="current_stock"):
            InventoryItem.from_record({"id": "INV-1", "current_stock": stock,
                                       "reorder_threshold": 2})

    def test_vitals_nan_rejected(self):
        with pytest.raises(RecordValidationError):
            Patient.from_record({"id": "P1", "acuity_score": 2, "vitals": {"hr": "NaN"}})

    def test_triage_score_infinity_rejected(self):
        with pytest.raises(RecordValidationError, match="triage_score"):
            Patient.from_record({"id": "P1", "acuity_score": 2, "triage_score": "inf"})

    def test_large_finite_int_kept(self):
        item = InventoryItem.from_record({"id": "INV-1", "current_stock": 10 ** 6,
                                          "reorder_threshold": "2.0"})
        assert item.current_stock == 1_000_000
        assert item.reorder_threshold == 2
