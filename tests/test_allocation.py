"""Tests for the bed allocation engine."""

import pytest

from wardflow.allocation.engine import (
    allocate_bed,
    available_beds,
    classify_bed_match,
    min_skill_for_acuity,
    procedure_type_for,
    suitable_beds,
    toggle_reservation,
    triage_queue,
)
from wardflow.core.config import OperationsConfig
from wardflow.core.entities import AcuityLevel, BedMatch, PatientStatus, ProcedureType
from wardflow.core.models import Bed, Patient


def bed(bed_id: str, skill: int, **kwargs) -> Bed:
    return Bed(id=bed_id, ward=kwargs.pop("ward", "General"), required_skill_level=skill, **kwargs)


def patient(patient_id: str, acuity: AcuityLevel, **kwargs) -> Patient:
    return Patient(id=patient_id, name=patient_id, acuity_score=acuity, **kwargs)


class TestMinSkill:
    """Test acuity to skill threshold mapping."""

    @pytest.mark.parametrize("acuity,expected", [
        (AcuityLevel.LOW, 1),
        (AcuityLevel.MEDIUM, 4),
        (AcuityLevel.HIGH, 7),
        (AcuityLevel.CRITICAL, 9),
    ])
    def test_default_thresholds(self, acuity, expected):
        assert min_skill_for_acuity(acuity) == expected

    def test_site_config_overrides(self):
        """A site can raise the Critical threshold."""
        config = OperationsConfig(acuity_skill_thresholds={1: 1, 2: 4, 3: 7, 4: 10})
        assert min_skill_for_acuity(AcuityLevel.CRITICAL, config) == 10


class TestAllocateBed:
    """Test best-fit bed selection."""

    def test_critical_never_gets_low_skill_bed(self):
        """Critical patient gets the skill 9 bed even when it is listed last."""
        beds = [bed("BED-01", 3), bed("BED-02", 6), bed("BED-03", 9)]
        chosen = allocate_bed(patient("P1", AcuityLevel.CRITICAL), beds)
        assert chosen == "BED-03"

    def test_smallest_sufficient_skill_wins(self):
        """Between skill 9 and 10 a Critical patient gets the 9."""
        beds = [bed("BED-01", 10), bed("BED-02", 9)]
        assert allocate_bed(patient("P1", AcuityLevel.CRITICAL), beds) == "BED-02"

    def test_tie_keeps_original_order(self):
        beds = [bed("BED-05", 6), bed("BED-02", 6), bed("BED-09", 9)]
        assert allocate_bed(patient("P1", AcuityLevel.MEDIUM), beds) == "BED-05"

    def test_none_when_all_occupied_reserved_or_too_low(self):
        beds = [
            bed("BED-01", 9, is_occupied=True),
            bed("BED-02", 10, is_reserved=True),
            bed("BED-03", 6),
        ]
        assert allocate_bed(patient("P1", AcuityLevel.CRITICAL), beds) is None

    def test_none_with_no_beds(self):
        assert allocate_bed(patient("P1", AcuityLevel.LOW), []) is None

    def test_two_critical_patients_scenario(self):
        """Critical picks A (9) over B (10); with A occupied and B reserved the next gets None."""
        a = bed("BED-01", 9)
        b = bed("BED-02", 10)
        c = bed("BED-03", 3)

        first = allocate_bed(patient("P1", AcuityLevel.CRITICAL), [a, b, c])
        assert first == "BED-01"

        occupied_a = Bed(id="BED-01", ward="General", required_skill_level=9,
                         is_occupied=True, assigned_patient_id="P1")
        reserved_b = toggle_reservation(b)
        second = allocate_bed(patient("P2", AcuityLevel.CRITICAL), [occupied_a, reserved_b, c])
        assert second is None

    def test_staff_does_not_change_choice(self, demo_state):
        p = patient("P1", AcuityLevel.HIGH)
        assert allocate_bed(p, demo_state.beds, demo_state.staff) == allocate_bed(p, demo_state.beds)

    def test_demo_state_low_acuity_gets_general(self, demo_state):
        """Low acuity lands in the first General bed (skill 3)."""
        assert allocate_bed(patient("P1", AcuityLevel.LOW), demo_state.beds) == "BED-11"

    def test_suitable_beds_filters(self):
        beds = [bed("BED-01", 3), bed("BED-02", 7), bed("BED-03", 9, is_occupied=True)]
        ids = [b.id for b in suitable_beds(patient("P1", AcuityLevel.HIGH), beds)]
        assert ids == ["BED-02"]

    def test_available_beds_excludes_reserved(self):
        beds = [bed("BED-01", 3, is_reserved=True), bed("BED-02", 3)]
        assert [b.id for b in available_beds(beds)] == ["BED-02"]


class TestClassifyBedMatch:
    """Test display classification of beds."""

    def test_occupied_precedes_reserved(self):
        both = bed("BED-01", 9, is_occupied=True, is_reserved=True)
        assert classify_bed_match(both) == BedMatch.OCCUPIED

    def test_reserved(self):
        assert classify_bed_match(bed("BED-01", 9, is_reserved=True)) == BedMatch.RESERVED

    def test_available_without_patient(self):
        assert classify_bed_match(bed("BED-01", 9)) == BedMatch.AVAILABLE

    def test_incompatible(self):
        p = patient("P1", AcuityLevel.CRITICAL)
        assert classify_bed_match(bed("BED-01", 6), p) == BedMatch.INCOMPATIBLE

    def test_optimal_within_band(self):
        p = patient("P1", AcuityLevel.MEDIUM)  # needs 4
        assert classify_bed_match(bed("BED-01", 4), p) == BedMatch.OPTIMAL
        assert classify_bed_match(bed("BED-02", 7), p) == BedMatch.OPTIMAL

    def test_suboptimal_beyond_band(self):
        p = patient("P1", AcuityLevel.LOW)  # needs 1
        assert classify_bed_match(bed("BED-01", 9), p) == BedMatch.SUBOPTIMAL


class TestToggleReservation:
    """Test reservation flip."""

    def test_flips_and_returns_new_bed(self):
        original = bed("BED-01", 3)
        toggled = toggle_reservation(original)
        assert toggled.is_reserved is True
        assert original.is_reserved is False
        assert toggle_reservation(toggled).is_reserved is False

    def test_occupied_bed_can_be_reserved(self):
        toggled = toggle_reservation(bed("BED-01", 3, is_occupied=True))
        assert toggled.is_occupied and toggled.is_reserved


class TestProcedureAndQueue:
    """Test procedure type and triage ordering."""

    @pytest.mark.parametrize("acuity,expected", [
        (AcuityLevel.LOW, ProcedureType.ROUTINE),
        (AcuityLevel.MEDIUM, ProcedureType.ROUTINE),
        (AcuityLevel.HIGH, ProcedureType.SURGERY),
        (AcuityLevel.CRITICAL, ProcedureType.SURGERY),
    ])
    def test_procedure_type(self, acuity, expected):
        assert procedure_type_for(patient("P1", acuity)) == expected

    def test_waiting_first_then_acuity(self):
        patients = [
            patient("A", AcuityLevel.CRITICAL, status=PatientStatus.DISCHARGED),
            patient("B", AcuityLevel.LOW),
            patient("C", AcuityLevel.HIGH),
            patient("D", AcuityLevel.HIGH),
        ]
        assert [p.id for p in triage_queue(patients)] == ["C", "D", "B", "A"]
