"""Tests for staff fatigue scoring and risk flags."""

import pytest

from wardflow.analytics.fatigue import (
    available_clinicians,
    compute_fatigue_score,
    identify_at_risk_staff,
    is_at_risk,
)
from wardflow.core.config import OperationsConfig
from wardflow.core.entities import StaffRole
from wardflow.core.models import Staff


def staff(staff_id="S-1", fatigue=0, hours=0, max_hours=12, role=StaffRole.DOCTOR):
    return Staff(id=staff_id, name=staff_id, role=role, skill_level=8,
                 current_fatigue_score=fatigue, max_hours_shift=max_hours,
                 current_hours_worked=hours)


class TestComputeFatigueScore:
    """Test the hours-based fatigue formula."""

    def test_within_normal_hours(self):
        assert compute_fatigue_score(4, 12) == 33

    def test_overtime_penalty(self):
        """10 of 12 hours: 83.3 plus 2 overtime hours at 5 points."""
        assert compute_fatigue_score(10, 12) == 93

    def test_exactly_at_overtime_threshold_has_no_penalty(self):
        assert compute_fatigue_score(8, 12) == 67

    def test_rounds_half_up(self):
        """1 of 8 hours is 12.5, which rounds to 13."""
        assert compute_fatigue_score(1, 8) == 13

    def test_clamped_to_100(self):
        assert compute_fatigue_score(14, 12) == 100

    def test_zero_max_hours(self):
        assert compute_fatigue_score(5, 0) == 0
        assert compute_fatigue_score(5, -3) == 0

    @pytest.mark.parametrize("hours", [0, 0.5, 3, 7.9, 8, 11, 12, 16, 24, 48])
    @pytest.mark.parametrize("max_hours", [0, 4, 8, 12, 24])
    def test_always_in_range(self, hours, max_hours):
        assert 0 <= compute_fatigue_score(hours, max_hours) <= 100

    def test_custom_penalty(self):
        config = OperationsConfig(overtime_threshold_hours=6, overtime_penalty_per_hour=10)
        # 50 + 2 * 10
        assert compute_fatigue_score(6 + 2, 16, config) == 70


class TestAtRisk:
    """Test fatigue risk flags."""

    def test_threshold_is_exclusive(self):
        assert is_at_risk(staff(fatigue=71)) is True
        assert is_at_risk(staff(fatigue=70)) is False

    def test_overtime_flags_even_with_low_fatigue(self):
        assert is_at_risk(staff(fatigue=10, hours=13, max_hours=12)) is True

    def test_identify_at_risk(self):
        roster = [staff("A", fatigue=71), staff("B", fatigue=70), staff("C", fatigue=99)]
        assert {s.id for s in identify_at_risk_staff(roster)} == {"A", "C"}

    def test_demo_roster(self, demo_state):
        """Only Dr. House (14h of a 12h shift) is at risk."""
        assert [s.id for s in identify_at_risk_staff(demo_state.staff)] == ["S-004"]

    def test_available_clinicians_excludes_nurses_and_fatigued(self):
        roster = [
            staff("D", fatigue=40),
            staff("N", fatigue=10, role=StaffRole.NURSE),
            staff("X", fatigue=80, role=StaffRole.SPECIALIST),
            staff("S", fatigue=70, role=StaffRole.SPECIALIST),
        ]
        assert [s.id for s in available_clinicians(roster)] == ["D", "S"]
