"""Tests for capacity summaries and the baseline forecast."""

import pytest

from wardflow.analytics.capacity import CapacitySummary, baseline_forecast, ward_occupancy
from wardflow.core.entities import AcuityLevel, PatientStatus
from wardflow.core.models import Bed, Patient
from wardflow.state.snapshot import HospitalState


class TestCapacitySummary:
    """Test headline figures from a snapshot."""

    def test_demo_state(self, demo_state):
        summary = CapacitySummary.from_state(demo_state)
        assert summary.beds_total == 20
        assert summary.beds_occupied == 0
        assert summary.beds_free == 20
        assert summary.patients_waiting == 0
        assert summary.mean_waiting_acuity == 0.0
        assert summary.staff_at_risk == 1
        assert summary.low_stock_items == 1
        assert summary.occupancy == 0.0

    def test_occupied_and_reserved(self):
        state = HospitalState(
            beds=(
                Bed("BED-01", "ICU", 9, is_occupied=True, assigned_patient_id="P1"),
                Bed("BED-02", "ICU", 9, is_reserved=True),
                Bed("BED-03", "ICU", 9, is_occupied=True, is_reserved=True),
                Bed("BED-04", "ICU", 9),
            ),
            patients=(
                Patient("P1", "A", AcuityLevel.HIGH, status=PatientStatus.ADMITTED,
                        assigned_bed_id="BED-01"),
                Patient("P2", "B", AcuityLevel.CRITICAL),
                Patient("P3", "C", AcuityLevel.LOW),
            ),
        )
        summary = CapacitySummary.from_state(state)
        assert summary.beds_occupied == 2
        assert summary.beds_reserved == 1
        assert summary.beds_free == 1
        assert summary.patients_waiting == 2
        assert summary.mean_waiting_acuity == 2.5
        assert summary.occupancy == 0.5


class TestWardOccupancy:
    """Test per-ward occupancy table."""

    def test_groups_by_ward(self, demo_state):
        df = ward_occupancy(demo_state.beds)
        assert list(df.index) == ["General", "ICU", "Trauma"]
        assert df.loc["ICU", "total"] == 4
        assert df.loc["Trauma", "total"] == 6
        assert df.loc["General", "free"] == 10
        assert (df["occupancy"] == 0).all()

    def test_empty(self):
        df = ward_occupancy([])
        assert df.empty
        assert "occupancy" in df.columns


class TestBaselineForecast:
    """Test deterministic forecast."""

    def test_24_hours(self, demo_state):
        forecast = baseline_forecast(CapacitySummary.from_state(demo_state))
        assert forecast == {
            "horizon": 24, "beds_free": 18, "inventory_alerts": 1, "staff_shortage": 1,
        }

    def test_48_hours_expects_more_arrivals(self, demo_state):
        forecast = baseline_forecast(CapacitySummary.from_state(demo_state), horizon=48)
        assert forecast["beds_free"] == 16

    def test_never_negative(self):
        full = CapacitySummary(1, 1, 0, 0, 0, 0.0, 0, 0)
        assert baseline_forecast(full)["beds_free"] == 0

    def test_invalid_horizon(self, demo_state):
        with pytest.raises(ValueError, match="horizon"):
            baseline_forecast(CapacitySummary.from_state(demo_state), horizon=12)
