"""
Capacity summary and ward occupancy.

Derives headline numbers from a hospital snapshot: bed occupancy, waiting
patients, staff at risk, low stock. Also provides the deterministic
forecast used when the advisory service cannot produce one.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

import numpy as np
import pandas as pd

from wardflow.analytics.fatigue import identify_at_risk_staff
from wardflow.core.config import DEFAULT_CONFIG, OperationsConfig
from wardflow.core.entities import PatientStatus
from wardflow.core.models import Bed

if TYPE_CHECKING:
    from wardflow.state.snapshot import HospitalState


@dataclass(frozen=True)
class CapacitySummary:
    """
    Headline capacity figures for one snapshot.

    Attributes:
        beds_total: Number of beds.
        beds_occupied: Beds with a patient.
        beds_reserved: Reserved beds that are not occupied.
        beds_free: Beds available for allocation.
        patients_waiting: Patients with status Waiting.
        mean_waiting_acuity: Mean acuity of waiting patients (0 if none).
        staff_at_risk: Number of staff flagged by the fatigue rules.
        low_stock_items: Inventory items at or below reorder threshold.
    """
    beds_total: int
    beds_occupied: int
    beds_reserved: int
    beds_free: int
    patients_waiting: int
    mean_waiting_acuity: float
    staff_at_risk: int
    low_stock_items: int

    @property
    def occupancy(self) -> float:
        """Occupied fraction of all beds (0.0 to 1.0)."""
        if self.beds_total == 0:
            return 0.0
        return self.beds_occupied / self.beds_total

    @classmethod
    def from_state(
        cls,
        state: "HospitalState",
        config: OperationsConfig = DEFAULT_CONFIG,
    ) -> "CapacitySummary":
        """Compute the summary from a hospital snapshot."""
        waiting = [p for p in state.patients if p.status == PatientStatus.WAITING]
        mean_acuity = (
            float(np.mean([int(p.acuity_score) for p in waiting])) if waiting else 0.0
        )

        return cls(
            beds_total=len(state.beds),
            beds_occupied=sum(1 for b in state.beds if b.is_occupied),
            beds_reserved=sum(1 for b in state.beds if b.is_reserved and not b.is_occupied),
            beds_free=sum(1 for b in state.beds if b.is_available),
            patients_waiting=len(waiting),
            mean_waiting_acuity=round(mean_acuity, 1),
            staff_at_risk=len(identify_at_risk_staff(state.staff, config)),
            low_stock_items=sum(1 for i in state.inventory if i.is_low_stock),
        )


def ward_occupancy(beds: Iterable[Bed]) -> pd.DataFrame:
    """
    Per-ward bed counts.

    Args:
        beds: Bed snapshot.

    Returns:
        DataFrame indexed by ward with columns total, occupied, reserved,
        free and occupancy (fraction). Empty frame with those columns when
        there are no beds.
    """
    columns = ["total", "occupied", "reserved", "free", "occupancy"]
    rows = [
        {
            "ward": b.ward,
            "occupied": int(b.is_occupied),
            "reserved": int(b.is_reserved and not b.is_occupied),
            "free": int(b.is_available),
        }
        for b in beds
    ]
    if not rows:
        return pd.DataFrame(columns=columns).rename_axis("ward")

    df = pd.DataFrame(rows)
    grouped = df.groupby("ward").agg(
        total=("ward", "size"),
        occupied=("occupied", "sum"),
        reserved=("reserved", "sum"),
        free=("free", "sum"),
    )
    grouped["occupancy"] = grouped["occupied"] / grouped["total"]
    return grouped[columns]


def baseline_forecast(
    summary: CapacitySummary, horizon: int = 24
) -> dict:
    """
    Deterministic load forecast for the next ``horizon`` hours.

    Assumes two further beds will be taken by new arrivals and that
    current low-stock and at-risk counts persist.

    Returns:
        Payload with horizon, beds_free, inventory_alerts, staff_shortage.
    """
    if horizon not in (24, 48):
        raise ValueError(f"horizon must be 24 or 48, got {horizon}")

    expected_arrivals = 2 if horizon == 24 else 4
    return {
        "horizon": horizon,
        "beds_free": max(0, summary.beds_total - summary.beds_occupied - expected_arrivals),
        "inventory_alerts": summary.low_stock_items,
        "staff_shortage": summary.staff_at_risk,
    }
