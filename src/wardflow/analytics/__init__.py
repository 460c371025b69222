"""Analytics layer: staff fatigue scoring and capacity summaries."""

from wardflow.analytics.fatigue import (
    available_clinicians,
    compute_fatigue_score,
    identify_at_risk_staff,
    is_at_risk,
)
from wardflow.analytics.capacity import CapacitySummary, baseline_forecast, ward_occupancy

__all__ = [
    "available_clinicians",
    "compute_fatigue_score",
    "identify_at_risk_staff",
    "is_at_risk",
    "CapacitySummary",
    "baseline_forecast",
    "ward_occupancy",
]
