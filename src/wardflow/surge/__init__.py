"""Surge layer: mass-casualty incidents and the SimPy surge drill."""

from wardflow.surge.incident import (
    ArrivalPattern,
    CasualtyProfile,
    CASUALTY_PROFILES,
    SurgeIncident,
    scenario_with_fallback,
)
from wardflow.surge.drill import SurgeDrillResult, run_surge_drill

__all__ = [
    "ArrivalPattern",
    "CasualtyProfile",
    "CASUALTY_PROFILES",
    "SurgeIncident",
    "scenario_with_fallback",
    "SurgeDrillResult",
    "run_surge_drill",
]
