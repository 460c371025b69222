"""Heuristic advisory service.

Rule-based stand-in for the external advisory model. It serves as:

1. The offline-demo advisor when no model service is configured
2. The fallback the dispatcher uses when the model fails or answers badly
3. A deterministic reference for tests

Payloads have the same shape the model service returns, so they pass
through the same validation as live responses.

Example usage:
    from wardflow.advisory import AdvisoryDispatcher, HeuristicAdvisor

    dispatcher = AdvisoryDispatcher(service=None, fallback=HeuristicAdvisor())
    forecast = dispatcher.generate_forecast(summary)
"""

from typing import Any, List, Mapping, Sequence

from wardflow.analytics.capacity import CapacitySummary, baseline_forecast
from wardflow.analytics.fatigue import identify_at_risk_staff
from wardflow.core.config import DEFAULT_CONFIG, OperationsConfig
from wardflow.core.models import InventoryItem, Patient, Staff, Vitals, to_plain
from wardflow.inventory.consumption import reorder_suggestions
from wardflow.state.snapshot import HospitalState

# Staff above this fatigue get a mandatory rest suggestion
REST_FATIGUE_THRESHOLD = 60

DEFAULT_TRIAGE_ACTIONS = ["Immediate IV Access", "ECG Monitoring", "Prepare for CT Scan"]
DEFAULT_SURGE_RESOURCES = ["Trauma Beds", "O Negative Blood", "Surgical Teams"]


class HeuristicAdvisor:
    """Deterministic advisor built from the core's own rules.

    Methods without a meaningful rule-based answer (surge scenario
    generation, clinical risk narrative) return None.

    Attributes:
        config: Operating rules shared with the core calculations.
    """

    name = "heuristic"

    def __init__(self, config: OperationsConfig = DEFAULT_CONFIG):
        self.config = config

    def analyze_triage(self, symptoms: str, vitals: Vitals, age: int) -> dict:
        return {
            "triage_score": 75,
            "severity": "High",
            "recommended_bed_type": "Trauma",
            "recommended_actions": list(DEFAULT_TRIAGE_ACTIONS),
        }

    def predict_patient_risk(self, patient: Patient) -> dict:
        return {
            "sepsis_risk": 45,
            "deterioration_risk": 30,
            "rationale": (
                "Elevated heart rate and history of infection suggests moderate sepsis risk."
            ),
        }

    def summarize_document(self, text: str) -> dict:
        return {
            "summary": (
                "Patient presents with acute symptoms consistent with previous history. "
                "Vitals stable but monitoring recommended."
            ),
            "critical_flags": ["Hypertension history", "Penicillin Allergy"],
        }

    def generate_forecast(self, summary: CapacitySummary, horizon: int = 24) -> dict:
        return baseline_forecast(summary, horizon)

    def balance_staff_load(self, staff: Sequence[Staff], patients_count: int) -> dict:
        fatigued = [s for s in staff if s.current_fatigue_score > REST_FATIGUE_THRESHOLD]
        if not fatigued:
            return {"suggestions": [{
                "staff_id": "General",
                "action": "Maintain Roster",
                "reason": "All staff within safety limits.",
            }]}
        return {"suggestions": [
            {
                "staff_id": s.id,
                "action": "Mandatory Rest Period",
                "reason": (
                    f"Fatigue score {s.current_fatigue_score}% indicates cognitive decline risk."
                ),
            }
            for s in fatigued
        ]}

    def check_reorder_needs(self, inventory: Sequence[InventoryItem]) -> List[dict]:
        return [to_plain(s) for s in reorder_suggestions(inventory, self.config)]

    def simulate_surge_impact(self, patient_count: int) -> dict:
        return {
            "bed_impact": "Critical",
            "staff_needed": 12,
            "critical_resources": list(DEFAULT_SURGE_RESOURCES),
        }

    def generate_surge_scenario(self) -> None:
        return None

    def assess_clinical_risk(self, patient: Patient) -> None:
        return None

    def suggest_bed_allocation(
        self, patient_name: str, acuity: int, available_beds: Sequence[str]
    ) -> str:
        if not available_beds:
            return (
                f"No beds are free for {patient_name}. Keep the patient in the "
                f"waiting queue and escalate to bed management."
            )
        return (
            f"Place {patient_name} (acuity {acuity}) in the lowest-skill bed that meets "
            f"their acuity. Candidates: {', '.join(available_beds)}."
        )

    def generate_hospital_report(self, state: HospitalState) -> str:
        """Short operational report from threshold rules."""
        summary = CapacitySummary.from_state(state, self.config)
        lines = [
            f"Bed occupancy {summary.beds_occupied}/{summary.beds_total} "
            f"({summary.occupancy:.0%}), {summary.beds_free} free.",
            f"{summary.patients_waiting} patients waiting "
            f"(mean acuity {summary.mean_waiting_acuity}).",
        ]
        if summary.patients_waiting > summary.beds_free:
            lines.append("Waiting patients exceed free beds: expedite discharges.")

        at_risk = identify_at_risk_staff(state.staff, self.config)
        if at_risk:
            names = ", ".join(s.name for s in at_risk)
            lines.append(f"Staff burnout risk: {names}.")

        low = [i.item_name for i in state.inventory if i.is_low_stock]
        if low:
            lines.append(f"Low stock: {', '.join(low)}.")
        return " ".join(lines)

    def chat(
        self,
        history: Sequence[Mapping[str, Any]],
        message: Mapping[str, Any],
        context: Mapping[str, Any],
    ) -> str:
        return "Chat unavailable (System Offline)."