"""Advisory service contract and typed responses.

The advisory service is an external model that answers free-form
questions about the hospital snapshot. Everything it returns is treated as
untrusted JSON: each response type validates its payload in
``from_payload`` and raises ``AdvisoryError`` when the shape is wrong.

Advisory output never mutates state by itself. Callers decide whether to
apply it (e.g. via ``HospitalStore.admit_surge``).
"""

from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

from wardflow.core.models import (
    ClinicalInsights,
    InventoryItem,
    Patient,
    RecordValidationError,
    ReorderSuggestion,
    RiskProfile,
    Staff,
    Vitals,
)

if TYPE_CHECKING:
    from wardflow.analytics.capacity import CapacitySummary
    from wardflow.state.snapshot import HospitalState


class AdvisoryError(Exception):
    """Raised when an advisory payload is missing or malformed."""


def _mapping(payload: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise AdvisoryError(f"{what} payload must be an object, got {type(payload).__name__}")
    return payload


def _number(payload: Mapping[str, Any], key: str, what: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or value is None:
        raise AdvisoryError(f"{what} payload missing numeric '{key}'")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise AdvisoryError(f"{what} payload has non-numeric '{key}': {value!r}")


def _strings(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def parse_risk_profile(payload: Any) -> RiskProfile:
    try:
        return RiskProfile.from_record(_mapping(payload, "Risk profile"))
    except RecordValidationError as e:
        raise AdvisoryError(str(e)) from e


def parse_clinical_insights(payload: Any) -> ClinicalInsights:
    try:
        return ClinicalInsights.from_record(_mapping(payload, "Clinical insights"))
    except RecordValidationError as e:
        raise AdvisoryError(str(e)) from e


def parse_reorder_suggestions(payload: Any) -> List[ReorderSuggestion]:
    if payload is None:
        return []
    if not isinstance(payload, (list, tuple)):
        raise AdvisoryError("Reorder payload must be a list")
    try:
        return [ReorderSuggestion.from_record(_mapping(p, "Reorder")) for p in payload]
    except RecordValidationError as e:
        raise AdvisoryError(str(e)) from e


def parse_text(payload: Any) -> str:
    if not isinstance(payload, str) or not payload.strip():
        raise AdvisoryError("Expected non-empty text response")
    return payload.strip()


@dataclass(frozen=True)
class TriageAdvice:
    """Triage scoring for a new arrival.

    Attributes:
        triage_score: 0-100, higher is more urgent.
        severity: Critical, High, Moderate or Low.
        recommended_bed_type: ICU, Trauma or General.
        recommended_actions: Immediate actions, most urgent first.
    """
    triage_score: float
    severity: str
    recommended_bed_type: str
    recommended_actions: Tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "TriageAdvice":
        data = _mapping(payload, "Triage")
        score = _number(data, "triage_score", "Triage")
        if not 0 <= score <= 100:
            raise AdvisoryError(f"Triage score out of range: {score}")
        return cls(
            triage_score=score,
            severity=str(data.get("severity") or "Moderate"),
            recommended_bed_type=str(data.get("recommended_bed_type") or "General"),
            recommended_actions=_strings(data.get("recommended_actions")),
        )


@dataclass(frozen=True)
class DocumentSummary:
    summary: str
    critical_flags: Tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "DocumentSummary":
        data = _mapping(payload, "Document summary")
        summary = data.get("summary")
        if not summary:
            raise AdvisoryError("Document summary payload missing 'summary'")
        return cls(summary=str(summary), critical_flags=_strings(data.get("critical_flags")))


@dataclass(frozen=True)
class Forecast:
    """Predicted load over the forecast horizon (hours)."""
    horizon: int
    beds_free: int
    inventory_alerts: int
    staff_shortage: int

    @classmethod
    def from_payload(cls, payload: Any) -> "Forecast":
        data = _mapping(payload, "Forecast")
        return cls(
            horizon=int(_number(data, "horizon", "Forecast")),
            beds_free=max(0, int(_number(data, "beds_free", "Forecast"))),
            inventory_alerts=max(0, int(_number(data, "inventory_alerts", "Forecast"))),
            staff_shortage=max(0, int(_number(data, "staff_shortage", "Forecast"))),
        )


@dataclass(frozen=True)
class StaffLoadAction:
    staff_id: str
    action: str
    reason: str = ""


@dataclass(frozen=True)
class StaffLoadSuggestion:
    """Roster rebalancing advice; one action per affected staff member."""
    suggestions: Tuple[StaffLoadAction, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "StaffLoadSuggestion":
        data = _mapping(payload, "Staff load")
        raw = data.get("suggestions")
        if not isinstance(raw, (list, tuple)):
            raise AdvisoryError("Staff load payload missing 'suggestions' list")
        actions = []
        for entry in raw:
            entry = _mapping(entry, "Staff load suggestion")
            if not entry.get("staff_id") or not entry.get("action"):
                raise AdvisoryError(f"Incomplete staff load suggestion: {dict(entry)}")
            actions.append(StaffLoadAction(
                staff_id=str(entry["staff_id"]),
                action=str(entry["action"]),
                reason=str(entry.get("reason") or ""),
            ))
        return cls(suggestions=tuple(actions))


@dataclass(frozen=True)
class SurgeImpact:
    bed_impact: str
    staff_needed: int
    critical_resources: Tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "SurgeImpact":
        data = _mapping(payload, "Surge impact")
        return cls(
            bed_impact=str(data.get("bed_impact") or "Unknown"),
            staff_needed=max(0, int(_number(data, "staff_needed", "Surge impact"))),
            critical_resources=_strings(data.get("critical_resources")),
        )


@dataclass(frozen=True)
class SurgeScenario:
    """A mass-casualty scenario and its casualties.

    Casualties carry placeholder ids; ``HospitalStore.admit_surge`` assigns
    the real ones.
    """
    title: str
    description: str
    patients: Tuple[Patient, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "SurgeScenario":
        data = _mapping(payload, "Surge scenario")
        raw = data.get("generatedPatients", data.get("patients"))
        if not isinstance(raw, (list, tuple)) or not raw:
            raise AdvisoryError("Surge scenario has no generated patients")
        patients = []
        for idx, entry in enumerate(raw):
            entry = _mapping(entry, "Surge patient")
            try:
                patients.append(Patient.from_record({
                    "id": f"DRAFT-{idx}",
                    "name": entry.get("name"),
                    "acuity_score": entry.get("acuity_score"),
                    "condition": entry.get("condition"),
                    "detailed_condition": entry.get("detailed_condition"),
                }))
            except RecordValidationError as e:
                raise AdvisoryError(f"Invalid surge patient {idx}: {e}") from e
        return cls(
            title=str(data.get("scenarioTitle", data.get("title")) or "Mass Casualty Incident"),
            description=str(data.get("scenarioDescription", data.get("description")) or ""),
            patients=tuple(patients),
        )


@dataclass(frozen=True)
class ToolCall:
    """Structured action the chat model asks the client to run."""
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChatReply:
    text: str = ""
    tool_call: Optional[ToolCall] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ChatReply":
        if isinstance(payload, str):
            return cls(text=parse_text(payload))
        data = _mapping(payload, "Chat")
        call = data.get("tool_call")
        tool_call = None
        if call:
            call = _mapping(call, "Tool call")
            if not call.get("name"):
                raise AdvisoryError("Tool call without a name")
            tool_call = ToolCall(name=str(call["name"]), arguments=dict(call.get("args") or {}))
        text = str(data.get("text") or "")
        if not text and tool_call is None:
            raise AdvisoryError("Chat reply has neither text nor tool call")
        return cls(text=text, tool_call=tool_call)


@runtime_checkable
class AdvisoryService(Protocol):
    """Interface for the external advisory model.

    Every method returns a JSON-shaped payload (or text), may return None
    when it has nothing to say, and may raise on any failure. The
    dispatcher validates and falls back; implementations need not.
    """

    def analyze_triage(self, symptoms: str, vitals: Vitals, age: int) -> Any:
        ...

    def predict_patient_risk(self, patient: Patient) -> Any:
        ...

    def summarize_document(self, text: str) -> Any:
        ...

    def generate_forecast(self, summary: "CapacitySummary", horizon: int = 24) -> Any:
        ...

    def balance_staff_load(self, staff: Sequence[Staff], patients_count: int) -> Any:
        ...

    def check_reorder_needs(self, inventory: Sequence[InventoryItem]) -> Any:
        ...

    def simulate_surge_impact(self, patient_count: int) -> Any:
        ...

    def generate_surge_scenario(self) -> Any:
        ...

    def assess_clinical_risk(self, patient: Patient) -> Any:
        ...

    def suggest_bed_allocation(
        self, patient_name: str, acuity: int, available_beds: Sequence[str]
    ) -> Any:
        ...

    def generate_hospital_report(self, state: "HospitalState") -> Any:
        ...

    def chat(
        self,
        history: Sequence[Mapping[str, Any]],
        message: Mapping[str, Any],
        context: Mapping[str, Any],
    ) -> Any:
        """One chat turn.

        Args:
            history: Earlier turns as ``{"role", "text"}`` dicts.
            message: ``{"role": "user", "text"}`` or, after a tool ran,
                ``{"role": "tool", "name", "text"}``.
            context: Live snapshot digest for grounding.

        Returns:
            Text, or ``{"text", "tool_call": {"name", "args"}}``.
        """
        ...
