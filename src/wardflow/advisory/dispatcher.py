"""Advisory Dispatcher - fail-open calls to the advisory service.

The dispatcher provides:
- Timeout handling for each service call
- Payload validation into typed responses
- Failure isolation: any error, timeout, empty or malformed answer falls
  back to the heuristic advisor, then to a fixed "unavailable" answer
- Cancellable background requests so a stale answer can be discarded
- Execution timing and result hooks for observability

Example usage:
    from wardflow.advisory import AdvisoryDispatcher, HeuristicAdvisor

    dispatcher = AdvisoryDispatcher(service=model_client, fallback=HeuristicAdvisor())

    # Blocking call, always returns a usable answer or None
    advice = dispatcher.analyze_triage("chest pain", vitals, age=54)

    # Background call, discarded if the operator moves on
    request = dispatcher.submit("assess_clinical_risk", patient)
    ...
    request.cancel()
    assert request.result() is None
"""

import logging
import time
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from wardflow.advisory.interface import (
    AdvisoryError,
    AdvisoryService,
    ChatReply,
    DocumentSummary,
    Forecast,
    StaffLoadSuggestion,
    SurgeImpact,
    SurgeScenario,
    TriageAdvice,
    parse_clinical_insights,
    parse_reorder_suggestions,
    parse_risk_profile,
    parse_text,
)
from wardflow.core.config import DEFAULT_CONFIG, OperationsConfig
from wardflow.core.models import (
    ClinicalInsights,
    InventoryItem,
    Patient,
    ReorderSuggestion,
    RiskProfile,
    Staff,
    Vitals,
)

logger = logging.getLogger(__name__)


# Operation name -> payload validator
PARSERS: Dict[str, Callable[[Any], Any]] = {
    "analyze_triage": TriageAdvice.from_payload,
    "predict_patient_risk": parse_risk_profile,
    "summarize_document": DocumentSummary.from_payload,
    "generate_forecast": Forecast.from_payload,
    "balance_staff_load": StaffLoadSuggestion.from_payload,
    "check_reorder_needs": parse_reorder_suggestions,
    "simulate_surge_impact": SurgeImpact.from_payload,
    "generate_surge_scenario": SurgeScenario.from_payload,
    "assess_clinical_risk": parse_clinical_insights,
    "suggest_bed_allocation": parse_text,
    "generate_hospital_report": parse_text,
    "chat": ChatReply.from_payload,
}

# Answers used when neither the service nor the fallback produced one
UNAVAILABLE: Dict[str, Any] = {
    "check_reorder_needs": [],
    "suggest_bed_allocation": "AI suggestion unavailable.",
    "generate_hospital_report": "Unable to generate report due to service interruption.",
    "chat": ChatReply(text="I'm having trouble accessing the hospital database right now."),
}


@dataclass
class AdvisoryOutcome:
    """Record of one dispatched advisory call.

    Attributes:
        operation: Service method name.
        source: "service", "fallback" or "unavailable".
        execution_time_ms: Wall time including fallback.
        error_message: Service failure, if any.
    """

    operation: str
    source: str
    execution_time_ms: float
    error_message: Optional[str] = None

    @property
    def degraded(self) -> bool:
        """True when the live service did not provide the answer."""
        return self.source != "service"


class AdvisoryRequest:
    """Handle on a background advisory call.

    Cancelling marks the request stale: ``result()`` then returns None
    even if the call completed.
    """

    def __init__(self, operation: str, future: "Future[Any]"):
        self.operation = operation
        self._future = future
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        self._future.cancel()
        logger.debug(f"Advisory request {self.operation} cancelled")

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def done(self) -> bool:
        return self._cancelled or self._future.done()

    def result(self, timeout: Optional[float] = None) -> Any:
        """Wait for the answer.

        Returns:
            The validated answer, or None if cancelled or failed.
        """
        if self._cancelled:
            return None
        try:
            value = self._future.result(timeout=timeout)
        except CancelledError:
            return None
        except Exception as e:
            logger.error(f"Advisory request {self.operation} failed: {e}")
            return None
        return None if self._cancelled else value


class AdvisoryDispatcher:
    """Routes advisory requests to the service with validation and fallback.

    Thread Safety:
        Service calls run on a worker pool so a hung service cannot block
        past the configured timeout. Results are plain values; callers
        apply them to the store on their own thread.

    Attributes:
        service: External advisory service, or None when not configured.
        fallback: Deterministic advisor used when the service fails.
        fail_open: Fall back on service failure if True. If False, raise
            AdvisoryError instead.
    """

    def __init__(
        self,
        service: Optional[AdvisoryService] = None,
        fallback: Optional[AdvisoryService] = None,
        config: OperationsConfig = DEFAULT_CONFIG,
        fail_open: bool = True,
        max_workers: int = 4,
    ):
        self.service = service
        self.fallback = fallback
        self.config = config
        self.fail_open = fail_open
        self._calls = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="advisory-call")
        self._requests = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="advisory-req")
        self._hooks: List[Callable[[AdvisoryOutcome], None]] = []

        if service is None:
            logger.info("No advisory service configured; using fallback advisor only")

    def add_result_hook(self, hook: Callable[[AdvisoryOutcome], None]) -> None:
        """Add a hook called with the outcome of each dispatched call."""
        self._hooks.append(hook)

    def shutdown(self) -> None:
        self._calls.shutdown(wait=False)
        self._requests.shutdown(wait=False)

    def __enter__(self) -> "AdvisoryDispatcher":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def call(self, operation: str, *args: Any, **kwargs: Any) -> Any:
        """Run one advisory operation with validation and fallback.

        Args:
            operation: Service method name (a key of ``PARSERS``).
            *args, **kwargs: Passed through to the service method.

        Returns:
            Validated typed answer, the operation's unavailable answer, or
            None when the operation has none.

        Raises:
            KeyError: If the operation is unknown.
            AdvisoryError: If the service fails and ``fail_open`` is False.
        """
        parse = PARSERS[operation]
        start_time = time.time()
        result = None
        source = "unavailable"
        error_message = None

        if self.service is not None:
            try:
                payload = self._invoke(self.service, operation, args, kwargs)
                if payload is None:
                    raise AdvisoryError("empty response")
                result = parse(payload)
                source = "service"
            except Exception as e:
                error_message = str(e) or type(e).__name__
                logger.error(f"Advisory {operation} failed: {error_message}")
                if not self.fail_open:
                    raise AdvisoryError(f"Advisory {operation} failed: {error_message}") from e

        if result is None and self.fallback is not None:
            try:
                payload = getattr(self.fallback, operation)(*args, **kwargs)
                if payload is not None:
                    result = parse(payload)
                    source = "fallback"
            except Exception as e:
                logger.error(f"Fallback {operation} failed: {e}")

        if result is None:
            result = UNAVAILABLE.get(operation)

        execution_time = (time.time() - start_time) * 1000
        logger.debug(f"Advisory {operation} answered by {source} in {execution_time:.1f}ms")

        outcome = AdvisoryOutcome(operation, source, execution_time, error_message)
        for hook in self._hooks:
            try:
                hook(outcome)
            except Exception as e:
                logger.warning(f"Hook error for {operation}: {e}")

        return result

    def _invoke(self, service: AdvisoryService, operation: str, args, kwargs) -> Any:
        future = self._calls.submit(getattr(service, operation), *args, **kwargs)
        return future.result(timeout=self.config.advisory_timeout_s)

    def submit(self, operation: str, *args: Any, **kwargs: Any) -> AdvisoryRequest:
        """Run ``call()`` in the background.

        Raises:
            KeyError: If the operation is unknown.
        """
        if operation not in PARSERS:
            raise KeyError(operation)
        future = self._requests.submit(self.call, operation, *args, **kwargs)
        return AdvisoryRequest(operation, future)

    # Typed entry points

    def analyze_triage(self, symptoms: str, vitals: Vitals, age: int) -> Optional[TriageAdvice]:
        return self.call("analyze_triage", symptoms, vitals, age)

    def predict_patient_risk(self, patient: Patient) -> Optional[RiskProfile]:
        return self.call("predict_patient_risk", patient)

    def summarize_document(self, text: str) -> Optional[DocumentSummary]:
        return self.call("summarize_document", text)

    def generate_forecast(self, summary, horizon: int = 24) -> Optional[Forecast]:
        return self.call("generate_forecast", summary, horizon)

    def balance_staff_load(
        self, staff: Sequence[Staff], patients_count: int
    ) -> Optional[StaffLoadSuggestion]:
        return self.call("balance_staff_load", staff, patients_count)

    def check_reorder_needs(self, inventory: Sequence[InventoryItem]) -> List[ReorderSuggestion]:
        return self.call("check_reorder_needs", inventory)

    def simulate_surge_impact(self, patient_count: int) -> Optional[SurgeImpact]:
        return self.call("simulate_surge_impact", patient_count)

    def generate_surge_scenario(self) -> Optional[SurgeScenario]:
        return self.call("generate_surge_scenario")

    def assess_clinical_risk(self, patient: Patient) -> Optional[ClinicalInsights]:
        """Clinical risk narrative, stamped with the time it was produced."""
        insights = self.call("assess_clinical_risk", patient)
        if insights is not None and not insights.last_updated:
            insights = replace(insights, last_updated=datetime.now().strftime("%H:%M:%S"))
        return insights

    def suggest_bed_allocation(
        self, patient_name: str, acuity: int, available_beds: Sequence[str]
    ) -> str:
        return self.call("suggest_bed_allocation", patient_name, acuity, list(available_beds))

    def generate_hospital_report(self, state) -> str:
        return self.call("generate_hospital_report", state)

    def chat(self, history, message, context) -> ChatReply:
        return self.call("chat", history, message, context)
