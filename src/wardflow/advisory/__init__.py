"""Advisory layer - model-backed suggestions with deterministic fallback.

Example usage:
    from wardflow.advisory import AdvisoryDispatcher, HeuristicAdvisor, ChatSession

    dispatcher = AdvisoryDispatcher(service=None, fallback=HeuristicAdvisor())
    report = dispatcher.generate_hospital_report(store.state)

    chat = ChatSession(dispatcher, store)
    print(chat.send("Book Nurse Joy for Jane Doe at 2:00 PM"))
"""

from .interface import (
    AdvisoryError,
    AdvisoryService,
    ChatReply,
    DocumentSummary,
    Forecast,
    StaffLoadAction,
    StaffLoadSuggestion,
    SurgeImpact,
    SurgeScenario,
    ToolCall,
    TriageAdvice,
)
from .heuristic import HeuristicAdvisor
from .dispatcher import AdvisoryDispatcher, AdvisoryOutcome, AdvisoryRequest
from .chat import ChatSession, build_chat_context
from .escalation import allocate_or_advise

__all__ = [
    # Data models
    "AdvisoryError",
    "ChatReply",
    "DocumentSummary",
    "Forecast",
    "StaffLoadAction",
    "StaffLoadSuggestion",
    "SurgeImpact",
    "SurgeScenario",
    "ToolCall",
    "TriageAdvice",
    # Protocols
    "AdvisoryService",
    # Advisors
    "HeuristicAdvisor",
    # Dispatch
    "AdvisoryDispatcher",
    "AdvisoryOutcome",
    "AdvisoryRequest",
    "ChatSession",
    "build_chat_context",
    "allocate_or_advise",
]
