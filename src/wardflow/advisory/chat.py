"""Operator chat assistant.

Keeps the conversation history and grounds each turn in a digest of the
live snapshot. The model may answer with a ``book_appointment`` tool call;
the session runs it against the store and sends the result back so the
model can confirm in plain text.
"""

import logging
from typing import Any, Dict, List, Mapping

from wardflow.advisory.dispatcher import AdvisoryDispatcher
from wardflow.advisory.interface import ToolCall
from wardflow.core.entities import PatientStatus, StaffRole
from wardflow.state.snapshot import HospitalState
from wardflow.state.store import HospitalStore

logger = logging.getLogger(__name__)

BOOK_APPOINTMENT = "book_appointment"
BOOKING_FIELDS = ("doctorName", "patientName", "time", "reason")


def build_chat_context(state: HospitalState, fatigue_threshold: int = 70) -> Dict[str, Any]:
    """Digest of the snapshot the model can reason over."""
    return {
        "waiting_patients": [
            {"name": p.name, "condition": p.condition, "acuity": int(p.acuity_score)}
            for p in state.patients
            if p.status == PatientStatus.WAITING
        ],
        "bed_status": {
            "total": len(state.beds),
            "occupied": sum(1 for b in state.beds if b.is_occupied),
        },
        "critical_inventory": [
            f"{i.item_name} ({i.current_stock} left)" for i in state.inventory if i.is_low_stock
        ],
        "doctors_available": [
            {
                "name": s.name,
                "role": s.role.value,
                "fatigue": f"{s.current_fatigue_score}%",
                "status": (
                    "High Fatigue" if s.current_fatigue_score > fatigue_threshold else "Available"
                ),
            }
            for s in state.staff
            if s.role in (StaffRole.DOCTOR, StaffRole.SPECIALIST)
        ],
        "recent_appointments": [a.to_record() for a in state.appointments[-3:]],
    }


class ChatSession:
    """Multi-turn chat bound to a store.

    Attributes:
        history: Turns so far as ``{"role", "text"}`` dicts, oldest first.
    """

    def __init__(self, dispatcher: AdvisoryDispatcher, store: HospitalStore):
        self.dispatcher = dispatcher
        self.store = store
        self.history: List[Dict[str, Any]] = []

    def send(self, text: str) -> str:
        """Send one operator message and return the assistant's reply."""
        context = build_chat_context(self.store.state, self.store.config.fatigue_risk_threshold)
        message = {"role": "user", "text": text}
        reply = self.dispatcher.chat(list(self.history), message, context)
        self.history.append(message)

        if reply.tool_call is not None:
            tool_result = self.run_tool(reply.tool_call)
            self.history.append({
                "role": "model",
                "text": reply.text,
                "tool_call": {"name": reply.tool_call.name, "args": reply.tool_call.arguments},
            })
            tool_message = {"role": "tool", "name": reply.tool_call.name, "text": tool_result}
            context = build_chat_context(self.store.state, self.store.config.fatigue_risk_threshold)
            reply = self.dispatcher.chat(list(self.history), tool_message, context)
            self.history.append(tool_message)

        self.history.append({"role": "model", "text": reply.text})
        return reply.text

    def run_tool(self, call: ToolCall) -> str:
        """Execute a tool call and describe the outcome for the model."""
        if call.name != BOOK_APPOINTMENT:
            logger.warning(f"Chat requested unknown tool '{call.name}'")
            return f"Error: Unknown tool '{call.name}'."
        return self.book_appointment(call.arguments)

    def book_appointment(self, args: Mapping[str, Any]) -> str:
        missing = [f for f in BOOKING_FIELDS[:3] if not args.get(f)]
        if missing:
            return f"Error: Missing {', '.join(missing)}."

        doctor, patient, time = str(args["doctorName"]), str(args["patientName"]), str(args["time"])
        logger.info(f"Executing tool {BOOK_APPOINTMENT}: {patient} with {doctor} at {time}")
        self.store.add_appointment(doctor, patient, time, str(args.get("reason") or ""))
        return f"Success: Appointment booked for {patient} with {doctor} at {time}."
