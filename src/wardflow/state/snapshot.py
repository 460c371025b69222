"""Hospital state snapshot.

One immutable value holds every collection. Each mutation builds a new
snapshot and the store swaps it in whole, so readers never observe a
half-applied change.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple, Type

from wardflow.core.models import Appointment, Bed, InventoryItem, Patient, Staff


# Persistence table name -> (snapshot attribute, record type)
TABLES: Dict[str, Tuple[str, Type]] = {
    "patients": ("patients", Patient),
    "beds": ("beds", Bed),
    "staff": ("staff", Staff),
    "inventory": ("inventory", InventoryItem),
    "appointments": ("appointments", Appointment),
}


@dataclass(frozen=True)
class HospitalState:
    """Snapshot of all operational data.

    Attributes:
        patients: All known patients (discharged included).
        beds: Bed inventory.
        staff: Roster.
        inventory: Stock items.
        appointments: Bookings.
        alerts: Operator-facing messages, oldest first.
    """
    patients: Tuple[Patient, ...] = ()
    beds: Tuple[Bed, ...] = ()
    staff: Tuple[Staff, ...] = ()
    inventory: Tuple[InventoryItem, ...] = ()
    appointments: Tuple[Appointment, ...] = ()
    alerts: Tuple[str, ...] = ()

    def collection(self, table: str) -> Tuple[Any, ...]:
        """Records held for a persistence table name."""
        attr, _ = TABLES[table]
        return getattr(self, attr)

    def with_collection(self, table: str, records) -> "HospitalState":
        """New snapshot with one collection replaced."""
        attr, _ = TABLES[table]
        return replace(self, **{attr: tuple(records)})

    def with_alert(self, message: str) -> "HospitalState":
        return replace(self, alerts=self.alerts + (message,))

    def find(self, table: str, record_id: str) -> Optional[Any]:
        """Record with this id in a collection, or None."""
        for record in self.collection(table):
            if record.id == record_id:
                return record
        return None

    def patient(self, patient_id: str) -> Optional[Patient]:
        return self.find("patients", patient_id)

    def bed(self, bed_id: str) -> Optional[Bed]:
        return self.find("beds", bed_id)

    def staff_member(self, staff_id: str) -> Optional[Staff]:
        return self.find("staff", staff_id)

    def inventory_item(self, item_id: str) -> Optional[InventoryItem]:
        return self.find("inventory", item_id)

    def appointment(self, appointment_id: str) -> Optional[Appointment]:
        return self.find("appointments", appointment_id)


def replace_by_id(records, updated) -> tuple:
    """Records with the one sharing ``updated.id`` swapped for ``updated``."""
    return tuple(updated if r.id == updated.id else r for r in records)
