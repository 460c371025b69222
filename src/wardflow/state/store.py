"""Hospital state store.

Owns the current ``HospitalState`` and is the only place it changes.
Every mutation is an intent handled by one method, reachable directly or
through ``dispatch()``.

Sync policy:
- Connected: write to the backend and let the change feed bring the
  change back. Creates whose id the backend generates (appointments) apply
  the confirmed record immediately; the later INSERT push is a no-op.
- Disconnected, or the write fails: apply the change locally.
- Appointment updates apply locally first and then sync; a failed sync is
  logged only.

The store is single threaded and holds no locks. Two near simultaneous
allocations from different clients can both land on the same bed.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from wardflow.allocation.bed_ids import generate_new_bed_id
from wardflow.allocation.engine import allocate_bed, procedure_type_for, toggle_reservation
from wardflow.analytics.fatigue import compute_fatigue_score
from wardflow.core.config import DEFAULT_CONFIG, OperationsConfig
from wardflow.core.entities import AppointmentStatus, ChangeKind, PatientStatus
from wardflow.core.models import (
    Appointment,
    Bed,
    InventoryItem,
    MedicalEvent,
    Patient,
    RecordValidationError,
    Staff,
    to_plain,
)
from wardflow.inventory.consumption import apply_procedure_consumption
from wardflow.state import intents
from wardflow.state.persistence import ChangeEvent, PersistenceBackend, PersistenceError
from wardflow.state.realtime import apply_change
from wardflow.state.seed import generate_initial_state
from wardflow.state.snapshot import TABLES, HospitalState, replace_by_id

logger = logging.getLogger(__name__)

StateListener = Callable[[HospitalState], None]

SYNCED_ALERT = "System Online. Synced with Live Database."


class HospitalStore:
    """Single owner of the operational snapshot.

    Attributes:
        backend: Persistence collaborator, or None for offline demo mode.
        config: Operating rules passed to the core calculations.
        rng: Random generator used for stock consumption draws.
    """

    def __init__(
        self,
        backend: Optional[PersistenceBackend] = None,
        config: OperationsConfig = DEFAULT_CONFIG,
        rng: Optional[np.random.Generator] = None,
        state: Optional[HospitalState] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.backend = backend
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng()
        self._clock = clock
        self._state = state if state is not None else generate_initial_state()
        self._connected = False
        self._listeners: List[StateListener] = []
        self._unsubscribers: List[Callable[[], None]] = []

        self._handlers: Dict[type, Callable[[Any], Any]] = {
            intents.AdmitPatient: lambda i: self.admit_patient(i.patient_id, i.bed_id),
            intents.AutoAllocate: lambda i: self.auto_allocate(i.patient_id),
            intents.AddPatient: lambda i: self.add_patient(i.patient),
            intents.AdmitSurge: lambda i: self.admit_surge(i.patients, i.title, i.description),
            intents.DischargePatient: lambda i: self.discharge_patient(i.patient_id),
            intents.AddBed: lambda i: self.add_bed(i.ward, i.skill_level),
            intents.ToggleBedReservation: lambda i: self.toggle_bed_reservation(i.bed_id),
            intents.AssignStaff: lambda i: self.assign_staff(i.patient_id, i.staff_id),
            intents.TreatPatient: lambda i: self.treat_patient(
                i.patient_id, i.treatment, i.notes, i.detailed_condition
            ),
            intents.AddStaff: lambda i: self.add_staff(i.staff),
            intents.UpdateStaff: lambda i: self.update_staff(i.staff),
            intents.UpdateStaffHours: lambda i: self.update_staff_hours(
                i.staff_id, i.current_hours, i.max_hours
            ),
            intents.OverrideFatigue: lambda i: self.override_fatigue(i.staff_id, i.score),
            intents.AddInventoryItem: lambda i: self.add_inventory_item(i.item),
            intents.UpdateInventoryItem: lambda i: self.update_inventory_item(i.item),
            intents.AddAppointment: lambda i: self.add_appointment(
                i.doctor_name, i.patient_name, i.time, i.reason
            ),
            intents.UpdateAppointment: lambda i: self.update_appointment(i.appointment),
            intents.ToggleAppointmentStatus: lambda i: self.toggle_appointment_status(
                i.appointment_id
            ),
        }

    # ------------------------------------------------------------------
    # Snapshot access and listeners
    # ------------------------------------------------------------------

    @property
    def state(self) -> HospitalState:
        """Current snapshot. Never mutated; replaced on every change."""
        return self._state

    @property
    def connected(self) -> bool:
        """True while the backend is reachable and the feeds are subscribed."""
        return self._connected and self.backend is not None and self.backend.is_available()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback run with each new snapshot.

        Returns:
            Callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: HospitalState) -> None:
        if new_state is self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as e:
                logger.warning(f"State listener error: {e}")

    def _commit_record(self, table: str, record) -> None:
        """Replace (or append) one record locally."""
        collection = self._state.collection(table)
        if any(r.id == record.id for r in collection):
            collection = replace_by_id(collection, record)
        else:
            collection = collection + (record,)
        self._commit(self._state.with_collection(table, collection))

    def raise_alert(self, message: str) -> None:
        logger.info(f"Alert: {message}")
        self._commit(self._state.with_alert(message))

    def timestamp_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> bool:
        """Load every table from the backend and subscribe to its feeds.

        Returns:
            True when connected. False leaves the store in offline demo
            mode with its current snapshot.
        """
        if self.backend is None or not self.backend.is_available():
            logger.warning("Persistence backend not configured; running in offline demo mode")
            return False

        try:
            self.fetch_latest()
        except PersistenceError as e:
            logger.error(f"Initial fetch failed, staying in offline demo mode: {e}")
            return False

        for table in TABLES:
            self._unsubscribers.append(self.backend.subscribe(table, self._on_change))
        self._connected = True
        logger.info(f"Connected to persistence backend ({len(TABLES)} tables subscribed)")
        return True

    def disconnect(self) -> None:
        """Drop feed subscriptions. The snapshot is kept."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._connected = False
        logger.info("Disconnected from persistence backend")

    def fetch_latest(self) -> HospitalState:
        """Replace the snapshot with the backend's full contents.

        Records that fail validation are skipped and logged.

        Raises:
            PersistenceError: If any table cannot be fetched.
        """
        if self.backend is None:
            raise PersistenceError("No persistence backend configured")

        loaded = {}
        for table, (_, record_type) in TABLES.items():
            records = []
            for row in self.backend.fetch_all(table):
                try:
                    records.append(record_type.from_record(row))
                except RecordValidationError as e:
                    logger.warning(f"Skipped invalid '{table}' record {row.get('id')!r}: {e}")
            loaded[table] = tuple(records)

        new_state = HospitalState(
            patients=loaded["patients"],
            beds=loaded["beds"],
            staff=loaded["staff"],
            inventory=loaded["inventory"],
            appointments=loaded["appointments"],
            alerts=(SYNCED_ALERT,),
        )
        self._commit(new_state)
        return new_state

    def _on_change(self, event: ChangeEvent) -> None:
        self._commit(apply_change(self._state, event))

    def _persist(self, action: str, *writes: Callable[[], Any]) -> bool:
        """Run backend writes in order.

        Returns:
            True if every write succeeded. False when offline or on the
            first failure, in which case the caller applies locally.
        """
        if not self.connected:
            return False
        try:
            for write in writes:
                write()
        except PersistenceError as e:
            logger.error(f"Persisting {action} failed, applying locally: {e}")
            return False
        return True

    # Writes are built before _persist checks the connection, so the backend
    # is looked up only when a write runs. It may be None offline.
    def _write_update(self, table: str, record_id: str, changes: dict) -> Callable[[], Any]:
        payload = to_plain(changes)
        return lambda: self.backend.update(table, record_id, payload)

    def _write_insert(self, table: str, record) -> Callable[[], Any]:
        payload = record.to_record()
        return lambda: self.backend.insert(table, payload)

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def dispatch(self, intent: Any) -> Any:
        """Apply any intent from ``wardflow.state.intents``.

        Raises:
            TypeError: If the intent type is unknown.
        """
        handler = self._handlers.get(type(intent))
        if handler is None:
            raise TypeError(f"Unknown intent: {type(intent).__name__}")
        logger.debug(f"Dispatching {type(intent).__name__}")
        return handler(intent)

    # Patients and beds

    def admit_patient(self, patient_id: str, bed_id: str) -> bool:
        """Admit a patient into a bed and draw down stock for the procedure.

        A bed already held by another patient is refused. A reserved bed is
        accepted with a warning. A patient moving beds releases the old one.

        Returns:
            True if the admission was applied or persisted.
        """
        patient = self._state.patient(patient_id)
        bed = self._state.bed(bed_id)
        if patient is None or bed is None:
            logger.warning(f"Admit ignored: unknown patient {patient_id} or bed {bed_id}")
            return False
        if patient.status == PatientStatus.DISCHARGED:
            logger.warning(f"Admit ignored: patient {patient_id} is already discharged")
            return False
        if bed.is_occupied and bed.assigned_patient_id != patient_id:
            logger.warning(
                f"Admit refused: bed {bed_id} is occupied by {bed.assigned_patient_id}"
            )
            return False
        if bed.is_reserved:
            logger.warning(f"Admitting {patient_id} into reserved bed {bed_id}")

        admitted = Patient.from_record(
            {**patient.to_record(), "status": PatientStatus.ADMITTED.value, "assigned_bed_id": bed_id}
        )
        occupied = Bed.from_record(
            {**bed.to_record(), "is_occupied": True, "assigned_patient_id": patient_id}
        )

        released = None
        previous_id = patient.assigned_bed_id
        if previous_id and previous_id != bed_id:
            previous = self._state.bed(previous_id)
            if previous is not None:
                released = Bed.from_record(
                    {**previous.to_record(), "is_occupied": False, "assigned_patient_id": None}
                )

        procedure = procedure_type_for(patient)
        consumed = apply_procedure_consumption(
            self._state.inventory, procedure, self.rng, self.config
        )
        changed_items = [
            new for old, new in zip(self._state.inventory, consumed)
            if new.current_stock != old.current_stock
        ]
        logger.info(
            f"Admitting {patient_id} to {bed_id} ({procedure.value}, "
            f"{len(changed_items)} stock items drawn down)"
        )

        writes = [
            self._write_update("patients", patient_id,
                               {"status": admitted.status, "assigned_bed_id": bed_id}),
            self._write_update("beds", bed_id,
                               {"is_occupied": True, "assigned_patient_id": patient_id}),
        ]
        if released is not None:
            writes.append(self._write_update(
                "beds", released.id, {"is_occupied": False, "assigned_patient_id": None}
            ))
        writes.extend(
            self._write_update("inventory", item.id, {"current_stock": item.current_stock})
            for item in changed_items
        )

        if not self._persist(f"admission of {patient_id}", *writes):
            state = self._state
            beds = replace_by_id(state.beds, occupied)
            if released is not None:
                beds = replace_by_id(beds, released)
            state = state.with_collection("patients", replace_by_id(state.patients, admitted))
            state = state.with_collection("beds", beds)
            state = state.with_collection("inventory", consumed)
            self._commit(state)
        return True

    def auto_allocate(self, patient_id: str) -> Optional[str]:
        """Admit a patient into the bed chosen by the allocation engine.

        Returns:
            Bed id used, or None when no bed is suitable. In that case the
            patient stays Waiting and an alert is raised for escalation.
        """
        patient = self._state.patient(patient_id)
        if patient is None:
            logger.warning(f"Auto-allocate ignored: unknown patient {patient_id}")
            return None

        bed_id = allocate_bed(patient, self._state.beds, self._state.staff, self.config)
        if bed_id is None:
            self.raise_alert(
                f"No suitable bed for {patient.name or patient.id} "
                f"(acuity {patient.acuity_score.name.title()}). Patient remains Waiting."
            )
            return None
        if not self.admit_patient(patient_id, bed_id):
            return None
        return bed_id

    def add_patient(self, patient: Patient) -> bool:
        if self._state.patient(patient.id) is not None:
            logger.warning(f"Add ignored: patient {patient.id} already exists")
            return False
        if not self._persist(f"new patient {patient.id}", self._write_insert("patients", patient)):
            self._commit_record("patients", patient)
        return True

    def admit_surge(
        self, patients: Sequence[Patient], title: str = "", description: str = ""
    ) -> List[Patient]:
        """Register mass-casualty patients as Waiting with surge ids.

        Returns:
            The registered patients, ids ``SURGE-<ms>-<index>``.
        """
        stamp = self.timestamp_ms()
        registered = [
            Patient.from_record({
                **p.to_record(),
                "id": f"SURGE-{stamp}-{idx}",
                "status": PatientStatus.WAITING.value,
                "assigned_bed_id": None,
            })
            for idx, p in enumerate(patients)
        ]

        writes = [self._write_insert("patients", p) for p in registered]
        if not self._persist(f"surge of {len(registered)} patients", *writes):
            collection = self._state.patients + tuple(
                p for p in registered if self._state.patient(p.id) is None
            )
            self._commit(self._state.with_collection("patients", collection))

        headline = f"MCI ALERT: {title}" if title else "MCI ALERT"
        if description:
            headline = f"{headline} - {description}"
        self.raise_alert(f"{headline} ({len(registered)} incoming)")
        return registered

    def discharge_patient(self, patient_id: str) -> bool:
        """Discharge a patient and free their bed."""
        patient = self._state.patient(patient_id)
        if patient is None:
            logger.warning(f"Discharge ignored: unknown patient {patient_id}")
            return False

        discharged = Patient.from_record(
            {**patient.to_record(), "status": PatientStatus.DISCHARGED.value, "assigned_bed_id": None}
        )
        bed = self._state.bed(patient.assigned_bed_id) if patient.assigned_bed_id else None

        writes = [self._write_update(
            "patients", patient_id, {"status": discharged.status, "assigned_bed_id": None}
        )]
        if bed is not None:
            writes.append(self._write_update(
                "beds", bed.id, {"is_occupied": False, "assigned_patient_id": None}
            ))

        if not self._persist(f"discharge of {patient_id}", *writes):
            state = self._state.with_collection(
                "patients", replace_by_id(self._state.patients, discharged)
            )
            if bed is not None:
                freed = Bed.from_record(
                    {**bed.to_record(), "is_occupied": False, "assigned_patient_id": None}
                )
                state = state.with_collection("beds", replace_by_id(state.beds, freed))
            self._commit(state)
        return True

    def add_bed(self, ward: str, skill_level: int) -> Bed:
        """Add a bed with the next ``BED-NN`` id.

        Raises:
            RecordValidationError: If the skill level is outside 1-10.
        """
        bed = Bed(id=generate_new_bed_id(self._state.beds), ward=ward,
                  required_skill_level=int(skill_level))
        if not self._persist(f"new bed {bed.id}", self._write_insert("beds", bed)):
            self._commit_record("beds", bed)
        return bed

    def toggle_bed_reservation(self, bed_id: str) -> Optional[bool]:
        """Flip a bed's reservation.

        Returns:
            New reserved flag, or None if the bed is unknown.
        """
        bed = self._state.bed(bed_id)
        if bed is None:
            logger.warning(f"Reservation toggle ignored: unknown bed {bed_id}")
            return None
        toggled = toggle_reservation(bed)
        write = self._write_update("beds", bed_id, {"is_reserved": toggled.is_reserved})
        if not self._persist(f"reservation of {bed_id}", write):
            self._commit_record("beds", toggled)
        return toggled.is_reserved

    def assign_staff(self, patient_id: str, staff_id: Optional[str]) -> bool:
        patient = self._state.patient(patient_id)
        if patient is None:
            logger.warning(f"Staff assignment ignored: unknown patient {patient_id}")
            return False
        if staff_id is not None and self._state.staff_member(staff_id) is None:
            logger.warning(f"Staff assignment ignored: unknown staff {staff_id}")
            return False

        updated = Patient.from_record({**patient.to_record(), "assigned_staff_id": staff_id})
        write = self._write_update("patients", patient_id, {"assigned_staff_id": staff_id})
        if not self._persist(f"staff assignment for {patient_id}", write):
            self._commit_record("patients", updated)
        return True

    def treat_patient(
        self,
        patient_id: str,
        treatment: str,
        notes: str = "",
        detailed_condition: Optional[str] = None,
    ) -> bool:
        """Prepend a treatment event to the patient's history."""
        patient = self._state.patient(patient_id)
        if patient is None:
            logger.warning(f"Treatment ignored: unknown patient {patient_id}")
            return False

        event = MedicalEvent(
            date=self._clock().strftime("%Y-%m-%d"),
            condition=patient.condition,
            treatment=treatment,
            notes=notes,
        )
        changes: Dict[str, Any] = {"history": (event,) + patient.history}
        if detailed_condition:
            changes["detailed_condition"] = detailed_condition

        updated = Patient.from_record({**patient.to_record(), **to_plain(changes)})
        write = self._write_update("patients", patient_id, changes)
        if not self._persist(f"treatment of {patient_id}", write):
            self._commit_record("patients", updated)
        return True

    # Staff

    def _with_derived_fatigue(self, staff: Staff) -> Staff:
        if staff.fatigue_overridden:
            return staff
        score = compute_fatigue_score(staff.current_hours_worked, staff.max_hours_shift, self.config)
        return Staff.from_record({**staff.to_record(), "current_fatigue_score": score})

    def add_staff(self, staff: Staff) -> bool:
        if self._state.staff_member(staff.id) is not None:
            logger.warning(f"Add ignored: staff {staff.id} already exists")
            return False
        staff = self._with_derived_fatigue(staff)
        if not self._persist(f"new staff {staff.id}", self._write_insert("staff", staff)):
            self._commit_record("staff", staff)
        return True

    def update_staff(self, staff: Staff) -> bool:
        """Replace a staff record. Fatigue is re-derived unless overridden."""
        if self._state.staff_member(staff.id) is None:
            logger.warning(f"Update ignored: unknown staff {staff.id}")
            return False
        staff = self._with_derived_fatigue(staff)
        record = staff.to_record()
        record.pop("id")
        if not self._persist(f"staff {staff.id}", self._write_update("staff", staff.id, record)):
            self._commit_record("staff", staff)
        return True

    def update_staff_hours(
        self, staff_id: str, current_hours: float, max_hours: Optional[float] = None
    ) -> Optional[Staff]:
        """Set hours worked (and optionally shift length).

        Returns:
            Updated staff record, or None if the id is unknown.
        """
        staff = self._state.staff_member(staff_id)
        if staff is None:
            logger.warning(f"Hours update ignored: unknown staff {staff_id}")
            return None
        changes = {"current_hours_worked": max(0.0, float(current_hours))}
        if max_hours is not None:
            changes["max_hours_shift"] = max(0.0, float(max_hours))
        updated = self._with_derived_fatigue(Staff.from_record({**staff.to_record(), **changes}))
        self.update_staff(updated)
        return updated

    def override_fatigue(self, staff_id: str, score: Optional[int]) -> Optional[Staff]:
        """Set fatigue by hand, or clear the override with ``score=None``.

        Returns:
            Updated staff record, or None if the id is unknown.

        Raises:
            RecordValidationError: If the score is outside 0-100.
        """
        staff = self._state.staff_member(staff_id)
        if staff is None:
            logger.warning(f"Fatigue override ignored: unknown staff {staff_id}")
            return None
        if score is None:
            updated = Staff.from_record({**staff.to_record(), "fatigue_overridden": False})
        else:
            if not 0 <= int(score) <= 100:
                raise RecordValidationError(f"Fatigue override must be 0-100, got {score}")
            updated = Staff.from_record({
                **staff.to_record(),
                "current_fatigue_score": int(score),
                "fatigue_overridden": True,
            })
        updated = self._with_derived_fatigue(updated)
        self.update_staff(updated)
        return updated

    # Inventory

    def add_inventory_item(self, item: InventoryItem) -> bool:
        if self._state.inventory_item(item.id) is not None:
            logger.warning(f"Add ignored: inventory item {item.id} already exists")
            return False
        if not self._persist(f"new item {item.id}", self._write_insert("inventory", item)):
            self._commit_record("inventory", item)
        return True

    def update_inventory_item(self, item: InventoryItem) -> bool:
        if self._state.inventory_item(item.id) is None:
            logger.warning(f"Update ignored: unknown inventory item {item.id}")
            return False
        record = item.to_record()
        record.pop("id")
        if not self._persist(f"item {item.id}", self._write_update("inventory", item.id, record)):
            self._commit_record("inventory", item)
        return True

    # Appointments

    def add_appointment(
        self, doctor_name: str, patient_name: str, time: str, reason: str = ""
    ) -> Appointment:
        """Book an appointment.

        Connected: the backend generates the id and the confirmed record is
        applied at once. Otherwise a local ``APT-<ms>`` id is used.
        """
        draft = {
            "doctor_name": doctor_name,
            "patient_name": patient_name,
            "time": time,
            "reason": reason,
            "status": AppointmentStatus.CONFIRMED.value,
        }

        if self.connected:
            try:
                appointment = Appointment.from_record(self.backend.insert("appointments", draft))
                self._commit(apply_change(
                    self._state,
                    ChangeEvent(ChangeKind.INSERT, appointment.to_record(), "appointments"),
                ))
                return appointment
            except (PersistenceError, RecordValidationError) as e:
                logger.error(f"Booking sync failed, keeping appointment locally: {e}")

        appointment = Appointment.from_record({**draft, "id": f"APT-{self.timestamp_ms()}"})
        self._commit_record("appointments", appointment)
        return appointment

    def update_appointment(self, appointment: Appointment) -> bool:
        """Apply locally first, then sync. A failed sync is logged only."""
        if self._state.appointment(appointment.id) is None:
            logger.warning(f"Update ignored: unknown appointment {appointment.id}")
            return False
        self._commit_record("appointments", appointment)

        if self.connected:
            record = appointment.to_record()
            record.pop("id")
            try:
                self.backend.update("appointments", appointment.id, record)
            except PersistenceError as e:
                logger.error(f"Appointment {appointment.id} sync failed: {e}")
        return True

    def toggle_appointment_status(self, appointment_id: str) -> Optional[AppointmentStatus]:
        """Flip between Confirmed and Cancelled.

        Returns:
            New status, or None if the id is unknown.
        """
        appointment = self._state.appointment(appointment_id)
        if appointment is None:
            logger.warning(f"Status toggle ignored: unknown appointment {appointment_id}")
            return None
        new_status = (
            AppointmentStatus.CANCELLED
            if appointment.status == AppointmentStatus.CONFIRMED
            else AppointmentStatus.CONFIRMED
        )
        self.update_appointment(
            Appointment.from_record({**appointment.to_record(), "status": new_status.value})
        )
        return new_status
