"""Escalation when automatic bed allocation finds nothing suitable.

The allocation engine only places a patient in a bed that meets their
acuity. When none is free the store keeps the patient Waiting and raises an
alert; this module then asks the advisory layer where the patient could go
among the beds that are still free.
"""

import logging
from typing import Optional, Tuple

from wardflow.advisory.dispatcher import AdvisoryDispatcher
from wardflow.allocation.engine import available_beds
from wardflow.state.store import HospitalStore

logger = logging.getLogger(__name__)


def allocate_or_advise(
    store: HospitalStore, dispatcher: AdvisoryDispatcher, patient_id: str
) -> Tuple[Optional[str], Optional[str]]:
    """Auto-allocate a patient, asking for advice when no bed fits.

    Args:
        store: Store the patient is registered in.
        dispatcher: Advisory dispatcher used for the bed suggestion.
        patient_id: Patient to place.

    Returns:
        ``(bed_id, None)`` when the patient was admitted, ``(None, advice)``
        when no suitable bed was free, and ``(None, None)`` for an unknown
        patient.
    """
    bed_id = store.auto_allocate(patient_id)
    if bed_id is not None:
        return bed_id, None

    patient = store.state.patient(patient_id)
    if patient is None:
        return None, None

    free = [b.id for b in available_beds(store.state.beds)]
    logger.info(f"No suitable bed for {patient_id}; requesting placement advice "
                f"({len(free)} beds free)")
    advice = dispatcher.suggest_bed_allocation(
        patient.name or patient.id, int(patient.acuity_score), free
    )
    return None, advice
