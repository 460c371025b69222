"""
Bed Allocation Engine.

Rule-based matching of patients to beds:
- Acuity maps to a minimum bed skill level (Low 1, Medium 4, High 7, Critical 9)
- Only beds that are neither occupied nor reserved are candidates
- Among sufficient beds the LOWEST skill level wins, so high-capability
  beds (ICU) are kept for the patients who need them

Everything here is pure: functions return ids or new values and never
mutate the beds or patients they are given. The state layer applies the
result.
"""

from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from wardflow.core.config import DEFAULT_CONFIG, OperationsConfig
from wardflow.core.entities import AcuityLevel, BedMatch, PatientStatus, ProcedureType
from wardflow.core.models import Bed, Patient, Staff


def min_skill_for_acuity(
    acuity: AcuityLevel, config: OperationsConfig = DEFAULT_CONFIG
) -> int:
    """Minimum bed skill level a patient of this acuity requires.

    Args:
        acuity: Patient acuity level.
        config: Operating rules (skill thresholds).

    Returns:
        Required skill level (1-10).
    """
    return config.min_skill_for(AcuityLevel(acuity))


def available_beds(beds: Iterable[Bed]) -> List[Bed]:
    """Beds that are neither occupied nor reserved, in original order."""
    return [b for b in beds if b.is_available]


def suitable_beds(
    patient: Patient,
    beds: Iterable[Bed],
    config: OperationsConfig = DEFAULT_CONFIG,
) -> List[Bed]:
    """Available beds whose skill level meets the patient's acuity."""
    min_skill = min_skill_for_acuity(patient.acuity_score, config)
    return [b for b in available_beds(beds) if b.required_skill_level >= min_skill]


def allocate_bed(
    patient: Patient,
    beds: Sequence[Bed],
    staff: Sequence[Staff] = (),
    config: OperationsConfig = DEFAULT_CONFIG,
) -> Optional[str]:
    """Choose the best available bed for a patient.

    Args:
        patient: Patient to place.
        beds: Current bed snapshot.
        staff: Current roster. Accepted so callers can pass the full
            snapshot; it does not influence the choice.
        config: Operating rules.

    Returns:
        Id of the bed with the smallest sufficient skill level (first in
        original order on ties), or None if no bed is suitable. None is a
        valid outcome: the caller keeps the patient Waiting or escalates.
    """
    candidates = suitable_beds(patient, beds, config)
    if not candidates:
        return None

    # min() keeps the first of equal keys, so ties follow original ordering
    best = min(candidates, key=lambda b: b.required_skill_level)
    return best.id


def classify_bed_match(
    bed: Bed,
    patient: Optional[Patient] = None,
    config: OperationsConfig = DEFAULT_CONFIG,
) -> BedMatch:
    """Classify how well a bed suits the patient under consideration.

    Display only. Occupied takes precedence over reserved.

    Args:
        bed: Bed to classify.
        patient: Patient being placed, or None when nobody is selected.
        config: Operating rules (skill thresholds, optimal band).

    Returns:
        BedMatch classification.
    """
    if bed.is_occupied:
        return BedMatch.OCCUPIED
    if bed.is_reserved:
        return BedMatch.RESERVED
    if patient is None:
        return BedMatch.AVAILABLE

    required = min_skill_for_acuity(patient.acuity_score, config)
    if bed.required_skill_level < required:
        return BedMatch.INCOMPATIBLE

    surplus = bed.required_skill_level - required
    if 0 <= surplus <= config.optimal_skill_band:
        return BedMatch.OPTIMAL
    return BedMatch.SUBOPTIMAL


def toggle_reservation(bed: Bed) -> Bed:
    """Flip a bed's reserved flag. No constraint checking."""
    return replace(bed, is_reserved=not bed.is_reserved)


def procedure_type_for(patient: Patient) -> ProcedureType:
    """Procedure implied by admitting this patient.

    High and Critical admissions are treated as surgical cases for
    stock consumption; everything else is routine.
    """
    if patient.acuity_score >= AcuityLevel.HIGH:
        return ProcedureType.SURGERY
    return ProcedureType.ROUTINE


def triage_queue(patients: Iterable[Patient]) -> List[Patient]:
    """Order patients for the triage board.

    Waiting patients come first, then higher acuity before lower.
    Python's sort is stable so equal keys keep their original order.
    """
    return sorted(
        patients,
        key=lambda p: (p.status != PatientStatus.WAITING, -int(p.acuity_score)),
    )
