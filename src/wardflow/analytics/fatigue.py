"""Staff fatigue scoring and risk flags.

Fatigue is derived from hours worked relative to shift length, with an
extra linear penalty for each hour beyond the overtime threshold to model
accelerating cognitive decline late in a shift.
"""

import math
from typing import Iterable, List

from wardflow.core.config import DEFAULT_CONFIG, OperationsConfig
from wardflow.core.entities import StaffRole
from wardflow.core.models import Staff


def compute_fatigue_score(
    current_hours: float,
    max_hours: float,
    config: OperationsConfig = DEFAULT_CONFIG,
) -> int:
    """Auto-derived fatigue score for a shift.

    Args:
        current_hours: Hours worked so far this shift.
        max_hours: Contracted shift length in hours.
        config: Operating rules (overtime threshold and penalty).

    Returns:
        Integer 0-100, rounded half up. 0 when ``max_hours`` is not positive.

    Examples:
        >>> compute_fatigue_score(4, 12)
        33
        >>> compute_fatigue_score(10, 12)
        93
    """
    if max_hours <= 0:
        return 0

    fatigue = (current_hours / max_hours) * 100
    if current_hours > config.overtime_threshold_hours:
        fatigue += (current_hours - config.overtime_threshold_hours) * config.overtime_penalty_per_hour

    fatigue = max(0.0, min(100.0, fatigue))
    return int(math.floor(fatigue + 0.5))


def is_at_risk(staff: Staff, config: OperationsConfig = DEFAULT_CONFIG) -> bool:
    """True if fatigued beyond threshold or working past shift length.

    Overtime is checked separately because a manual override may have set
    the fatigue score lower than the hours justify.
    """
    return (
        staff.current_fatigue_score > config.fatigue_risk_threshold
        or staff.current_hours_worked > staff.max_hours_shift
    )


def identify_at_risk_staff(
    staff: Iterable[Staff], config: OperationsConfig = DEFAULT_CONFIG
) -> List[Staff]:
    """Staff members currently at risk. Order is not significant."""
    return [s for s in staff if is_at_risk(s, config)]


def available_clinicians(
    staff: Iterable[Staff], config: OperationsConfig = DEFAULT_CONFIG
) -> List[Staff]:
    """Doctors and specialists not above the fatigue threshold."""
    return [
        s for s in staff
        if s.role in (StaffRole.DOCTOR, StaffRole.SPECIALIST)
        and s.current_fatigue_score <= config.fatigue_risk_threshold
    ]
