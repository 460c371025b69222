"""Initial state for offline demo mode.

When the persistence backend is connected this snapshot is replaced by
``HospitalStore.fetch_latest()``.
"""

from wardflow.allocation.bed_ids import format_bed_id
from wardflow.analytics.fatigue import compute_fatigue_score
from wardflow.core.entities import InventoryCategory, StaffRole
from wardflow.core.models import Bed, InventoryItem, Staff
from wardflow.state.snapshot import HospitalState

# (last bed number in ward, ward, skill level), beds numbered from 1
DEMO_WARD_LAYOUT = [
    (4, "ICU", 9),
    (10, "Trauma", 6),
    (20, "General", 3),
]


def _demo_beds() -> list:
    beds = []
    number = 1
    for last, ward, skill in DEMO_WARD_LAYOUT:
        while number <= last:
            beds.append(Bed(id=format_bed_id(number), ward=ward, required_skill_level=skill))
            number += 1
    return beds


def _demo_staff() -> list:
    roster = [
        ("S-001", "Dr. Peter Parker", StaffRole.DOCTOR, 9, 12, 4),
        ("S-002", "Nurse Joy", StaffRole.NURSE, 7, 12, 8),
        ("S-003", "Dr. Stephen Strange", StaffRole.SPECIALIST, 10, 10, 2),
        ("S-004", "Dr. House", StaffRole.DOCTOR, 10, 12, 14),  # past shift length
    ]
    return [
        Staff(
            id=staff_id,
            name=name,
            role=role,
            skill_level=skill,
            current_fatigue_score=compute_fatigue_score(worked, max_hours),
            max_hours_shift=max_hours,
            current_hours_worked=worked,
        )
        for staff_id, name, role, skill, max_hours, worked in roster
    ]


def _demo_inventory() -> list:
    return [
        InventoryItem("INV-1", "Morphine 5mg", InventoryCategory.PHARMA, 50, 10, 1),
        InventoryItem("INV-2", "Surgical Kit (Trauma)", InventoryCategory.SURGICAL, 8, 5, 1),
        InventoryItem("INV-3", "Saline IV 1L", InventoryCategory.CONSUMABLE, 120, 20, 2),
        InventoryItem("INV-4", "O Negative Blood", InventoryCategory.CONSUMABLE, 3, 5, 1),
    ]


def generate_initial_state() -> HospitalState:
    """Demo snapshot: 20 beds across ICU/Trauma/General, 4 staff, 4 stock items."""
    return HospitalState(
        beds=tuple(_demo_beds()),
        staff=tuple(_demo_staff()),
        inventory=tuple(_demo_inventory()),
        alerts=("System Online. Default bed configuration loaded.",),
    )
