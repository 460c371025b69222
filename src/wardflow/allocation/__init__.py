"""Allocation layer: acuity-to-skill bed matching and bed identifiers."""

from wardflow.allocation.engine import (
    allocate_bed,
    available_beds,
    classify_bed_match,
    min_skill_for_acuity,
    procedure_type_for,
    suitable_beds,
    toggle_reservation,
    triage_queue,
)
from wardflow.allocation.bed_ids import generate_new_bed_id, parse_bed_number

__all__ = [
    "allocate_bed",
    "available_beds",
    "classify_bed_match",
    "min_skill_for_acuity",
    "procedure_type_for",
    "suitable_beds",
    "toggle_reservation",
    "triage_queue",
    "generate_new_bed_id",
    "parse_bed_number",
]
