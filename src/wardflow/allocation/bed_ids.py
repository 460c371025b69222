"""Bed identifier scheme.

New bed ids look like ``BED-07``: a fixed tag and a numeric suffix
zero-padded to two digits. Beds imported from elsewhere may carry other
ward tags (``ICU-15``); their suffixes still count, so new ids never collide
with any ``<letters>-<number>`` id on the floor. New ids are always max
existing suffix + 1, so ids are never reused even after beds disappear from
the middle of the range.
"""

import re
from typing import Iterable, Optional

from wardflow.core.models import Bed

BED_ID_PREFIX = "BED"
BED_ID_PATTERN = re.compile(r"^[A-Za-z]+-(\d+)$")


def parse_bed_number(bed_id: str) -> Optional[int]:
    """Numeric suffix of a bed id, or None if the id doesn't follow the scheme."""
    match = BED_ID_PATTERN.match(bed_id.strip())
    if match is None:
        return None
    return int(match.group(1))


def format_bed_id(number: int) -> str:
    """Format a bed number as an id (at least two digits)."""
    return f"{BED_ID_PREFIX}-{number:02d}"


def generate_new_bed_id(beds: Iterable[Bed]) -> str:
    """Next free bed id.

    Ids that don't parse are ignored rather than blocking generation.

    Args:
        beds: Existing beds (or anything with an ``id`` attribute).

    Returns:
        New bed id, e.g. ``BED-10`` after ``BED-01, BED-02, BED-09`` and
        ``BED-16`` after ``BED-01, ICU-15``.
    """
    numbers = [n for n in (parse_bed_number(b.id) for b in beds) if n is not None]
    return format_bed_id(max(numbers, default=0) + 1)
