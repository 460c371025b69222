"""
wardflow - hospital operations core.

Bed allocation, staff fatigue, inventory consumption and state
reconciliation against a hosted database with a realtime change feed.
"""

__version__ = "0.1.0"

from wardflow.allocation.engine import allocate_bed
from wardflow.state.store import HospitalStore

__all__ = ["HospitalStore", "allocate_bed", "__version__"]
