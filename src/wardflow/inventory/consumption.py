"""Stock consumption and reorder rules.

Admitting a patient implies a procedure, and a procedure draws down stock.
Usage per item is scaled by a random multiplier to model real-world
variance, so the magnitude is stochastic while the structure is fixed.
Pass a seeded ``numpy.random.Generator`` for reproducible draws.
"""

import math
from dataclasses import replace
from typing import Iterable, List, Optional

import numpy as np

from wardflow.core.config import DEFAULT_CONFIG, OperationsConfig
from wardflow.core.entities import ProcedureType, Urgency
from wardflow.core.models import InventoryItem, ReorderSuggestion


def base_usage(
    item: InventoryItem,
    procedure_type: ProcedureType,
    config: OperationsConfig = DEFAULT_CONFIG,
) -> float:
    """Expected units of an item used by one procedure (before jitter)."""
    if procedure_type == ProcedureType.SURGERY:
        return item.usage_rate_per_surgery
    return item.usage_rate_per_surgery * config.routine_usage_factor


def apply_procedure_consumption(
    inventory: Iterable[InventoryItem],
    procedure_type: ProcedureType,
    rng: Optional[np.random.Generator] = None,
    config: OperationsConfig = DEFAULT_CONFIG,
) -> List[InventoryItem]:
    """Draw down stock for one procedure.

    For each item: usage = base usage * U[low, high), rounded up to whole
    units, subtracted from stock and clamped at zero.

    Args:
        inventory: Current inventory snapshot.
        procedure_type: Surgery or Routine.
        rng: Random generator. A fresh unseeded generator if None.
        config: Operating rules (routine factor, jitter range).

    Returns:
        New list of items in the same order.
    """
    if rng is None:
        rng = np.random.default_rng()

    low, high = config.usage_jitter
    updated = []
    for item in inventory:
        usage = base_usage(item, procedure_type, config)
        actual_usage = math.ceil(usage * rng.uniform(low, high))
        updated.append(replace(item, current_stock=max(0, item.current_stock - actual_usage)))
    return updated


def classify_reorder_need(
    item: InventoryItem, config: OperationsConfig = DEFAULT_CONFIG
) -> Optional[ReorderSuggestion]:
    """Deterministic restock suggestion for an item.

    Args:
        item: Inventory item.
        config: Operating rules (reorder multiplier).

    Returns:
        None unless stock is at or below the reorder threshold. Otherwise a
        suggestion of threshold * multiplier units, High urgency when stock
        is exhausted and Medium otherwise.
    """
    if item.current_stock > item.reorder_threshold:
        return None

    urgency = Urgency.HIGH if item.current_stock == 0 else Urgency.MEDIUM
    return ReorderSuggestion(
        suggested_qty=item.reorder_threshold * config.reorder_multiplier,
        urgency=urgency,
        reason=(
            f"Stock ({item.current_stock}) at or below safety threshold "
            f"({item.reorder_threshold})."
        ),
        item_name=item.item_name,
    )


def low_stock_items(inventory: Iterable[InventoryItem]) -> List[InventoryItem]:
    """Items at or below their reorder threshold."""
    return [i for i in inventory if i.is_low_stock]


def reorder_suggestions(
    inventory: Iterable[InventoryItem], config: OperationsConfig = DEFAULT_CONFIG
) -> List[ReorderSuggestion]:
    """Suggestions for every item that needs restocking."""
    suggestions = []
    for item in inventory:
        suggestion = classify_reorder_need(item, config)
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions
