"""Inventory layer: procedure consumption and reorder rules."""

from wardflow.inventory.consumption import (
    apply_procedure_consumption,
    base_usage,
    classify_reorder_need,
    low_stock_items,
    reorder_suggestions,
)

__all__ = [
    "apply_procedure_consumption",
    "base_usage",
    "classify_reorder_need",
    "low_stock_items",
    "reorder_suggestions",
]
