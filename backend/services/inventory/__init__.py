"""
Inventory consumption engine.

catalog + customer attribute -> usage per service -> consolidated deductions
-> either an advisory preview or a committed stock deduction.
"""

from .alerts import AlertLevel, LowStockAlert, classify, classify_sweep, low_stock_sweep
from .errors import InsufficientStock, InvalidQuantity, InventoryError, NotFound, ValidationError
from .impact import ImpactSummary, aggregate_usage, consolidate, preview_impact, summarize_impact
from .stock import DeductionResult, LowStockProduct, apply_deductions, apply_service_deductions
from .usage import UsageDeduction, calculate_service_usage

__all__ = [
    "AlertLevel",
    "DeductionResult",
    "ImpactSummary",
    "InsufficientStock",
    "InvalidQuantity",
    "InventoryError",
    "LowStockAlert",
    "LowStockProduct",
    "NotFound",
    "UsageDeduction",
    "ValidationError",
    "aggregate_usage",
    "apply_deductions",
    "apply_service_deductions",
    "calculate_service_usage",
    "classify",
    "classify_sweep",
    "consolidate",
    "low_stock_sweep",
    "preview_impact",
    "summarize_impact",
]
