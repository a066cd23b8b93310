"""
AgroGHG Calculation Engine

Deterministic agricultural emission calculations:
- Subcategory dispatch with alias normalization
- Activity validation (missing fields never default to zero)
- Per-branch raw gas formulas, biogenic split, AR4 GWP weighting
- SHA-256 provenance, audit trails and batch processing
"""

from agroghg.calculation.subcategories import Subcategory, normalize_subcategory
from agroghg.calculation.validator import validate
from agroghg.calculation.core_calculator import (
    GWP_CH4,
    GWP_N2O,
    EmissionCalculator,
    EmissionResult,
    calculate_emissions,
)
from agroghg.calculation.audit_trail import AuditTrail, AuditTrailGenerator, CalculationStep
from agroghg.calculation.batch_calculator import BatchCalculator, BatchItem, BatchResult

__all__ = [
    "Subcategory",
    "normalize_subcategory",
    "validate",
    "GWP_CH4",
    "GWP_N2O",
    "EmissionCalculator",
    "EmissionResult",
    "calculate_emissions",
    "AuditTrail",
    "AuditTrailGenerator",
    "CalculationStep",
    "BatchCalculator",
    "BatchItem",
    "BatchResult",
]
