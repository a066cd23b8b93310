"""
AgroGHG: Agricultural GHG Emissions Engine
==========================================

Deterministic Tier 1 calculations for Brazilian agricultural emission
sources (GHG Protocol Brasil 2025.0.1, IPCC AR4 GWP-100).

    >>> from agroghg import calculate_emissions
    >>> calculate_emissions("Aplicação de Ureia", {"urea_amount": 10}).total_co2e
    Decimal('7.330')
"""

from ._version import __version__

from agroghg.catalog import EmissionFactorCatalog, default_catalog, load_catalog, resolve_factor
from agroghg.calculation import (
    EmissionCalculator,
    EmissionResult,
    Subcategory,
    calculate_emissions,
)
from agroghg.models import ActivityData, EmissionFactor

__all__ = [
    "__version__",
    "ActivityData",
    "EmissionFactor",
    "EmissionFactorCatalog",
    "default_catalog",
    "load_catalog",
    "resolve_factor",
    "EmissionCalculator",
    "EmissionResult",
    "Subcategory",
    "calculate_emissions",
]
