# -*- coding: utf-8 -*-
"""
Emission factor model.

One row of the methodology-versioned reference catalog. Factors are immutable
once published: a methodology update adds or supersedes entries, it never
edits one in place.

Units: ``co2_factor``, ``ch4_factor`` and ``n2o_factor`` are kg of gas per
``activity_unit``. For agricultural soils ``n2o_factor`` is kg N2O-N per kg N.

Example:
    >>> factor = EmissionFactor(
    ...     name="Bovinos de Leite - Fermentação Entérica",
    ...     category="Agricultura",
    ...     subcategory="Fermentação Entérica",
    ...     ch4_factor=128,
    ...     activity_unit="cabeças",
    ...     applicable_species=["Bovinos de Leite"],
    ... )
    >>> factor.ch4_factor
    Decimal('128')
"""

from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agroghg.determinism import EmissionDecimal


DEFAULT_SOURCE = "GHG Protocol Brasil 2025.0.1"
DEFAULT_METHODOLOGY = "Tier 1"


class EmissionFactor(BaseModel):
    """Emission factor for one (subcategory, species, system) combination."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Human label")
    category: str = Field(..., min_length=1)
    subcategory: str = Field(..., min_length=1, description="Calculation dispatch key")

    co2_factor: Optional[Decimal] = Field(default=None, ge=0, description="kg CO2 per activity unit")
    ch4_factor: Optional[Decimal] = Field(default=None, ge=0, description="kg CH4 per activity unit")
    n2o_factor: Optional[Decimal] = Field(default=None, ge=0, description="kg N2O per activity unit")

    activity_unit: str = Field(..., min_length=1)
    source: str = DEFAULT_SOURCE
    methodology: str = DEFAULT_METHODOLOGY

    biogenic_fraction: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=1,
        description="Share of the CO2 output that is biogenic",
    )

    applicable_species: Optional[Tuple[str, ...]] = None
    applicable_systems: Optional[Tuple[str, ...]] = None

    reference_conditions: Optional[str] = None
    uncertainty_range: Optional[str] = None

    @field_validator("co2_factor", "ch4_factor", "n2o_factor", mode="before")
    @classmethod
    def _gas_factor_to_decimal(cls, value: Any) -> Any:
        if value is None:
            return None
        try:
            return EmissionDecimal.from_any(value)
        except TypeError as e:
            raise ValueError(str(e)) from e

    @field_validator("biogenic_fraction", mode="before")
    @classmethod
    def _fraction_to_decimal(cls, value: Any) -> Any:
        if value is None:
            return Decimal("0")
        try:
            return EmissionDecimal.from_any(value)
        except TypeError as e:
            raise ValueError(str(e)) from e

    @field_validator("applicable_species", "applicable_systems", mode="after")
    @classmethod
    def _empty_qualifiers_mean_unrestricted(cls, value: Optional[Tuple[str, ...]]):
        if value is not None and len(value) == 0:
            return None
        return value

    @property
    def is_biogenic(self) -> bool:
        """True when any of the factor's CO2 is biogenic."""
        return self.biogenic_fraction > 0

    def details(self) -> Dict[str, Any]:
        """Metadata stored alongside the numeric factors in a backing store."""
        return {
            "subcategory": self.subcategory,
            "methodology": self.methodology,
            "applicable_species": list(self.applicable_species) if self.applicable_species else None,
            "applicable_systems": list(self.applicable_systems) if self.applicable_systems else None,
            "reference_conditions": self.reference_conditions,
            "uncertainty_range": self.uncertainty_range,
        }
