# -*- coding: utf-8 -*-
"""
Agricultural Emission Calculation Engine

- 100% deterministic (same input → same output, same provenance hash)
- Decimal arithmetic, 3-decimal ROUND_HALF_UP reporting
- Fail loudly: unknown subcategory, missing factor or bad activity data
  raise, nothing is ever reported as zero by default

Per-branch raw gases (tonnes):

    Enteric fermentation   CH4 = q × ch4 / 1000
    Manure management      CH4 = q × ch4 / 1000, N2O = q × n2o / 1000
    Rice cultivation       CH4 = q × ch4 / 1000
    Agricultural soils     N2O = q × n2o × 44/28 / 1000
    Residue burning        gas = q × factor × eff / 1000 (eff 0.90 by default)
    Liming, urea           CO2 = q × co2

CO2 is split by the factor's biogenic fraction. Fossil CO2e adds CH4 and N2O
weighted by the fixed IPCC AR4 100-year GWPs (25, 298).
"""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal, DecimalException
from typing import Any, Callable, Dict, List, Optional, Union

from agroghg._version import __version__
from agroghg.calculation.subcategories import (
    QUALIFIER_FIELDS,
    REQUIRED_FIELDS,
    Subcategory,
    normalize_subcategory,
)
from agroghg.calculation.validator import ActivityInput, validate
from agroghg.catalog.catalog import EmissionFactorCatalog, default_catalog, load_catalog
from agroghg.catalog.resolver import FactorResolver
from agroghg.config import AgroGHGConfig, get_config
from agroghg.determinism import EmissionDecimal, content_hash
from agroghg.exceptions import InvalidValue
from agroghg.models.activity import ActivityData
from agroghg.models.emission_factor import EmissionFactor

logger = logging.getLogger(__name__)

ENGINE_VERSION = __version__

GWP_SET = "IPCC_AR4_100"
GWP_CH4 = Decimal(25)
GWP_N2O = Decimal(298)

# N2O-N to N2O mass ratio
N2O_MOLECULAR_WEIGHT = Decimal(44)
N2_MOLECULAR_WEIGHT = Decimal(28)

DEFAULT_BURNING_EFFICIENCY = Decimal("0.90")
KG_PER_TONNE = Decimal(1000)

ZERO = Decimal(0)
ONE = Decimal(1)
PERCENT = Decimal(100)


def _factor_value(value: Optional[Decimal]) -> Decimal:
    return value if value is not None else ZERO


@dataclass(frozen=True)
class RawGases:
    """Unrounded gas masses produced by one calculation branch (tonnes)."""
    co2: Decimal = ZERO
    ch4: Decimal = ZERO
    n2o: Decimal = ZERO
    divisor: Decimal = KG_PER_TONNE
    formula: str = ""
    inputs: Dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class EmissionResult:
    """
    Emission calculation result with full provenance.

    IMMUTABLE: frozen dataclass, details are never mutated after creation
    REPRODUCIBLE: carries no timestamp, so equal inputs hash equally
    AUDITABLE: provenance_hash is the SHA-256 of every other field
    """
    subcategory: str

    # Gas masses (tonnes, 3 decimals)
    raw_co2: Decimal
    raw_ch4: Decimal
    raw_n2o: Decimal

    # CO2e (tonnes, 3 decimals); total == fossil + biogenic exactly
    fossil_co2e: Decimal
    biogenic_co2e: Decimal
    total_co2e: Decimal

    calculation_details: Dict[str, Any] = field(default_factory=dict, hash=False)
    engine_version: str = ENGINE_VERSION
    provenance_hash: Optional[str] = None

    def __post_init__(self):
        if self.provenance_hash is None:
            object.__setattr__(self, 'provenance_hash', self._calculate_provenance_hash())

    def _provenance_data(self) -> Dict[str, Any]:
        return {
            'subcategory': self.subcategory,
            'raw_co2': str(self.raw_co2),
            'raw_ch4': str(self.raw_ch4),
            'raw_n2o': str(self.raw_n2o),
            'fossil_co2e': str(self.fossil_co2e),
            'biogenic_co2e': str(self.biogenic_co2e),
            'total_co2e': str(self.total_co2e),
            'calculation_details': self.calculation_details,
            'engine_version': self.engine_version,
        }

    def _calculate_provenance_hash(self) -> str:
        return content_hash(self._provenance_data())

    def verify_provenance(self) -> bool:
        """
        Verify the provenance hash.

        Returns:
            True if hash is valid, False if tampered/corrupted
        """
        return self.provenance_hash == self._calculate_provenance_hash()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization (Decimals as strings)"""
        data = self._provenance_data()
        data['provenance_hash'] = self.provenance_hash
        return data

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON"""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)


BranchFunction = Callable[[Decimal, ActivityData, EmissionFactor], RawGases]


class EmissionCalculator:
    """
    Agricultural emission calculator.

    Args:
        catalog: Emission factor catalog (packaged catalog if None)
        normalize_mineral_co2_units: Divide liming and urea CO2 by 1000 like
            every other branch (off by default)
    """

    def __init__(
        self,
        catalog: Optional[EmissionFactorCatalog] = None,
        normalize_mineral_co2_units: bool = False,
    ):
        self.catalog = catalog or default_catalog()
        self.resolver = FactorResolver(self.catalog)
        self.normalize_mineral_co2_units = normalize_mineral_co2_units

        self._branches: Dict[Subcategory, BranchFunction] = {
            Subcategory.ENTERIC_FERMENTATION: self._enteric_fermentation,
            Subcategory.MANURE_MANAGEMENT: self._manure_management,
            Subcategory.RICE_CULTIVATION: self._rice_cultivation,
            Subcategory.AGRICULTURAL_SOILS: self._agricultural_soils,
            Subcategory.RESIDUE_BURNING: self._residue_burning,
            Subcategory.LIMING: self._liming,
            Subcategory.UREA_APPLICATION: self._urea_application,
        }

    @classmethod
    def from_config(cls, config: Optional[AgroGHGConfig] = None) -> "EmissionCalculator":
        """Build a calculator from AGROGHG_* settings."""
        config = config or get_config()
        catalog = load_catalog(config.catalog_path) if config.catalog_path else default_catalog()
        return cls(catalog=catalog, normalize_mineral_co2_units=config.normalize_mineral_co2_units)

    def calculate(
        self,
        subcategory: Union[str, Subcategory],
        activity: ActivityInput,
    ) -> EmissionResult:
        """
        Calculate emissions for one activity.

        Calculation Steps:
        1. Validate activity data
        2. Resolve emission factor
        3. Raw gases (branch formula)
        4. Split CO2 into biogenic and fossil
        5. Weight CH4 and N2O by GWP
        6. Round for reporting

        Args:
            subcategory: Subcategory label, alias or variant
            activity: ActivityData or raw mapping (snake_case or camelCase)

        Returns:
            EmissionResult with provenance

        Raises:
            UnknownSubcategory: If the subcategory has no branch
            MissingFieldError: If the branch's quantity field is absent
            InvalidValue: If a numeric field is invalid or the result overflows
                the reporting precision
            FactorNotFound: If no catalog entry matches
        """
        variant = normalize_subcategory(subcategory)
        data = validate(variant, activity)

        quantity_field = REQUIRED_FIELDS[variant]
        quantity: Decimal = getattr(data, quantity_field)
        steps = [{
            'step': 1,
            'description': 'Validate activity data',
            'operation': 'validate',
            'activity': {k: str(v) for k, v in data.provided().items()},
            'quantity_field': quantity_field,
            'quantity': str(quantity),
            'output': str(quantity),
        }]

        species_field, system_field = QUALIFIER_FIELDS[variant]
        species = getattr(data, species_field) if species_field else None
        system = getattr(data, system_field) if system_field else None
        factor = self.resolver.resolve(variant.label, species=species, system=system)
        steps.append({
            'step': 2,
            'description': 'Resolve emission factor',
            'operation': 'lookup',
            'species': species,
            'system': system,
            'factor_name': factor.name,
            'source': factor.source,
            'output': factor.name,
        })

        try:
            result = self._compute(variant, quantity_field, quantity, data, factor, steps)
        except DecimalException as e:
            logger.error(f"Decimal overflow calculating {variant.label} with {quantity_field}={quantity}: {e!r}")
            raise InvalidValue(
                quantity_field,
                value=quantity,
                reason="result exceeds the supported decimal precision",
                subcategory=variant.label,
            ) from e

        logger.debug(
            f"Calculated {variant.label} with {factor.name}: "
            f"{quantity} {factor.activity_unit} → {result.total_co2e} t CO2e "
            f"(fossil {result.fossil_co2e}, biogenic {result.biogenic_co2e})"
        )
        return result

    def _compute(
        self,
        variant: Subcategory,
        quantity_field: str,
        quantity: Decimal,
        data: ActivityData,
        factor: EmissionFactor,
        steps: List[Dict[str, Any]],
    ) -> EmissionResult:
        """Steps 3-6: raw gases, biogenic split, GWP weighting, rounding."""
        raw = self._branches[variant](quantity, data, factor)
        steps.append({
            'step': 3,
            'description': 'Calculate raw gases',
            'operation': 'multiply',
            'formula': raw.formula,
            'unit_divisor': str(raw.divisor),
            'raw_co2': str(raw.co2),
            'raw_ch4': str(raw.ch4),
            'raw_n2o': str(raw.n2o),
            'output': f"CO2={raw.co2} CH4={raw.ch4} N2O={raw.n2o}",
        })

        fraction = factor.biogenic_fraction
        biogenic_co2 = raw.co2 * fraction
        fossil_co2 = raw.co2 * (ONE - fraction)
        steps.append({
            'step': 4,
            'description': 'Split CO2 by biogenic fraction',
            'operation': 'split',
            'formula': 'biogenic = co2 × fraction, fossil = co2 × (1 - fraction)',
            'biogenic_fraction': str(fraction),
            'biogenic_co2': str(biogenic_co2),
            'fossil_co2': str(fossil_co2),
            'output': f"fossil={fossil_co2} biogenic={biogenic_co2}",
        })

        ch4_co2e = raw.ch4 * GWP_CH4
        n2o_co2e = raw.n2o * GWP_N2O
        fossil_co2e = fossil_co2 + ch4_co2e + n2o_co2e
        biogenic_co2e = biogenic_co2
        steps.append({
            'step': 5,
            'description': 'Apply GWP weighting',
            'operation': 'weight',
            'formula': 'fossil_co2e = fossil_co2 + ch4 × 25 + n2o × 298',
            'ch4_co2e': str(ch4_co2e),
            'n2o_co2e': str(n2o_co2e),
            'fossil_co2e': str(fossil_co2e),
            'biogenic_co2e': str(biogenic_co2e),
            'output': str(fossil_co2e),
        })

        # Total is summed after rounding so total == fossil + biogenic exactly
        fossil_reported = EmissionDecimal.report(fossil_co2e)
        biogenic_reported = EmissionDecimal.report(biogenic_co2e)
        total_reported = fossil_reported + biogenic_reported
        steps.append({
            'step': 6,
            'description': 'Round for reporting',
            'operation': 'round',
            'precision': str(EmissionDecimal.REPORTING_PRECISION),
            'rounding': 'ROUND_HALF_UP',
            'fossil_co2e': str(fossil_reported),
            'biogenic_co2e': str(biogenic_reported),
            'total_co2e': str(total_reported),
            'output': str(total_reported),
        })

        details = {
            'subcategory': variant.label,
            'factor': {
                'name': factor.name,
                'source': factor.source,
                'methodology': factor.methodology,
                'activity_unit': factor.activity_unit,
                'co2_factor': str(factor.co2_factor) if factor.co2_factor is not None else None,
                'ch4_factor': str(factor.ch4_factor) if factor.ch4_factor is not None else None,
                'n2o_factor': str(factor.n2o_factor) if factor.n2o_factor is not None else None,
                'uncertainty_range': factor.uncertainty_range,
            },
            'gwp': {'set': GWP_SET, 'CH4': str(GWP_CH4), 'N2O': str(GWP_N2O)},
            'activity_field': quantity_field,
            'quantity': str(quantity),
            'inputs': {k: (str(v) if isinstance(v, Decimal) else v) for k, v in raw.inputs.items()},
            'formula': raw.formula,
            'unit_divisor': str(raw.divisor),
            'biogenic_fraction': str(fraction),
            'unrounded': {
                'raw_co2': str(raw.co2),
                'raw_ch4': str(raw.ch4),
                'raw_n2o': str(raw.n2o),
                'fossil_co2': str(fossil_co2),
                'biogenic_co2': str(biogenic_co2),
                'ch4_co2e': str(ch4_co2e),
                'n2o_co2e': str(n2o_co2e),
                'fossil_co2e': str(fossil_co2e),
                'biogenic_co2e': str(biogenic_co2e),
            },
            'steps': steps,
        }

        return EmissionResult(
            subcategory=variant.label,
            raw_co2=EmissionDecimal.report(raw.co2),
            raw_ch4=EmissionDecimal.report(raw.ch4),
            raw_n2o=EmissionDecimal.report(raw.n2o),
            fossil_co2e=fossil_reported,
            biogenic_co2e=biogenic_reported,
            total_co2e=total_reported,
            calculation_details=details,
        )

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def _enteric_fermentation(self, quantity: Decimal, data: ActivityData, factor: EmissionFactor) -> RawGases:
        return RawGases(
            ch4=quantity * _factor_value(factor.ch4_factor) / KG_PER_TONNE,
            formula="CH4 = animal_count × ch4_factor / 1000",
            inputs={'species': data.species},
        )

    def _manure_management(self, quantity: Decimal, data: ActivityData, factor: EmissionFactor) -> RawGases:
        return RawGases(
            ch4=quantity * _factor_value(factor.ch4_factor) / KG_PER_TONNE,
            n2o=quantity * _factor_value(factor.n2o_factor) / KG_PER_TONNE,
            formula="CH4 = animal_count × ch4_factor / 1000; N2O = animal_count × n2o_factor / 1000",
            inputs={'species': data.species, 'manure_system': data.manure_system},
        )

    def _rice_cultivation(self, quantity: Decimal, data: ActivityData, factor: EmissionFactor) -> RawGases:
        return RawGases(
            ch4=quantity * _factor_value(factor.ch4_factor) / KG_PER_TONNE,
            formula="CH4 = cultivated_area × ch4_factor / 1000",
            inputs={'rice_type': data.rice_type},
        )

    def _agricultural_soils(self, quantity: Decimal, data: ActivityData, factor: EmissionFactor) -> RawGases:
        n2o = quantity * _factor_value(factor.n2o_factor) * N2O_MOLECULAR_WEIGHT / N2_MOLECULAR_WEIGHT / KG_PER_TONNE
        return RawGases(
            n2o=n2o,
            formula="N2O = nitrogen_amount × n2o_factor × 44/28 / 1000",
            inputs={'fertilizer_type': data.fertilizer_type},
        )

    def _residue_burning(self, quantity: Decimal, data: ActivityData, factor: EmissionFactor) -> RawGases:
        if data.burning_efficiency_percent is not None:
            efficiency = data.burning_efficiency_percent / PERCENT
        else:
            efficiency = DEFAULT_BURNING_EFFICIENCY
        burned = quantity * efficiency
        return RawGases(
            co2=quantity * _factor_value(factor.co2_factor) * efficiency / KG_PER_TONNE,
            ch4=quantity * _factor_value(factor.ch4_factor) * efficiency / KG_PER_TONNE,
            n2o=quantity * _factor_value(factor.n2o_factor) * efficiency / KG_PER_TONNE,
            formula="gas = residue_amount × gas_factor × efficiency / 1000",
            inputs={'crop_type': data.crop_type, 'efficiency': efficiency, 'burned_amount': burned},
        )

    def _liming(self, quantity: Decimal, data: ActivityData, factor: EmissionFactor) -> RawGases:
        return self._mineral_co2(quantity, factor, "limestone_amount")

    def _urea_application(self, quantity: Decimal, data: ActivityData, factor: EmissionFactor) -> RawGases:
        return self._mineral_co2(quantity, factor, "urea_amount")

    def _mineral_co2(self, quantity: Decimal, factor: EmissionFactor, quantity_field: str) -> RawGases:
        # NOTE: mineral CO2 is q × co2_factor with no /1000, unlike every other
        # branch. normalize_mineral_co2_units applies the /1000 here as well.
        divisor = KG_PER_TONNE if self.normalize_mineral_co2_units else ONE
        if divisor == ONE:
            formula = f"CO2 = {quantity_field} × co2_factor"
        else:
            formula = f"CO2 = {quantity_field} × co2_factor / 1000"
        return RawGases(
            co2=quantity * _factor_value(factor.co2_factor) / divisor,
            divisor=divisor,
            formula=formula,
            inputs={'normalize_mineral_co2_units': self.normalize_mineral_co2_units},
        )


def calculate_emissions(
    subcategory: Union[str, Subcategory],
    activity: ActivityInput,
) -> EmissionResult:
    """Calculate against the packaged catalog. See :meth:`EmissionCalculator.calculate`."""
    return EmissionCalculator().calculate(subcategory, activity)
