"""
Calculation Engine Tests

This test suite validates:
- Per-subcategory formulas against hand-computed GHG Protocol Brasil figures
- Biogenic / fossil split and AR4 GWP weighting
- Determinism: Same input → Same output (and same provenance hash)
- Rounding invariants (total == fossil + biogenic)
- Mineral CO2 unit handling
- Error propagation (nothing defaults to zero)
"""

import json
from dataclasses import FrozenInstanceError, replace
from decimal import Decimal

import pytest

from agroghg import calculate_emissions
from agroghg.calculation import EmissionCalculator, EmissionResult, Subcategory
from agroghg.config import AgroGHGConfig
from agroghg.exceptions import (
    FactorNotFound,
    InvalidValue,
    MissingFieldError,
    UnknownSubcategory,
)


# ==================== FORMULAS ====================

class TestEntericFermentation:
    """CH4 = animal_count × ch4_factor / 1000"""

    def test_dairy_cattle_1000_head(self, calculator, dairy_activity):
        result = calculator.calculate("Fermentação Entérica", dairy_activity)

        assert result.raw_ch4 == Decimal("128.000")
        assert result.raw_co2 == Decimal("0.000")
        assert result.raw_n2o == Decimal("0.000")
        assert result.fossil_co2e == Decimal("3200.000")
        assert result.biogenic_co2e == Decimal("0.000")
        assert result.total_co2e == Decimal("3200.000")

    def test_beef_cattle_uses_its_own_factor(self, calculator):
        result = calculator.calculate(
            "Fermentação Entérica",
            {"species": "Bovinos de Corte", "animal_count": 10},
        )

        assert result.raw_ch4 == Decimal("0.560")
        assert result.fossil_co2e == Decimal("14.000")
        assert result.calculation_details["factor"]["name"] == "Bovinos de Corte - Fermentação Entérica"

    def test_camel_case_payload(self, calculator):
        result = calculator.calculate(
            "fermentacao_enterica",
            {"species": "Bovinos de Leite", "animalCount": "1000"},
        )

        assert result.total_co2e == Decimal("3200.000")

    def test_unknown_species_is_not_found(self, calculator):
        with pytest.raises(FactorNotFound) as exc_info:
            calculator.calculate("Fermentação Entérica", {"species": "Equinos", "animal_count": 5})

        assert exc_info.value.context["species"] == "Equinos"

    def test_zero_animals_yield_zero_emissions(self, calculator):
        result = calculator.calculate(
            "Fermentação Entérica",
            {"species": "Bovinos de Leite", "animal_count": 0},
        )

        assert result.total_co2e == Decimal("0")
        assert result.fossil_co2e == Decimal("0")


class TestManureManagement:
    """CH4 = q × ch4 / 1000 and N2O = q × n2o / 1000"""

    def test_swine_lagoon(self, calculator):
        result = calculator.calculate(
            "Manejo de Dejetos",
            {"species": "Suínos", "manure_system": "Lagoa", "animal_count": 100},
        )

        assert result.raw_ch4 == Decimal("2.800")
        assert result.raw_n2o == Decimal("0.005")
        # 2.8 × 25 + 0.005 × 298
        assert result.fossil_co2e == Decimal("71.490")
        assert result.total_co2e == Decimal("71.490")

    def test_dairy_species_matches_generic_cattle_entry(self, calculator):
        result = calculator.calculate(
            "Manejo de Dejetos",
            {"species": "Bovinos de Leite", "manureSystem": "Pasto", "animalCount": 1000},
        )

        assert result.calculation_details["factor"]["name"] == "Bovinos - Manejo Dejetos Pasto"
        assert result.raw_ch4 == Decimal("1.000")
        assert result.raw_n2o == Decimal("0.020")
        # 1.0 × 25 + 0.02 × 298
        assert result.fossil_co2e == Decimal("30.960")

    def test_species_system_mismatch_is_not_found(self, calculator):
        with pytest.raises(FactorNotFound):
            calculator.calculate(
                "Manejo de Dejetos",
                {"species": "Aves", "manure_system": "Lagoa", "animal_count": 100},
            )


class TestRiceCultivation:
    """CH4 = cultivated_area × ch4_factor / 1000"""

    def test_intermittent_irrigation(self, calculator):
        result = calculator.calculate(
            "Cultivo de Arroz",
            {"rice_type": "Irrigado Intermitente", "cultivated_area": 10},
        )

        assert result.raw_ch4 == Decimal("1.000")
        assert result.fossil_co2e == Decimal("25.000")

    def test_upland_rice_has_no_methane(self, calculator):
        result = calculator.calculate(
            "Cultivo de Arroz",
            {"rice_type": "Sequeiro", "cultivated_area": 500},
        )

        assert result.total_co2e == Decimal("0")

    def test_missing_area(self):
        with pytest.raises(MissingFieldError) as exc_info:
            calculate_emissions("Cultivo de Arroz", {})

        assert exc_info.value.field == "cultivated_area"


class TestAgriculturalSoils:
    """N2O = nitrogen_amount × n2o_factor × 44/28 / 1000"""

    def test_synthetic_fertilizer(self, calculator):
        result = calculator.calculate("Solos Agrícolas", {"nitrogen_amount": 1000})

        unrounded = Decimal(result.calculation_details["unrounded"]["raw_n2o"])
        assert unrounded == Decimal(1000) * Decimal("0.01") * Decimal(44) / Decimal(28) / Decimal(1000)
        assert result.raw_n2o == Decimal("0.016")
        assert result.fossil_co2e == Decimal("4.683")

    def test_molecular_ratio_only_applies_to_soils(self, calculator):
        result = calculator.calculate(
            "Manejo de Dejetos",
            {"species": "Suínos", "manure_system": "Lagoa", "animal_count": 1000},
        )

        assert Decimal(result.calculation_details["unrounded"]["raw_n2o"]) == Decimal("0.05")


class TestResidueBurning:
    """gas = residue_amount × gas_factor × efficiency / 1000"""

    def test_sugarcane_default_efficiency(self, calculator, sugarcane_activity):
        result = calculator.calculate("Queima de Resíduos", sugarcane_activity)

        assert result.raw_co2 == Decimal("136.350")
        assert result.raw_ch4 == Decimal("0.243")
        assert result.raw_n2o == Decimal("0.006")
        assert Decimal(result.calculation_details["unrounded"]["raw_n2o"]) == Decimal("0.0063")
        assert result.biogenic_co2e == Decimal("136.350")
        assert result.fossil_co2e == Decimal("7.952")
        assert result.total_co2e == Decimal("144.302")

    def test_explicit_efficiency_percent(self, calculator):
        result = calculator.calculate(
            "Queima de Resíduos",
            {"residue_amount": 100, "burningEfficiency": 100},
        )

        assert result.raw_co2 == Decimal("151.500")
        # 0.27 × 25 + 0.007 × 298
        assert result.fossil_co2e == Decimal("8.836")
        assert result.total_co2e == Decimal("160.336")

    def test_efficiency_above_100_rejected(self, calculator):
        with pytest.raises(InvalidValue) as exc_info:
            calculator.calculate(
                "Queima de Resíduos",
                {"residue_amount": 100, "burning_efficiency_percent": 150},
            )

        assert exc_info.value.field == "burning_efficiency_percent"


class TestMineralCO2:
    """Liming and urea: CO2 = q × co2_factor (no /1000 by default)"""

    def test_urea_10_tonnes(self, calculator):
        result = calculator.calculate("Aplicação de Ureia", {"urea_amount": 10})

        assert result.raw_co2 == Decimal("7.330")
        assert result.fossil_co2e == Decimal("7.330")
        assert result.biogenic_co2e == Decimal("0.000")
        assert result.total_co2e == Decimal("7.330")
        assert result.calculation_details["unit_divisor"] == "1"

    def test_liming(self, calculator):
        result = calculator.calculate("calcagem", {"limestone_amount": 100})

        assert result.raw_co2 == Decimal("12.000")
        assert result.total_co2e == Decimal("12.000")

    def test_normalized_units_divide_by_1000(self, normalized_calculator):
        urea = normalized_calculator.calculate("ureia", {"urea_amount": 10})
        lime = normalized_calculator.calculate("calcagem", {"limestone_amount": 100})

        assert urea.total_co2e == Decimal("0.007")
        assert lime.total_co2e == Decimal("0.012")
        assert urea.calculation_details["unit_divisor"] == "1000"

    def test_normalization_leaves_other_branches_alone(self, calculator, normalized_calculator, dairy_activity):
        plain = calculator.calculate("Fermentação Entérica", dairy_activity)
        normalized = normalized_calculator.calculate("Fermentação Entérica", dairy_activity)

        assert plain.total_co2e == normalized.total_co2e

    def test_from_config_reads_normalization_flag(self, catalog):
        calc = EmissionCalculator.from_config(AgroGHGConfig(normalize_mineral_co2_units=True))

        assert calc.normalize_mineral_co2_units is True
        assert calc.calculate("ureia", {"urea_amount": 10}).total_co2e == Decimal("0.007")


# ==================== INVARIANTS ====================

ALL_BRANCHES = [
    ("Fermentação Entérica", {"species": "Búfalos", "animal_count": 333}),
    ("Manejo de Dejetos", {"species": "Aves", "manure_system": "Sólido", "animal_count": 12345}),
    ("Cultivo de Arroz", {"rice_type": "Irrigado Contínuo", "cultivated_area": "12.5"}),
    ("Solos Agrícolas", {"nitrogen_amount": 777}),
    ("Queima de Resíduos", {"residue_amount": 3.3, "burning_efficiency_percent": 85}),
    ("Calcagem", {"limestone_amount": 1.234}),
    ("Aplicação de Ureia", {"urea_amount": 0.5}),
]


class TestInvariants:
    """Properties that hold for every branch."""

    @pytest.mark.parametrize("subcategory,activity", ALL_BRANCHES)
    def test_total_is_exact_sum(self, calculator, subcategory, activity):
        result = calculator.calculate(subcategory, activity)

        assert result.total_co2e == result.fossil_co2e + result.biogenic_co2e

    @pytest.mark.parametrize("subcategory,activity", ALL_BRANCHES)
    def test_idempotent(self, calculator, subcategory, activity):
        first = calculator.calculate(subcategory, activity)
        second = calculator.calculate(subcategory, activity)

        assert first == second
        assert first.provenance_hash == second.provenance_hash

    @pytest.mark.parametrize("subcategory,activity", ALL_BRANCHES)
    def test_three_decimal_reporting(self, calculator, subcategory, activity):
        result = calculator.calculate(subcategory, activity)

        for value in (result.raw_co2, result.raw_ch4, result.raw_n2o,
                      result.fossil_co2e, result.biogenic_co2e, result.total_co2e):
            assert value.as_tuple().exponent == -3

    def test_fully_biogenic_fossil_holds_only_ch4_and_n2o(self, calculator, sugarcane_activity):
        result = calculator.calculate("Queima de Resíduos", sugarcane_activity)
        unrounded = result.calculation_details["unrounded"]

        assert Decimal(unrounded["fossil_co2"]) == 0
        assert Decimal(unrounded["fossil_co2e"]) == Decimal(unrounded["ch4_co2e"]) + Decimal(unrounded["n2o_co2e"])

    def test_non_biogenic_has_no_biogenic_co2e(self, calculator):
        result = calculator.calculate("Calcagem", {"limestone_amount": 50})

        assert result.biogenic_co2e == 0

    def test_float_and_string_inputs_agree(self, calculator):
        as_float = calculator.calculate("ureia", {"urea_amount": 0.1})
        as_string = calculator.calculate("ureia", {"urea_amount": "0.1"})

        assert as_float.total_co2e == as_string.total_co2e


# ==================== PROVENANCE ====================

class TestEmissionResult:
    """Immutable result with provenance hash."""

    def test_provenance_verifies(self, calculator, dairy_activity):
        result = calculator.calculate("Fermentação Entérica", dairy_activity)

        assert len(result.provenance_hash) == 64
        assert result.verify_provenance()

    def test_tampered_result_fails_verification(self, calculator, dairy_activity):
        result = calculator.calculate("Fermentação Entérica", dairy_activity)
        tampered = replace(result, total_co2e=Decimal("0.000"))

        assert not tampered.verify_provenance()

    def test_result_is_frozen(self, calculator, dairy_activity):
        result = calculator.calculate("Fermentação Entérica", dairy_activity)

        with pytest.raises(FrozenInstanceError):
            result.total_co2e = Decimal("1")

    def test_different_inputs_hash_differently(self, calculator):
        a = calculator.calculate("ureia", {"urea_amount": 10})
        b = calculator.calculate("ureia", {"urea_amount": 11})

        assert a.provenance_hash != b.provenance_hash

    def test_to_json(self, calculator, sugarcane_activity):
        result = calculator.calculate("Queima de Resíduos", sugarcane_activity)
        data = json.loads(result.to_json())

        assert data["subcategory"] == "Queima de Resíduos"
        assert data["total_co2e"] == "144.302"
        assert data["provenance_hash"] == result.provenance_hash
        assert data["calculation_details"]["gwp"] == {"set": "IPCC_AR4_100", "CH4": "25", "N2O": "298"}

    def test_details_trace(self, calculator, dairy_activity):
        details = calculator.calculate("Fermentação Entérica", dairy_activity).calculation_details

        assert details["factor"]["source"] == "GHG Protocol Brasil 2025.0.1"
        assert details["factor"]["methodology"] == "Tier 1"
        assert details["activity_field"] == "animal_count"
        assert details["quantity"] == "1000"
        assert details["biogenic_fraction"] == "0"
        assert [step["operation"] for step in details["steps"]] == [
            "validate", "lookup", "multiply", "split", "weight", "round",
        ]

    def test_result_type(self, dairy_activity):
        assert isinstance(calculate_emissions("Fermentação Entérica", dairy_activity), EmissionResult)


# ==================== ERRORS ====================

class TestErrors:
    """Engine errors are terminal and never become zero emissions."""

    def test_unknown_subcategory(self, calculator):
        with pytest.raises(UnknownSubcategory) as exc_info:
            calculator.calculate("Fermentacao Enterika", {"animal_count": 1})

        assert exc_info.value.subcategory == "Fermentacao Enterika"

    def test_enum_variant_accepted(self, calculator):
        result = calculator.calculate(Subcategory.UREA_APPLICATION, {"urea_amount": 10})

        assert result.subcategory == "Aplicação de Ureia"

    def test_negative_quantity(self, calculator):
        with pytest.raises(InvalidValue) as exc_info:
            calculator.calculate("Fermentação Entérica", {"species": "Suínos", "animal_count": -5})

        assert exc_info.value.field == "animal_count"

    def test_missing_quantity_with_qualifiers_present(self, calculator):
        with pytest.raises(MissingFieldError) as exc_info:
            calculator.calculate("Manejo de Dejetos", {"species": "Suínos", "manure_system": "Lagoa"})

        assert exc_info.value.field == "animal_count"

    def test_none_activity(self, calculator):
        with pytest.raises(MissingFieldError):
            calculator.calculate("Solos Agrícolas", None)

    def test_out_of_range_quantity_is_invalid_value(self, calculator):
        with pytest.raises(InvalidValue) as exc_info:
            calculator.calculate("ureia", {"urea_amount": "1e30"})

        assert exc_info.value.field == "urea_amount"
        assert exc_info.value.error_code == "AGG_ENGINE_INVALID_VALUE"


class TestNumericInput:
    """Brazilian number formatting and signed zero in activity fields."""

    def test_decimal_comma(self, calculator):
        result = calculator.calculate("ureia", {"urea_amount": "1,5"})

        assert result.calculation_details["quantity"] == "1.5"
        assert result.total_co2e == Decimal("1.100")

    def test_brazilian_thousands_grouping(self, calculator):
        grouped = calculator.calculate("ureia", {"urea_amount": "1.000,5"})
        plain = calculator.calculate("ureia", {"urea_amount": 1000.5})

        assert grouped.total_co2e == plain.total_co2e

    def test_negative_zero_reports_unsigned_zero(self, calculator):
        result = calculator.calculate("ureia", {"urea_amount": "-0"})

        assert str(result.raw_co2) == "0.000"
        assert str(result.total_co2e) == "0.000"
        assert not str(result.biogenic_co2e).startswith("-")
