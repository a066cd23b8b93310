"""Tests for the AgroGHG Exception Hierarchy.

Covers:
- Base exception functionality
- Engine exception hierarchy
- Catalog and data access exceptions
- Exception serialization
- Exception utilities
"""

import json
from datetime import datetime, timezone

import pytest

from agroghg.determinism import DeterministicClock
from agroghg.exceptions import (
    ActivityValidationError,
    AgroGHGException,
    CatalogError,
    DataAccessError,
    EngineError,
    FactorNotFound,
    InvalidValue,
    MissingFieldError,
    UnknownSubcategory,
    format_exception_chain,
)


# ==============================================================================
# Base Exception Tests
# ==============================================================================

class TestAgroGHGException:
    """Tests for base AgroGHGException."""

    def test_create_basic_exception(self):
        exc = AgroGHGException("Something went wrong")

        assert exc.message == "Something went wrong"
        assert exc.error_code == "AGG_AGRO_G_H_G_EXCEPTION"
        assert exc.context == {}
        assert isinstance(exc.timestamp, datetime)

    def test_explicit_error_code(self):
        exc = AgroGHGException("Test error", error_code="AGG_TEST_001", context={"count": 42})

        assert exc.error_code == "AGG_TEST_001"
        assert exc.context == {"count": 42}

    def test_timestamp_is_utc(self):
        exc = AgroGHGException("Something went wrong")

        assert exc.timestamp.tzinfo is timezone.utc

    def test_timestamp_follows_frozen_clock(self):
        moment = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)

        with DeterministicClock.frozen(moment):
            exc = MissingFieldError("urea_amount")

        assert exc.timestamp == moment
        assert exc.to_dict()["timestamp"] == "2025-06-30T12:00:00+00:00"

    def test_str_representation(self):
        exc = AgroGHGException("Test error", error_code="AGG_TEST_001")

        assert str(exc) == "[AGG_TEST_001] - Test error"

    def test_repr(self):
        exc = AgroGHGException("Test error", error_code="AGG_TEST_001")

        assert repr(exc) == "AgroGHGException(message='Test error', error_code='AGG_TEST_001')"

    def test_to_dict(self):
        exc = AgroGHGException("Test error", error_code="AGG_TEST_001", context={"key": "value"})

        data = exc.to_dict()

        assert data["error_type"] == "AgroGHGException"
        assert data["error_code"] == "AGG_TEST_001"
        assert data["message"] == "Test error"
        assert data["context"] == {"key": "value"}
        assert "timestamp" in data

    def test_to_json(self):
        exc = InvalidValue("residue_amount", value=-5)

        data = json.loads(exc.to_json())

        assert data["error_type"] == "InvalidValue"
        assert data["context"]["field"] == "residue_amount"
        assert data["context"]["value"] == "-5"


# ==============================================================================
# Engine Exception Tests
# ==============================================================================

class TestEngineExceptions:
    """Tests for calculation engine exceptions."""

    def test_hierarchy(self):
        assert issubclass(UnknownSubcategory, EngineError)
        assert issubclass(FactorNotFound, EngineError)
        assert issubclass(MissingFieldError, ActivityValidationError)
        assert issubclass(InvalidValue, ActivityValidationError)
        assert issubclass(ActivityValidationError, EngineError)
        assert issubclass(EngineError, AgroGHGException)
        assert not issubclass(CatalogError, EngineError)

    def test_unknown_subcategory(self):
        exc = UnknownSubcategory("Silvicultura")

        assert exc.error_code == "AGG_ENGINE_UNKNOWN_SUBCATEGORY"
        assert exc.subcategory == "Silvicultura"
        assert exc.context == {"subcategory": "Silvicultura"}
        assert 'Unknown subcategory "Silvicultura"' in str(exc)

    def test_factor_not_found_omits_empty_qualifiers(self):
        exc = FactorNotFound("Cultivo de Arroz", system="Várzea")

        assert exc.error_code == "AGG_ENGINE_FACTOR_NOT_FOUND"
        assert exc.context == {"subcategory": "Cultivo de Arroz", "system": "Várzea"}
        assert exc.species is None

    def test_missing_field(self):
        exc = MissingFieldError("animal_count", subcategory="Fermentação Entérica")

        assert exc.error_code == "AGG_ENGINE_MISSING_FIELD_ERROR"
        assert exc.message == "Missing required field: animal_count"
        assert exc.context == {"field": "animal_count", "subcategory": "Fermentação Entérica"}

    def test_invalid_value(self):
        exc = InvalidValue("burning_efficiency_percent", value=150, reason="must be between 0 and 100")

        assert exc.error_code == "AGG_ENGINE_INVALID_VALUE"
        assert exc.field == "burning_efficiency_percent"
        assert exc.value == 150
        assert exc.context["reason"] == "must be between 0 and 100"
        assert "150" in exc.message

    def test_catch_as_engine_error(self):
        with pytest.raises(EngineError):
            raise MissingFieldError("urea_amount")


# ==============================================================================
# Catalog / Data Exception Tests
# ==============================================================================

class TestDataExceptions:
    """Tests for catalog and backing store exceptions."""

    def test_catalog_error(self):
        exc = CatalogError("Catalog entry 3 is invalid", context={"catalog_path": "factors.yaml"})

        assert exc.error_code == "AGG_CATALOG_CATALOG_ERROR"
        assert exc.context["catalog_path"] == "factors.yaml"

    def test_data_access_error_context(self):
        cause = ConnectionError("database is locked")
        exc = DataAccessError(
            "Failed to insert factor",
            data_source="emission_factors",
            operation="insert",
            cause=cause,
        )

        assert exc.error_code == "AGG_DATA_DATA_ACCESS_ERROR"
        assert exc.context == {
            "data_source": "emission_factors",
            "operation": "insert",
            "cause": "database is locked",
            "cause_type": "ConnectionError",
        }


# ==============================================================================
# Utility Tests
# ==============================================================================

class TestFormatExceptionChain:
    """Tests for format_exception_chain."""

    def test_single_exception(self):
        formatted = format_exception_chain(MissingFieldError("urea_amount"))

        assert "[AGG_ENGINE_MISSING_FIELD_ERROR] - Missing required field: urea_amount" in formatted
        assert "Context: {'field': 'urea_amount'}" in formatted

    def test_chained_exceptions(self):
        try:
            try:
                raise ValueError("bad row")
            except ValueError as e:
                raise DataAccessError("Failed to insert factor", operation="insert") from e
        except DataAccessError as exc:
            formatted = format_exception_chain(exc)

        lines = formatted.splitlines()
        assert lines[0] == "[AGG_DATA_DATA_ACCESS_ERROR] - Failed to insert factor"
        assert lines[-1] == "ValueError: bad row"
