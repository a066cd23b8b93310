"""
Determinism Tests

Decimal conversion, reporting precision, canonical hashing and the clock.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from agroghg.determinism import DeterministicClock, EmissionDecimal, canonical_json, content_hash


class TestEmissionDecimal:
    """Conversion and rounding."""

    @pytest.mark.parametrize("value,expected", [
        (0.733, Decimal("0.733")),
        (128, Decimal("128")),
        ("1,500.5", Decimal("1500.5")),
        (" 2.7 ", Decimal("2.7")),
        (Decimal("0.07"), Decimal("0.07")),
        ("2,5", Decimal("2.5")),
        ("1.000,5", Decimal("1000.5")),
        ("1.000.000", Decimal("1000000")),
        ("1,000,000", Decimal("1000000")),
    ])
    def test_from_any(self, value, expected):
        assert EmissionDecimal.from_any(value) == expected

    def test_decimal_comma_is_not_a_thousands_group(self):
        assert EmissionDecimal.from_any("2,5") != Decimal("25")

    @pytest.mark.parametrize("value,expected", [
        ("-0", "0"),
        (-0.0, "0.0"),
        (Decimal("-0.000"), "0.000"),
    ])
    def test_negative_zero_is_unsigned(self, value, expected):
        result = EmissionDecimal.from_any(value)

        assert str(result) == expected
        assert not result.is_signed()

    def test_float_has_no_binary_noise(self):
        assert str(EmissionDecimal.from_any(0.1)) == "0.1"

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            EmissionDecimal.from_any(True)

    def test_unparsable_string(self):
        with pytest.raises(ValueError):
            EmissionDecimal.from_any("abc")

    @pytest.mark.parametrize("value,expected", [
        ("7.9524", "7.952"),
        ("0.0005", "0.001"),
        ("0.0004999", "0.000"),
        ("3200", "3200.000"),
    ])
    def test_report_half_up(self, value, expected):
        assert str(EmissionDecimal.report(Decimal(value))) == expected


class TestContentHash:
    """Canonical JSON hashing."""

    def test_key_order_does_not_matter(self):
        assert content_hash({"a": 1, "b": 2}) == content_hash({"b": 2, "a": 1})

    def test_decimal_serialized_as_string(self):
        assert canonical_json({"q": Decimal("1.50")}) == '{"q":"1.50"}'

    def test_hash_is_sha256_hex(self):
        digest = content_hash({"subcategory": "Calcagem"})

        assert len(digest) == 64
        assert int(digest, 16) >= 0

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            canonical_json({"x": object()})


class TestDeterministicClock:
    """Freezable clock."""

    def test_frozen(self):
        moment = datetime(2025, 6, 30, tzinfo=timezone.utc)

        with DeterministicClock.frozen(moment):
            assert DeterministicClock.utcnow() == moment

        assert DeterministicClock.utcnow() != moment

    def test_unfrozen_has_no_microseconds(self):
        assert DeterministicClock.utcnow().microsecond == 0
