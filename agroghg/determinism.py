"""
AgroGHG Determinism Module - Utilities for Deterministic Operations

Keeps every emission calculation reproducible for inventory audits:

- Decimal arithmetic with a fixed context and ROUND_HALF_UP reporting
- Safe conversion of user input (int, float, str) to Decimal
- Controlled timestamp generation with a freezable clock
- Canonical JSON hashing for provenance
"""

import hashlib
import json
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from typing import Any, Optional


getcontext().prec = 28
getcontext().rounding = ROUND_HALF_UP


class DeterministicClock:
    """
    A deterministic clock that can be frozen for testing and auditing.

    Only audit artefacts (trails, import reports) carry timestamps; emission
    results never do, so identical inputs hash identically.
    """

    _instance = None
    _lock = threading.Lock()
    _frozen_time: Optional[datetime] = None

    def __new__(cls):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
            return cls._instance

    @classmethod
    def now(cls, tz=None) -> datetime:
        """
        Get current time, either real or frozen.

        Args:
            tz: Timezone info (defaults to UTC)

        Returns:
            Current datetime without microseconds
        """
        instance = cls()
        if instance._frozen_time is not None:
            if tz is not None:
                return instance._frozen_time.replace(tzinfo=tz)
            return instance._frozen_time

        return datetime.now(tz or timezone.utc).replace(microsecond=0)

    @classmethod
    def utcnow(cls) -> datetime:
        """Get current UTC time."""
        return cls.now(timezone.utc)

    @classmethod
    def freeze(cls, frozen_time: Optional[datetime] = None):
        """
        Freeze clock at specific time.

        Args:
            frozen_time: Time to freeze at (defaults to current time)
        """
        instance = cls()
        if frozen_time is None:
            frozen_time = datetime.now(timezone.utc).replace(microsecond=0)
        instance._frozen_time = frozen_time

    @classmethod
    def unfreeze(cls):
        """Unfreeze the clock."""
        cls()._frozen_time = None

    @classmethod
    @contextmanager
    def frozen(cls, frozen_time: Optional[datetime] = None):
        """
        Context manager for temporarily freezing time.

        Usage:
            with DeterministicClock.frozen(datetime(2025, 1, 1)):
                trail = AuditTrailGenerator().generate(result)
        """
        cls.freeze(frozen_time)
        try:
            yield
        finally:
            cls.unfreeze()


def _normalize_separators(text: str) -> str:
    """Rewrite a grouped number string with ``.`` as the only decimal mark."""
    commas = text.count(',')
    dots = text.count('.')
    if commas and dots:
        if text.rfind(',') > text.rfind('.'):
            return text.replace('.', '').replace(',', '.')
        return text.replace(',', '')
    if commas == 1:
        return text.replace(',', '.')
    if commas > 1:
        return text.replace(',', '')
    if dots > 1:
        return text.replace('.', '')
    return text


class EmissionDecimal:
    """
    Decimal conversion and rounding rules for emission figures.

    - Converts floats through ``str`` so 0.733 stays 0.733
    - Reports with 3 decimal places, ROUND_HALF_UP
    """

    REPORTING_PRECISION = Decimal('0.001')
    ROUNDING = ROUND_HALF_UP

    @classmethod
    def from_any(cls, value: Any) -> Decimal:
        """
        Convert any numeric type to Decimal without float noise.

        Strings may use Brazilian or English digit grouping. The separator
        that appears last is the decimal mark when both are present; a single
        comma on its own is a decimal comma (``"2,5"`` is 2.5); repeated
        separators of one kind are thousands groups. Negative zero is
        returned as zero.

        Args:
            value: int, float, str or Decimal

        Returns:
            Exact Decimal (not quantized)

        Raises:
            TypeError: If value is not numeric (bool included)
            ValueError: If a string value cannot be parsed

        Example:
            >>> EmissionDecimal.from_any(0.733)
            Decimal('0.733')
            >>> EmissionDecimal.from_any("1.000,5")
            Decimal('1000.5')
        """
        if isinstance(value, bool):
            raise TypeError("Cannot convert bool to Decimal")
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, float):
            result = Decimal(str(value))
        elif isinstance(value, str):
            try:
                result = Decimal(_normalize_separators(value.strip()))
            except InvalidOperation as e:
                raise ValueError(f"Invalid decimal string: {value!r}") from e
        else:
            raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")

        if result.is_zero() and result.is_signed():
            return abs(result)
        return result

    @classmethod
    def report(cls, value: Decimal) -> Decimal:
        """
        Round a value for reporting (3 decimal places).

        Example:
            >>> EmissionDecimal.report(Decimal('7.9524'))
            Decimal('7.952')
        """
        return value.quantize(cls.REPORTING_PRECISION, rounding=cls.ROUNDING)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, (tuple, set, frozenset)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json(data: Any) -> str:
    """Serialize with sorted keys and compact separators."""
    return json.dumps(
        data,
        sort_keys=True,
        separators=(',', ':'),
        ensure_ascii=True,
        default=_json_default,
    )


def content_hash(data: Any) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    return hashlib.sha256(canonical_json(data).encode('utf-8')).hexdigest()


__all__ = [
    "DeterministicClock",
    "EmissionDecimal",
    "canonical_json",
    "content_hash",
]
