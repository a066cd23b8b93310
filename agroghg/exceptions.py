"""AgroGHG Exception Hierarchy.

Exceptions raised by the agricultural emissions engine, with rich error
context for debugging, audit logs and API responses.

Exception Hierarchy:
    AgroGHGException (base)
    ├── EngineError
    │   ├── UnknownSubcategory
    │   ├── FactorNotFound
    │   └── ActivityValidationError
    │       ├── MissingFieldError
    │       └── InvalidValue
    ├── CatalogError
    └── DataAccessError

All exceptions include:
- error_code: Unique error identifier
- context: Dictionary with error-specific details
- timestamp: When the error occurred (UTC, from DeterministicClock)

Engine errors are terminal for a single calculation. A GHG inventory must
fail loudly instead of reporting zero emissions for bad input.

Example:
    >>> from agroghg.exceptions import MissingFieldError
    >>> raise MissingFieldError("cultivated_area", subcategory="Cultivo de Arroz")
"""

import json
import re
from typing import Any, Dict, Optional

from agroghg.determinism import DeterministicClock


# ==============================================================================
# Base Exception
# ==============================================================================

class AgroGHGException(Exception):
    """Base exception for all AgroGHG errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "AGG_ENGINE_FACTOR_NOT_FOUND")
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "AGG"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = DeterministicClock.utcnow()

    def _generate_error_code(self) -> str:
        """Generate error code from the class name.

        Returns:
            Error code like "AGG_ENGINE_MISSING_FIELD_ERROR"
        """
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str, ensure_ascii=False)

    def __str__(self) -> str:
        return f"[{self.error_code}] - {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}')"
        )


# ==============================================================================
# Engine Exceptions
# ==============================================================================

class EngineError(AgroGHGException):
    """Base exception for calculation engine errors.

    Raised for any failure that makes a single calculation impossible.
    """
    ERROR_PREFIX = "AGG_ENGINE"


class UnknownSubcategory(EngineError):
    """The subcategory has no calculation branch.

    Example:
        >>> raise UnknownSubcategory("Fermentacao Enterika")
    """

    def __init__(self, subcategory: str, context: Optional[Dict[str, Any]] = None):
        context = context or {}
        context["subcategory"] = subcategory
        super().__init__(f'Unknown subcategory "{subcategory}"', context=context)
        self.subcategory = subcategory


class FactorNotFound(EngineError):
    """No catalog entry matches the subcategory and qualifiers.

    Example:
        >>> raise FactorNotFound("Manejo de Dejetos", species="Equinos")
    """

    def __init__(
        self,
        subcategory: str,
        species: Optional[str] = None,
        system: Optional[str] = None,
    ):
        context: Dict[str, Any] = {"subcategory": subcategory}
        if species:
            context["species"] = species
        if system:
            context["system"] = system
        super().__init__(f"Emission factor not found for {subcategory}", context=context)
        self.subcategory = subcategory
        self.species = species
        self.system = system


class ActivityValidationError(EngineError):
    """Activity payload is incomplete or malformed."""

    def __init__(
        self,
        message: str,
        field: str,
        subcategory: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        context = context or {}
        context["field"] = field
        if subcategory:
            context["subcategory"] = subcategory
        super().__init__(message, context=context)
        self.field = field
        self.subcategory = subcategory


class MissingFieldError(ActivityValidationError):
    """A required activity field is absent.

    Example:
        >>> raise MissingFieldError("animal_count", subcategory="Fermentação Entérica")
    """

    def __init__(self, field: str, subcategory: Optional[str] = None):
        super().__init__(
            f"Missing required field: {field}",
            field=field,
            subcategory=subcategory,
        )


class InvalidValue(ActivityValidationError):
    """An activity field is negative, non-finite or not a number.

    Example:
        >>> raise InvalidValue("residue_amount", value=-5)
    """

    def __init__(
        self,
        field: str,
        value: Any = None,
        reason: str = "must be a finite number >= 0",
        subcategory: Optional[str] = None,
    ):
        super().__init__(
            f"Invalid value for {field}: {value!r} ({reason})",
            field=field,
            subcategory=subcategory,
            context={"value": repr(value), "reason": reason},
        )
        self.value = value
        self.reason = reason


# ==============================================================================
# Catalog / Data Exceptions
# ==============================================================================

class CatalogError(AgroGHGException):
    """Emission factor catalog file is missing or malformed.

    Example:
        >>> raise CatalogError(
        ...     message="Catalog entry 3 is invalid",
        ...     context={"catalog_path": "factors.yaml", "errors": ["ch4_factor < 0"]}
        ... )
    """
    ERROR_PREFIX = "AGG_CATALOG"


class DataAccessError(AgroGHGException):
    """Backing store access failed.

    Example:
        >>> raise DataAccessError(
        ...     message="Failed to upsert factor",
        ...     data_source="emission_factors",
        ...     operation="insert",
        ... )
    """
    ERROR_PREFIX = "AGG_DATA"

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        data_source: Optional[str] = None,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        """Initialize data access error.

        Args:
            message: Error message
            context: Error context
            data_source: Data source that failed
            operation: Operation that failed (select, insert, update)
            cause: Original exception
        """
        context = context or {}
        if data_source:
            context["data_source"] = data_source
        if operation:
            context["operation"] = operation
        if cause:
            context["cause"] = str(cause)
            context["cause_type"] = type(cause).__name__
        super().__init__(message, context=context)


# ==============================================================================
# Exception Utilities
# ==============================================================================

def format_exception_chain(exc: BaseException) -> str:
    """Format exception chain for logging/display.

    Args:
        exc: Exception to format

    Returns:
        Formatted string with full exception chain
    """
    lines = []
    current: Optional[BaseException] = exc

    while current is not None:
        if isinstance(current, AgroGHGException):
            lines.append(str(current))
            lines.append(f"  Context: {current.context}")
        else:
            lines.append(f"{type(current).__name__}: {current}")
        current = current.__cause__

    return "\n".join(lines)


__all__ = [
    "AgroGHGException",
    "EngineError",
    "UnknownSubcategory",
    "FactorNotFound",
    "ActivityValidationError",
    "MissingFieldError",
    "InvalidValue",
    "CatalogError",
    "DataAccessError",
    "format_exception_chain",
]
