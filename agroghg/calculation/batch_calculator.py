"""
Batch Calculator

Runs many activity records through the emission calculator.

Features:
- Records processed in input order
- Error isolation (one bad record doesn't stop the batch)
- Fossil / biogenic / total aggregation, totals per subcategory
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from agroghg.calculation.core_calculator import EmissionCalculator, EmissionResult
from agroghg.determinism import DeterministicClock
from agroghg.exceptions import EngineError, MissingFieldError

logger = logging.getLogger(__name__)

SUBCATEGORY_KEY = "subcategory"


@dataclass
class BatchItem:
    """
    Outcome of one batch record.

    Attributes:
        index: Position of the record in the input
        subcategory: Subcategory as supplied by the record
        result: EmissionResult on success
        error: Error message on failure
        error_code: Exception error code on failure
    """
    index: int
    subcategory: Optional[str]
    result: Optional[EmissionResult] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'subcategory': self.subcategory,
            'result': self.result.to_dict() if self.result else None,
            'error': self.error,
            'error_code': self.error_code,
        }


@dataclass
class BatchResult:
    """
    Result of batch calculation.

    Attributes:
        items: Per-record outcomes, in input order
        successful_count: Number of successful calculations
        failed_count: Number of failed calculations
        fossil_co2e: Sum of fossil CO2e (t)
        biogenic_co2e: Sum of biogenic CO2e (t)
        total_co2e: Sum of total CO2e (t)
        totals_by_subcategory: Total CO2e per canonical subcategory label
    """
    items: List[BatchItem]
    successful_count: int = 0
    failed_count: int = 0
    fossil_co2e: Decimal = Decimal(0)
    biogenic_co2e: Decimal = Decimal(0)
    total_co2e: Decimal = Decimal(0)
    totals_by_subcategory: Dict[str, Decimal] = field(default_factory=dict)
    batch_start_time: datetime = field(default_factory=DeterministicClock.utcnow)

    def __post_init__(self):
        """Calculate summary statistics"""
        results = self.results
        self.successful_count = len(results)
        self.failed_count = len(self.items) - len(results)

        self.fossil_co2e = sum((r.fossil_co2e for r in results), Decimal(0))
        self.biogenic_co2e = sum((r.biogenic_co2e for r in results), Decimal(0))
        self.total_co2e = sum((r.total_co2e for r in results), Decimal(0))

        totals: Dict[str, Decimal] = {}
        for r in results:
            totals[r.subcategory] = totals.get(r.subcategory, Decimal(0)) + r.total_co2e
        self.totals_by_subcategory = totals

    @property
    def results(self) -> List[EmissionResult]:
        return [item.result for item in self.items if item.result is not None]

    def get_failed_items(self) -> List[BatchItem]:
        """Get all failed records"""
        return [item for item in self.items if not item.succeeded]

    def get_errors(self) -> List[str]:
        """Get all error messages"""
        return [f"#{item.index}: {item.error}" for item in self.get_failed_items()]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'total_records': len(self.items),
            'successful_count': self.successful_count,
            'failed_count': self.failed_count,
            'fossil_co2e': str(self.fossil_co2e),
            'biogenic_co2e': str(self.biogenic_co2e),
            'total_co2e': str(self.total_co2e),
            'totals_by_subcategory': {k: str(v) for k, v in self.totals_by_subcategory.items()},
            'items': [item.to_dict() for item in self.items],
            'batch_start_time': self.batch_start_time.isoformat(),
        }


class BatchCalculator:
    """
    Sequential batch calculator.

    Each record is a mapping with a ``subcategory`` key plus activity fields
    (snake_case or camelCase).
    """

    def __init__(self, emission_calculator: Optional[EmissionCalculator] = None):
        """
        Initialize batch calculator.

        Args:
            emission_calculator: Core calculator (auto-creates if None)
        """
        self.calculator = emission_calculator or EmissionCalculator()

    def calculate_batch(
        self,
        records: Iterable[Mapping[str, Any]],
        progress_callback: Optional[Callable[[int, int], None]] = None,
        continue_on_error: bool = True,
    ) -> BatchResult:
        """
        Calculate emissions for a batch of records.

        Args:
            records: Activity records, each with a ``subcategory`` key
            progress_callback: Optional callback function(completed, total)
            continue_on_error: Record engine errors and keep going (raise if False)

        Returns:
            BatchResult with per-record outcomes and totals

        Example:
            >>> batch = BatchCalculator().calculate_batch([
            ...     {"subcategory": "Fermentação Entérica", "species": "Bovinos de Leite", "animal_count": 1000},
            ...     {"subcategory": "ureia", "urea_amount": 10},
            ... ])
            >>> batch.total_co2e
            Decimal('3207.330')
        """
        records = list(records)
        start_time = DeterministicClock.utcnow()
        items = []

        logger.info(f"Starting batch calculation: {len(records)} records")

        for index, record in enumerate(records):
            items.append(self._safe_calculate(index, record, continue_on_error))
            if progress_callback:
                progress_callback(index + 1, len(records))

        batch_result = BatchResult(items=items, batch_start_time=start_time)

        logger.info(
            f"Batch calculation completed: {batch_result.successful_count} succeeded, "
            f"{batch_result.failed_count} failed, total {batch_result.total_co2e} t CO2e"
        )
        return batch_result

    def _safe_calculate(
        self,
        index: int,
        record: Mapping[str, Any],
        continue_on_error: bool,
    ) -> BatchItem:
        """
        Execute one calculation, capturing engine errors.

        Args:
            index: Record position
            record: Activity record
            continue_on_error: Whether to return a failed item or raise

        Returns:
            BatchItem (may carry an error)
        """
        subcategory = record.get(SUBCATEGORY_KEY)
        try:
            if not subcategory:
                raise MissingFieldError(SUBCATEGORY_KEY)
            activity = {k: v for k, v in record.items() if k != SUBCATEGORY_KEY}
            result = self.calculator.calculate(subcategory, activity)
        except EngineError as e:
            logger.error(f"Calculation failed for record #{index} ({subcategory}): {e}")
            if not continue_on_error:
                raise
            return BatchItem(
                index=index,
                subcategory=subcategory,
                error=e.message,
                error_code=e.error_code,
            )

        return BatchItem(index=index, subcategory=subcategory, result=result)
