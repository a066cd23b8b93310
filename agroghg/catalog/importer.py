# -*- coding: utf-8 -*-
"""
Catalog Importer

Upserts the reference catalog into a backing store of emission factors.

Each catalog entry is keyed by (name, category, source, type="system"):
the stored row is updated when it exists, inserted otherwise. A failing
entry is recorded in the report and the import moves on to the next one;
one bad row never blocks the rest of the catalog.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from agroghg.catalog.catalog import EmissionFactorCatalog, default_catalog
from agroghg.determinism import DeterministicClock
from agroghg.exceptions import format_exception_chain
from agroghg.models.emission_factor import EmissionFactor

logger = logging.getLogger(__name__)

SYSTEM_FACTOR_TYPE = "system"
VALIDATED_STATUS = "validated"


class FactorStore(Protocol):
    """Persistence operations the importer needs."""

    def find_factor_id(self, name: str, category: str, source: str, factor_type: str) -> Optional[Any]:
        ...

    def update_factor(self, factor_id: Any, values: Dict[str, Any]) -> None:
        ...

    def insert_factor(self, values: Dict[str, Any]) -> None:
        ...


@dataclass
class ImportReport:
    """
    Partial-success report of a catalog import.

    Attributes:
        success_count: Entries inserted or updated
        errors: One message per failed entry
        inserted_count: New rows
        updated_count: Existing rows refreshed
    """
    success_count: int = 0
    errors: List[str] = field(default_factory=list)
    inserted_count: int = 0
    updated_count: int = 0
    started_at: datetime = field(default_factory=DeterministicClock.utcnow)
    finished_at: Optional[datetime] = None

    @property
    def failed_count(self) -> int:
        return len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success_count': self.success_count,
            'failed_count': self.failed_count,
            'inserted_count': self.inserted_count,
            'updated_count': self.updated_count,
            'errors': list(self.errors),
            'started_at': self.started_at.isoformat(),
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
        }


def factor_to_row(factor: EmissionFactor) -> Dict[str, Any]:
    """Column values written for a catalog entry (key columns included)."""
    return {
        'name': factor.name,
        'category': factor.category,
        'source': factor.source,
        'type': SYSTEM_FACTOR_TYPE,
        'activity_unit': factor.activity_unit,
        'co2_factor': factor.co2_factor,
        'ch4_factor': factor.ch4_factor,
        'n2o_factor': factor.n2o_factor,
        'biogenic_fraction': factor.biogenic_fraction,
        'details_json': factor.details(),
        'validation_status': VALIDATED_STATUS,
    }


_KEY_COLUMNS = ('name', 'category', 'source', 'type')


class CatalogImporter:
    """
    Imports catalog entries into a FactorStore.

    Args:
        store: Backing store implementing FactorStore
    """

    def __init__(self, store: FactorStore):
        self.store = store

    def import_factors(self, catalog: Optional[EmissionFactorCatalog] = None) -> ImportReport:
        """
        Upsert every entry of the catalog.

        Args:
            catalog: Catalog to import (packaged catalog if None)

        Returns:
            ImportReport with success count and per-entry errors
        """
        catalog = catalog or default_catalog()
        report = ImportReport()

        logger.info(f"Importing {len(catalog)} emission factors ({catalog.methodology_version})")

        for factor in catalog:
            try:
                inserted = self._upsert(factor)
            except Exception as e:
                message = f"Failed to import {factor.name}: {e}"
                logger.error(message)
                logger.debug(format_exception_chain(e))
                report.errors.append(message)
                continue

            report.success_count += 1
            if inserted:
                report.inserted_count += 1
            else:
                report.updated_count += 1

        report.finished_at = DeterministicClock.utcnow()
        logger.info(
            f"Import finished: {report.success_count} succeeded "
            f"({report.inserted_count} inserted, {report.updated_count} updated), "
            f"{report.failed_count} failed"
        )
        return report

    def _upsert(self, factor: EmissionFactor) -> bool:
        """Update or insert one factor. Returns True when inserted."""
        row = factor_to_row(factor)
        existing_id = self.store.find_factor_id(
            factor.name, factor.category, factor.source, SYSTEM_FACTOR_TYPE
        )
        if existing_id is not None:
            values = {k: v for k, v in row.items() if k not in _KEY_COLUMNS}
            self.store.update_factor(existing_id, values)
            return False

        self.store.insert_factor(row)
        return True
