"""
SQLAlchemy-backed emission factor store used by the catalog importer.

Each write is committed on its own so that a failing row is rolled back
alone and the import continues with the next entry.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agroghg.db.base import create_db_engine, get_session_factory, init_db
from agroghg.db.models import EmissionFactorRow
from agroghg.exceptions import DataAccessError

logger = logging.getLogger(__name__)

DATA_SOURCE = EmissionFactorRow.__tablename__


class SQLAlchemyFactorStore:
    """
    FactorStore over the ``emission_factors`` table.

    Args:
        session: Open SQLAlchemy session (owned by the caller)
        engine: Engine owned by the store, disposed on close (set by from_url)
    """

    def __init__(self, session: Session, engine: Optional[Engine] = None):
        self.session = session
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "SQLAlchemyFactorStore":
        """Open a store on a database URL, creating the table if needed."""
        try:
            engine = create_db_engine(database_url)
            init_db(engine)
        except SQLAlchemyError as e:
            raise DataAccessError(
                f"Cannot open emission factor store at {database_url}",
                data_source=DATA_SOURCE,
                operation="connect",
                cause=e,
            ) from e
        return cls(get_session_factory(engine)(), engine=engine)

    def close(self) -> None:
        self.session.close()
        if self.engine is not None:
            self.engine.dispose()

    def find_factor_id(self, name: str, category: str, source: str, factor_type: str) -> Optional[int]:
        stmt = select(EmissionFactorRow.id).where(
            EmissionFactorRow.name == name,
            EmissionFactorRow.category == category,
            EmissionFactorRow.source == source,
            EmissionFactorRow.type == factor_type,
        )
        try:
            return self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DataAccessError(
                f"Failed to look up factor {name}",
                data_source=DATA_SOURCE,
                operation="select",
                cause=e,
            ) from e

    def update_factor(self, factor_id: int, values: Dict[str, Any]) -> None:
        try:
            row = self.session.get(EmissionFactorRow, factor_id)
            if row is None:
                raise DataAccessError(
                    f"Factor {factor_id} disappeared before update",
                    context={"factor_id": factor_id},
                    data_source=DATA_SOURCE,
                    operation="update",
                )
            for key, value in values.items():
                setattr(row, key, value)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DataAccessError(
                f"Failed to update factor {factor_id}",
                context={"factor_id": factor_id},
                data_source=DATA_SOURCE,
                operation="update",
                cause=e,
            ) from e
        logger.debug("Updated emission factor %s", factor_id)

    def insert_factor(self, values: Dict[str, Any]) -> None:
        try:
            self.session.add(EmissionFactorRow(**values))
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DataAccessError(
                f"Failed to insert factor {values.get('name')}",
                data_source=DATA_SOURCE,
                operation="insert",
                cause=e,
            ) from e
        logger.debug("Inserted emission factor %s", values.get("name"))

    def list_factors(self, category: Optional[str] = None) -> List[EmissionFactorRow]:
        """Stored rows ordered by id."""
        stmt = select(EmissionFactorRow).order_by(EmissionFactorRow.id)
        if category:
            stmt = stmt.where(EmissionFactorRow.category == category)
        try:
            return list(self.session.execute(stmt).scalars())
        except SQLAlchemyError as e:
            raise DataAccessError(
                "Failed to list emission factors",
                data_source=DATA_SOURCE,
                operation="select",
                cause=e,
            ) from e
