"""
Database module for AgroGHG
Provides the emission factor table and the SQLAlchemy factor store
"""

from agroghg.db.base import Base, create_db_engine, get_engine, get_session, init_db, reset_engine
from agroghg.db.models import EmissionFactorRow
from agroghg.db.factor_store import SQLAlchemyFactorStore

__all__ = [
    "Base",
    "create_db_engine",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
    "EmissionFactorRow",
    "SQLAlchemyFactorStore",
]
