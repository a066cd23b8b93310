"""
Database models for the emission factor store

One row per imported catalog entry, keyed by (name, category, source, type).
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    JSON,
    Numeric,
    String,
    UniqueConstraint,
)

from agroghg.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class EmissionFactorRow(Base):
    """Stored emission factor"""

    __tablename__ = "emission_factors"
    __table_args__ = (
        UniqueConstraint("name", "category", "source", "type", name="uq_emission_factor_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Upsert key
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    source = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, default="system")  # system, custom

    # Factors (kg gas per activity unit)
    activity_unit = Column(String(50), nullable=False)
    co2_factor = Column(Numeric(20, 6), nullable=True)
    ch4_factor = Column(Numeric(20, 6), nullable=True)
    n2o_factor = Column(Numeric(20, 6), nullable=True)
    biogenic_fraction = Column(Numeric(5, 4), nullable=False, default=0)

    # Subcategory, methodology, species/systems, uncertainty
    details_json = Column(JSON, nullable=True)

    validation_status = Column(String(50), nullable=False, default="validated")

    # Timestamps
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<EmissionFactorRow {self.id} {self.name!r} ({self.source})>"
