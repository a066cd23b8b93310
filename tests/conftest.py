# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

import pytest

from agroghg.calculation import EmissionCalculator
from agroghg.catalog import default_catalog
from agroghg.config import reset_config
from agroghg.db import SQLAlchemyFactorStore


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from AGROGHG_* settings of the host."""
    for name in ("DATABASE_URL", "CATALOG_PATH", "LOG_LEVEL", "NORMALIZE_MINERAL_CO2_UNITS"):
        monkeypatch.delenv(f"AGROGHG_{name}", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="session")
def catalog():
    """Packaged GHG Protocol Brasil catalog."""
    return default_catalog()


@pytest.fixture
def calculator(catalog):
    """Calculator with the published mineral CO2 behaviour."""
    return EmissionCalculator(catalog)


@pytest.fixture
def normalized_calculator(catalog):
    """Calculator dividing liming and urea CO2 by 1000."""
    return EmissionCalculator(catalog, normalize_mineral_co2_units=True)


@pytest.fixture
def sqlite_store():
    """Emission factor store over an in-memory SQLite database."""
    store = SQLAlchemyFactorStore.from_url("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def dairy_activity():
    return {"species": "Bovinos de Leite", "animal_count": 1000}


@pytest.fixture
def sugarcane_activity():
    return {"crop_type": "Cana-de-açúcar", "residue_amount": 100}
