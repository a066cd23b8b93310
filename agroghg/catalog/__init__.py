# -*- coding: utf-8 -*-
"""
Emission factor catalog, resolver and importer.
"""

from agroghg.catalog.catalog import (
    DEFAULT_CATALOG_PATH,
    EmissionFactorCatalog,
    default_catalog,
    load_catalog,
)
from agroghg.catalog.resolver import FactorResolver, resolve_factor
from agroghg.catalog.importer import CatalogImporter, FactorStore, ImportReport

__all__ = [
    "DEFAULT_CATALOG_PATH",
    "EmissionFactorCatalog",
    "default_catalog",
    "load_catalog",
    "FactorResolver",
    "resolve_factor",
    "CatalogImporter",
    "FactorStore",
    "ImportReport",
]
