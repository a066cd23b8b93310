# -*- coding: utf-8 -*-
"""
Emission Factor Catalog

Immutable, methodology-versioned reference list of agricultural emission
factors. The packaged catalog is GHG Protocol Brasil 2025.0.1 and lives in
``agroghg/data/agriculture_factors.yaml``.

The catalog keeps two views of the same factors:
- the full tuple in declaration order
- a per-subcategory index (case-insensitive key) whose buckets keep
  declaration order, so "first match wins" resolution never rescans the
  whole list
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from agroghg.exceptions import CatalogError
from agroghg.models.emission_factor import DEFAULT_SOURCE, EmissionFactor

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "data" / "agriculture_factors.yaml"

ENTERIC_FERMENTATION = "Fermentação Entérica"
MANURE_MANAGEMENT = "Manejo de Dejetos"
RICE_CULTIVATION = "Cultivo de Arroz"


def _key(subcategory: str) -> str:
    return subcategory.strip().lower()


class EmissionFactorCatalog:
    """
    Read-only emission factor catalog.

    Args:
        factors: Factors in declaration order (order is a behavioural contract)
        methodology_version: Published methodology the factors belong to
    """

    def __init__(
        self,
        factors: Iterable[EmissionFactor],
        methodology_version: str = DEFAULT_SOURCE,
    ):
        self._factors: Tuple[EmissionFactor, ...] = tuple(factors)
        self.methodology_version = methodology_version

        buckets: Dict[str, List[EmissionFactor]] = {}
        for factor in self._factors:
            buckets.setdefault(_key(factor.subcategory), []).append(factor)
        self._index: Dict[str, Tuple[EmissionFactor, ...]] = {
            key: tuple(bucket) for key, bucket in buckets.items()
        }

    def __iter__(self) -> Iterator[EmissionFactor]:
        return iter(self._factors)

    def __len__(self) -> int:
        return len(self._factors)

    def __repr__(self) -> str:
        return f"EmissionFactorCatalog({self.methodology_version!r}, {len(self)} factors)"

    @property
    def factors(self) -> Tuple[EmissionFactor, ...]:
        return self._factors

    def factors_by_subcategory(self, subcategory: str) -> Tuple[EmissionFactor, ...]:
        """All factors of a subcategory, in declaration order."""
        return self._index.get(_key(subcategory), ())

    def subcategories(self) -> List[str]:
        """Subcategory labels in order of first appearance."""
        seen: Dict[str, str] = {}
        for factor in self._factors:
            seen.setdefault(_key(factor.subcategory), factor.subcategory)
        return list(seen.values())

    def available_species(self, subcategory: str = ENTERIC_FERMENTATION) -> List[str]:
        """Sorted, unique species labels declared for a subcategory."""
        species = {
            label
            for factor in self.factors_by_subcategory(subcategory)
            for label in factor.applicable_species or ()
        }
        return sorted(species)

    def available_systems(self, subcategory: str) -> List[str]:
        """Sorted, unique system labels declared for a subcategory."""
        systems = {
            label
            for factor in self.factors_by_subcategory(subcategory)
            for label in factor.applicable_systems or ()
        }
        return sorted(systems)

    def available_manure_systems(self) -> List[str]:
        return self.available_systems(MANURE_MANAGEMENT)

    def available_rice_systems(self) -> List[str]:
        return self.available_systems(RICE_CULTIVATION)

    def is_biogenic(self, subcategory: str) -> bool:
        """True if any factor of the subcategory emits biogenic CO2."""
        return any(factor.is_biogenic for factor in self.factors_by_subcategory(subcategory))


def load_catalog(path: Optional[Union[str, Path]] = None) -> EmissionFactorCatalog:
    """
    Load and validate a catalog YAML file.

    The file has a ``metadata`` mapping (``methodology_version``,
    ``category``) and a ``factors`` list. ``category`` and ``source`` default
    to the metadata values when an entry omits them.

    Args:
        path: Catalog file (defaults to the packaged GHG Protocol Brasil catalog)

    Returns:
        EmissionFactorCatalog

    Raises:
        CatalogError: If the file is missing, unparsable or has an invalid entry
    """
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH

    try:
        with open(catalog_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise CatalogError(
            f"Emission factor catalog not found: {catalog_path}",
            context={"catalog_path": str(catalog_path)},
        ) from e
    except yaml.YAMLError as e:
        raise CatalogError(
            f"Failed to parse emission factor catalog: {e}",
            context={"catalog_path": str(catalog_path)},
        ) from e

    if not isinstance(data, dict) or not isinstance(data.get("factors"), list):
        raise CatalogError(
            "Catalog must contain a 'factors' list",
            context={"catalog_path": str(catalog_path)},
        )

    metadata: Dict[str, Any] = data.get("metadata") or {}
    methodology_version = metadata.get("methodology_version", DEFAULT_SOURCE)
    default_category = metadata.get("category")

    factors = []
    for position, entry in enumerate(data["factors"]):
        if not isinstance(entry, dict):
            raise CatalogError(
                f"Catalog entry {position} is not a mapping",
                context={"catalog_path": str(catalog_path), "position": position},
            )
        entry = dict(entry)
        entry.setdefault("source", methodology_version)
        if default_category:
            entry.setdefault("category", default_category)
        try:
            factors.append(EmissionFactor.model_validate(entry))
        except ValidationError as e:
            raise CatalogError(
                f"Catalog entry {position} ({entry.get('name', '?')}) is invalid",
                context={
                    "catalog_path": str(catalog_path),
                    "position": position,
                    "errors": [err["msg"] for err in e.errors()],
                },
            ) from e

    logger.info(f"Loaded {len(factors)} emission factors ({methodology_version}) from {catalog_path}")
    return EmissionFactorCatalog(factors, methodology_version=methodology_version)


@lru_cache(maxsize=1)
def default_catalog() -> EmissionFactorCatalog:
    """Packaged catalog, loaded once per process."""
    return load_catalog()
