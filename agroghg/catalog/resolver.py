# -*- coding: utf-8 -*-
"""
Factor Resolver

Selects the single authoritative emission factor for a subcategory and
optional species / system qualifiers.

Matching rules:
1. Subcategory: case-insensitive exact match
2. Species: the factor has no species restriction, or one of its species
   labels and the query contain each other (case-insensitive substring).
   Catalog "Bovinos" matches "Bovinos de Leite" and catalog
   "Bovinos de Leite" matches "Bovinos".
3. System: same rule as species
4. The first catalog entry satisfying 1-3, in declaration order, wins

Broad queries therefore depend on catalog order.
"""

import logging
from typing import Optional, Sequence

from agroghg.catalog.catalog import EmissionFactorCatalog, default_catalog
from agroghg.exceptions import FactorNotFound
from agroghg.models.emission_factor import EmissionFactor

logger = logging.getLogger(__name__)

DEFAULT_UNCERTAINTY_RANGE = "±50%"


def _qualifier_matches(labels: Optional[Sequence[str]], query: Optional[str]) -> bool:
    if not query or not labels:
        return True
    wanted = query.strip().lower()
    for label in labels:
        candidate = label.lower()
        if wanted in candidate or candidate in wanted:
            return True
    return False


class FactorResolver:
    """
    Resolves emission factors against a catalog.

    Args:
        catalog: Emission factor catalog (packaged catalog if None)
    """

    def __init__(self, catalog: Optional[EmissionFactorCatalog] = None):
        self.catalog = catalog or default_catalog()

    def find(
        self,
        subcategory: str,
        species: Optional[str] = None,
        system: Optional[str] = None,
    ) -> Optional[EmissionFactor]:
        """Return the first matching factor, or None."""
        for factor in self.catalog.factors_by_subcategory(subcategory):
            if _qualifier_matches(factor.applicable_species, species) and \
                    _qualifier_matches(factor.applicable_systems, system):
                return factor
        return None

    def resolve(
        self,
        subcategory: str,
        species: Optional[str] = None,
        system: Optional[str] = None,
    ) -> EmissionFactor:
        """
        Resolve the authoritative factor.

        Args:
            subcategory: Catalog subcategory label (e.g. 'Fermentação Entérica')
            species: Optional species qualifier (e.g. 'Bovinos de Leite')
            system: Optional system qualifier (e.g. 'Lagoa', 'Irrigado Contínuo')

        Returns:
            EmissionFactor

        Raises:
            FactorNotFound: If no catalog entry matches
        """
        factor = self.find(subcategory, species, system)
        if factor is None:
            logger.error(
                "Emission factor not found: subcategory=%s species=%s system=%s",
                subcategory, species, system,
            )
            raise FactorNotFound(subcategory, species=species, system=system)

        logger.debug("Resolved %s (species=%s, system=%s) -> %s", subcategory, species, system, factor.name)
        return factor

    def is_applicable(
        self,
        subcategory: str,
        species: Optional[str] = None,
        system: Optional[str] = None,
    ) -> bool:
        """True when a factor exists for the combination."""
        return self.find(subcategory, species, system) is not None

    def uncertainty_range(
        self,
        subcategory: str,
        species: Optional[str] = None,
        system: Optional[str] = None,
    ) -> str:
        """Uncertainty range of the resolved factor, ``±50%`` when unknown."""
        factor = self.find(subcategory, species, system)
        if factor is None or not factor.uncertainty_range:
            return DEFAULT_UNCERTAINTY_RANGE
        return factor.uncertainty_range


def resolve_factor(
    subcategory: str,
    species: Optional[str] = None,
    system: Optional[str] = None,
) -> EmissionFactor:
    """Resolve against the packaged catalog. See :meth:`FactorResolver.resolve`."""
    return FactorResolver().resolve(subcategory, species=species, system=system)
