# -*- coding: utf-8 -*-
"""
Agricultural emission subcategories.

Each calculation branch is a ``Subcategory`` variant whose value is the
catalog label. Caller strings are normalized (case, accents, underscores,
extra spaces) and looked up in an alias table; anything unknown raises
``UnknownSubcategory`` instead of falling through.
"""

import unicodedata
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from agroghg.exceptions import UnknownSubcategory


class Subcategory(str, Enum):
    """Calculation branches (values are catalog subcategory labels)."""
    ENTERIC_FERMENTATION = "Fermentação Entérica"
    MANURE_MANAGEMENT = "Manejo de Dejetos"
    RICE_CULTIVATION = "Cultivo de Arroz"
    AGRICULTURAL_SOILS = "Solos Agrícolas"
    RESIDUE_BURNING = "Queima de Resíduos"
    LIMING = "Calcagem"
    UREA_APPLICATION = "Aplicação de Ureia"

    @property
    def label(self) -> str:
        return self.value


# Activity field holding the quantity of each branch
REQUIRED_FIELDS: Dict[Subcategory, str] = {
    Subcategory.ENTERIC_FERMENTATION: "animal_count",
    Subcategory.MANURE_MANAGEMENT: "animal_count",
    Subcategory.RICE_CULTIVATION: "cultivated_area",
    Subcategory.AGRICULTURAL_SOILS: "nitrogen_amount",
    Subcategory.RESIDUE_BURNING: "residue_amount",
    Subcategory.LIMING: "limestone_amount",
    Subcategory.UREA_APPLICATION: "urea_amount",
}

# (species field, system field) passed to the resolver
QUALIFIER_FIELDS: Dict[Subcategory, Tuple[Optional[str], Optional[str]]] = {
    Subcategory.ENTERIC_FERMENTATION: ("species", None),
    Subcategory.MANURE_MANAGEMENT: ("species", "manure_system"),
    Subcategory.RICE_CULTIVATION: (None, "rice_type"),
    Subcategory.AGRICULTURAL_SOILS: (None, None),
    Subcategory.RESIDUE_BURNING: (None, None),
    Subcategory.LIMING: (None, None),
    Subcategory.UREA_APPLICATION: (None, None),
}


def _fold(value: str) -> str:
    """Lowercase, strip accents, treat '_' as a space, collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.replace("_", " ").lower().split())


_ALIASES: Dict[str, Subcategory] = {}


def _register(subcategory: Subcategory, *aliases: str) -> None:
    for alias in (subcategory.value, subcategory.name) + aliases:
        _ALIASES[_fold(alias)] = subcategory


_register(Subcategory.ENTERIC_FERMENTATION, "fermentacao_enterica")
_register(Subcategory.MANURE_MANAGEMENT, "manejo_dejetos", "manejo de dejetos animais")
_register(Subcategory.RICE_CULTIVATION, "cultivo_arroz", "cultivo de arroz irrigado")
_register(Subcategory.AGRICULTURAL_SOILS, "solos_agricolas")
_register(
    Subcategory.RESIDUE_BURNING,
    "queima_residuos",
    "queima de residuos agricolas",
    "crop residue burning",
)
_register(Subcategory.LIMING, "aplicacao de calcario")
_register(Subcategory.UREA_APPLICATION, "ureia", "aplicacao_ureia", "urea")


def normalize_subcategory(value: Union[str, Subcategory]) -> Subcategory:
    """
    Map a caller-supplied subcategory string to its variant.

    Example:
        >>> normalize_subcategory("fermentacao_enterica")
        <Subcategory.ENTERIC_FERMENTATION: 'Fermentação Entérica'>

    Raises:
        UnknownSubcategory: If the string is not a known label or alias
    """
    if isinstance(value, Subcategory):
        return value
    if not isinstance(value, str):
        raise UnknownSubcategory(repr(value))
    try:
        return _ALIASES[_fold(value)]
    except KeyError:
        raise UnknownSubcategory(value) from None


def known_aliases() -> Dict[str, Subcategory]:
    """Copy of the normalized alias table."""
    return dict(_ALIASES)
