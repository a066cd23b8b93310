# -*- coding: utf-8 -*-
"""
Activity data model.

Caller-supplied activity payload for a single calculation. Field names are
snake_case; the camelCase names used by web forms (``animalCount``,
``burningEfficiencyPercent``...) are accepted as aliases.

The model only parses and converts. Presence of the required field and
sign checks belong to :mod:`agroghg.calculation.validator`, so that a missing
field is reported as ``MissingFieldError`` and never defaults to zero.
"""

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from agroghg.determinism import EmissionDecimal
from agroghg.exceptions import InvalidValue


NUMERIC_FIELDS = (
    "animal_count",
    "cultivated_area",
    "nitrogen_amount",
    "residue_amount",
    "burning_efficiency_percent",
    "limestone_amount",
    "urea_amount",
)


class ActivityData(BaseModel):
    """Activity data for one agricultural emission source."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    subcategory: Optional[str] = None

    # Livestock
    animal_count: Optional[Decimal] = Field(default=None, alias="animalCount")
    species: Optional[str] = None
    manure_system: Optional[str] = Field(default=None, alias="manureSystem")

    # Rice
    cultivated_area: Optional[Decimal] = Field(default=None, alias="cultivatedArea")
    rice_type: Optional[str] = Field(default=None, alias="riceType")

    # Soils
    nitrogen_amount: Optional[Decimal] = Field(default=None, alias="nitrogenAmount")
    fertilizer_type: Optional[str] = Field(default=None, alias="fertilizerType")

    # Residue burning
    residue_amount: Optional[Decimal] = Field(default=None, alias="residueAmount")
    crop_type: Optional[str] = Field(default=None, alias="cropType")
    burning_efficiency_percent: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices(
            "burning_efficiency_percent",
            "burningEfficiencyPercent",
            "burningEfficiency",
        ),
    )

    # Mineral CO2 sources
    limestone_amount: Optional[Decimal] = Field(default=None, alias="limestoneAmount")
    urea_amount: Optional[Decimal] = Field(default=None, alias="ureaAmount")

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def _numeric_to_decimal(cls, value: Any) -> Any:
        if value is None:
            return None
        try:
            return EmissionDecimal.from_any(value)
        except TypeError as e:
            raise ValueError(str(e)) from e

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ActivityData":
        """
        Parse a raw payload.

        Args:
            data: Mapping with snake_case or camelCase keys

        Returns:
            ActivityData

        Raises:
            InvalidValue: If a field cannot be parsed (e.g. ``"abc"`` for a count)
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            error = e.errors()[0]
            loc = str(error["loc"][0]) if error.get("loc") else "activity"
            raise InvalidValue(
                _FIELD_BY_ALIAS.get(loc, loc),
                value=error.get("input"),
                reason=error.get("msg", "invalid value"),
            ) from e

    def provided(self) -> Dict[str, Any]:
        """Fields the caller actually supplied, keyed by snake_case name."""
        return self.model_dump(exclude_none=True)


_FIELD_BY_ALIAS: Dict[str, str] = {"burningEfficiency": "burning_efficiency_percent"}
for _name, _field in ActivityData.model_fields.items():
    _FIELD_BY_ALIAS[_name] = _name
    if _field.alias:
        _FIELD_BY_ALIAS[_field.alias] = _name
_FIELD_BY_ALIAS["burningEfficiencyPercent"] = "burning_efficiency_percent"
