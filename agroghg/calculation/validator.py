# -*- coding: utf-8 -*-
"""
Activity Validator

Checks an activity payload against the branch it is calculated with:

1. The branch's quantity field must be present (fails fast, never zero-filled)
2. Every numeric field present must be a finite number >= 0
3. burning_efficiency_percent must not exceed 100

Zero is a valid quantity and yields zero emissions.
"""

import logging
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from agroghg.calculation.subcategories import REQUIRED_FIELDS, Subcategory, normalize_subcategory
from agroghg.exceptions import InvalidValue, MissingFieldError
from agroghg.models.activity import NUMERIC_FIELDS, ActivityData

logger = logging.getLogger(__name__)

MAX_BURNING_EFFICIENCY = Decimal(100)

ActivityInput = Union[ActivityData, Mapping[str, Any], None]


def coerce_activity(activity: ActivityInput) -> ActivityData:
    """Parse a raw mapping into ActivityData (ActivityData passes through)."""
    if isinstance(activity, ActivityData):
        return activity
    return ActivityData.from_mapping(activity or {})


def validate(subcategory: Union[str, Subcategory], activity: ActivityInput) -> ActivityData:
    """
    Validate activity data for a subcategory.

    Args:
        subcategory: Subcategory label, alias or variant
        activity: ActivityData or raw mapping

    Returns:
        Parsed ActivityData

    Raises:
        UnknownSubcategory: If the subcategory has no branch
        MissingFieldError: If the branch's quantity field is absent
        InvalidValue: If a numeric field is negative, non-finite or unparsable
    """
    variant = normalize_subcategory(subcategory)
    data = coerce_activity(activity)

    required = REQUIRED_FIELDS[variant]
    if getattr(data, required) is None:
        logger.debug("Missing %s for %s", required, variant.label)
        raise MissingFieldError(required, subcategory=variant.label)

    for name in NUMERIC_FIELDS:
        value: Optional[Decimal] = getattr(data, name)
        if value is None:
            continue
        if not value.is_finite() or value < 0:
            raise InvalidValue(name, value=value, subcategory=variant.label)

    efficiency = data.burning_efficiency_percent
    if efficiency is not None and efficiency > MAX_BURNING_EFFICIENCY:
        raise InvalidValue(
            "burning_efficiency_percent",
            value=efficiency,
            reason="must be between 0 and 100",
            subcategory=variant.label,
        )

    return data
