# -*- coding: utf-8 -*-
"""
AgroGHG Models Package

Core data models for emission factors and activity data.
"""

from .activity import NUMERIC_FIELDS, ActivityData
from .emission_factor import DEFAULT_METHODOLOGY, DEFAULT_SOURCE, EmissionFactor

__all__ = [
    "ActivityData",
    "EmissionFactor",
    "NUMERIC_FIELDS",
    "DEFAULT_SOURCE",
    "DEFAULT_METHODOLOGY",
]
