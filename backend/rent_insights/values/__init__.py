"""Immutable, always-valid value objects."""

from rent_insights.values.construction_period import ConstructionPeriod
from rent_insights.values.geometry import (
    FRANCE_BOUNDS,
    BoundingBox,
    Centroid,
    GeometryPoint,
    GeometryShape,
)
from rent_insights.values.money import Money

__all__ = [
    "ConstructionPeriod",
    "FRANCE_BOUNDS",
    "BoundingBox",
    "Centroid",
    "GeometryPoint",
    "GeometryShape",
    "Money",
]
