"""
Resolve a user-supplied location to a district, or to a point for spatial search.

Resolution order:
1. Postal code: exact match on ``districts.postal_code``.
2. Coordinate: the closest district whose stored centroid lies within a
   small lat/lon box around the point. Cheap pre-filter, not point-in-polygon.
3. Coordinate with no district nearby (or strategy ``geometry_only``): the
   point itself is returned and rent rows are matched by distance to their
   own geometry.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from rent_insights.core.exceptions import InvalidInput, NotFound
from rent_insights.models.district import District
from rent_insights.values import GeometryPoint

logger = logging.getLogger(__name__)

DISTRICT_FIRST = "district_first"
GEOMETRY_ONLY = "geometry_only"


@dataclass(frozen=True)
class LocationQuery:
    """Exactly one of a postal code or a coordinate."""

    postal_code: Optional[str] = None
    point: Optional[GeometryPoint] = None

    def __post_init__(self):
        if (self.postal_code is None) == (self.point is None):
            raise InvalidInput("Provide exactly one of postal_code or coordinate.")

    @property
    def cache_key(self) -> Tuple[str, str]:
        if self.point is not None:
            return ("coordinate", str(self.point))
        return ("postal_code", self.postal_code)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a location.

    ``district_number`` is set when a district matched; otherwise ``point``
    carries the coordinate for the distance-based fallback.
    """

    district_number: Optional[int] = None
    point: Optional[GeometryPoint] = None

    @property
    def uses_geometry(self) -> bool:
        return self.district_number is None and self.point is not None


class ResolutionCache:
    """Per-request memo of resolutions. Create one per incoming request."""

    def __init__(self):
        self._entries: Dict[Tuple[str, str], Resolution] = {}

    def get(self, location: LocationQuery) -> Optional[Resolution]:
        return self._entries.get(location.cache_key)

    def put(self, location: LocationQuery, resolution: Resolution) -> None:
        self._entries[location.cache_key] = resolution

    def __len__(self) -> int:
        return len(self._entries)


class DistrictResolver:
    """Map a LocationQuery to a Resolution."""

    def __init__(
        self,
        db: Session,
        tolerance: float = 0.01,
        strategy: str = DISTRICT_FIRST,
    ):
        if strategy not in (DISTRICT_FIRST, GEOMETRY_ONLY):
            raise ValueError(f"Unknown coordinate strategy: {strategy}")
        self.db = db
        self.tolerance = tolerance
        self.strategy = strategy

    def resolve(self, location: LocationQuery, cache: Optional[ResolutionCache] = None) -> Resolution:
        if cache is not None:
            cached = cache.get(location)
            if cached is not None:
                return cached

        if location.postal_code is not None:
            resolution = Resolution(district_number=self.by_postal_code(location.postal_code))
        else:
            resolution = self._resolve_point(location.point)

        if cache is not None:
            cache.put(location, resolution)
        return resolution

    def by_postal_code(self, postal_code: str) -> int:
        """
        Exact postal code lookup.

        Several districts share a postal code (one arrondissement holds four
        quartiers); the lowest district number is the canonical one.

        Raises:
            NotFound: no district has this postal code
        """
        district_number = self.db.execute(
            select(District.district_number)
            .where(District.postal_code == postal_code)
            .order_by(District.district_number)
            .limit(1)
        ).scalar_one_or_none()

        if district_number is None:
            raise NotFound(
                f"No district found for postal code {postal_code}",
                details={"postal_code": postal_code},
            )
        return district_number

    def by_coordinates(self, point: GeometryPoint) -> Optional[int]:
        """Closest district whose centroid is within ±tolerance degrees of the point."""
        lon, lat = point.longitude, point.latitude
        distance = (
            (District.longitude - lon) * (District.longitude - lon)
            + (District.latitude - lat) * (District.latitude - lat)
        )
        return self.db.execute(
            select(District.district_number)
            .where(
                District.longitude.between(lon - self.tolerance, lon + self.tolerance),
                District.latitude.between(lat - self.tolerance, lat + self.tolerance),
            )
            .order_by(distance, District.district_number)
            .limit(1)
        ).scalar_one_or_none()

    def _resolve_point(self, point: GeometryPoint) -> Resolution:
        if self.strategy == GEOMETRY_ONLY:
            return Resolution(point=point)

        district_number = self.by_coordinates(point)
        if district_number is None:
            logger.info("No district near %s, falling back to spatial search", point)
            return Resolution(point=point)
        return Resolution(district_number=district_number)
