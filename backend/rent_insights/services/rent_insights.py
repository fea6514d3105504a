"""
Rent insights: the min / max / average reference rent for a location and filters.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from geoalchemy2 import Geography
from geoalchemy2 import functions as geo_func
from sqlalchemy import Select, cast, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from rent_insights.core.cache import KEY_PREFIX, cache_get_json, cache_set_json
from rent_insights.core.config import settings
from rent_insights.core.exceptions import InvalidInput, ServiceUnavailable
from rent_insights.models.codecs import money_from_column
from rent_insights.models.unit import Unit
from rent_insights.services.district_resolver import (
    DistrictResolver,
    LocationQuery,
    Resolution,
    ResolutionCache,
)
from rent_insights.values import ConstructionPeriod, Money

logger = logging.getLogger(__name__)

MIN_ROOMS = 1
MAX_ROOMS = 5


@dataclass(frozen=True)
class RentFilters:
    construction_period: ConstructionPeriod
    number_of_rooms: int
    furnished: bool
    year: Optional[int] = None

    def __post_init__(self):
        if not MIN_ROOMS <= self.number_of_rooms <= MAX_ROOMS:
            raise InvalidInput(
                f"number_of_rooms must be between {MIN_ROOMS} and {MAX_ROOMS}",
                details={"number_of_rooms": self.number_of_rooms},
            )


@dataclass(frozen=True)
class RentBand:
    max_rent: Money
    min_rent: Money
    average_rent: Money

    @classmethod
    def empty(cls) -> "RentBand":
        return cls(Money.zero(), Money.zero(), Money.zero())

    @classmethod
    def from_aggregates(cls, max_rent: Any, min_rent: Any, average_rent: Any) -> "RentBand":
        """Zero matched rows yields NULL aggregates, which become zero Money."""
        return cls(
            max_rent=money_from_column(max_rent),
            min_rent=money_from_column(min_rent),
            average_rent=money_from_column(average_rent),
        )

    def to_euros(self) -> Dict[str, float]:
        return {
            "max_rent": round(self.max_rent.euro(), 2),
            "min_rent": round(self.min_rent.euro(), 2),
            "average_rent": round(self.average_rent.euro(), 2),
        }

    def to_subunits(self) -> Dict[str, int]:
        return {
            "max_rent": self.max_rent.amount(),
            "min_rent": self.min_rent.amount(),
            "average_rent": self.average_rent.amount(),
        }

    @classmethod
    def from_subunits(cls, data: Dict[str, int]) -> "RentBand":
        return cls(
            max_rent=Money.from_subunits(data["max_rent"]),
            min_rent=Money.from_subunits(data["min_rent"]),
            average_rent=Money.from_subunits(data["average_rent"]),
        )


class RentInsightsQuery:
    """
    Resolve the location, filter rent rows and aggregate them in one read.

    Aggregation runs on the stored subunits; the three results are converted to
    Money once. A database outage surfaces as ServiceUnavailable without retry.
    """

    def __init__(
        self,
        db: Session,
        location: LocationQuery,
        filters: RentFilters,
        resolver: Optional[DistrictResolver] = None,
        cache: Optional[ResolutionCache] = None,
        radius_meters: Optional[float] = None,
    ):
        self.db = db
        self.location = location
        self.filters = filters
        self.resolver = resolver or DistrictResolver(
            db,
            tolerance=settings.DISTRICT_COORDINATE_TOLERANCE,
            strategy=settings.COORDINATE_STRATEGY,
        )
        self.cache = cache if cache is not None else ResolutionCache()
        self.radius_meters = radius_meters if radius_meters is not None else settings.SEARCH_RADIUS_METERS

    def execute(self) -> RentBand:
        try:
            resolution = self.resolver.resolve(self.location, self.cache)
            row = self.db.execute(self.build_statement(resolution)).one()
        except OperationalError as e:
            logger.error(f"Database unavailable while computing rent insights: {e}")
            raise ServiceUnavailable("Database unavailable") from e

        band = RentBand.from_aggregates(row.max_rent, row.min_rent, row.average_rent)
        if band == RentBand.empty():
            logger.info(f"No rent data for {self.location} with {self.filters}")
        return band

    def build_statement(self, resolution: Resolution) -> Select:
        stmt = select(
            func.max(Unit.maximum_rent).label("max_rent"),
            func.min(Unit.minimum_rent).label("min_rent"),
            func.avg(Unit.reference_rent).label("average_rent"),
        ).where(
            Unit.construction_period == int(self.filters.construction_period),
            Unit.number_of_rooms == self.filters.number_of_rooms,
            Unit.rental_type == self.filters.furnished,
        )

        if self.filters.year is not None:
            stmt = stmt.where(Unit.year == self.filters.year)

        if resolution.district_number is not None:
            return stmt.where(Unit.district_number == resolution.district_number)

        return stmt.where(self._within_radius(resolution))

    def _within_radius(self, resolution: Resolution):
        # geography cast so the radius is in metres, not degrees
        point = geo_func.ST_SetSRID(
            geo_func.ST_MakePoint(resolution.point.longitude, resolution.point.latitude), 4326
        )
        return geo_func.ST_DWithin(
            cast(Unit.geometry_shape, Geography(srid=4326)),
            cast(point, Geography(srid=4326)),
            self.radius_meters,
        )


def _cache_key(location: LocationQuery, filters: RentFilters) -> str:
    kind, value = location.cache_key
    return (
        f"{KEY_PREFIX}{kind}={value}:period={int(filters.construction_period)}"
        f":rooms={filters.number_of_rooms}:furnished={int(filters.furnished)}:year={filters.year}"
    )


def get_rent_insights(
    db: Session,
    location: LocationQuery,
    filters: RentFilters,
    cache: Optional[ResolutionCache] = None,
) -> RentBand:
    """Run RentInsightsQuery, going through the Redis response cache when enabled."""
    ttl = settings.RENT_INSIGHTS_CACHE_TTL
    key = _cache_key(location, filters)

    if ttl > 0:
        cached = cache_get_json(key)
        if cached is not None:
            try:
                return RentBand.from_subunits(cached)
            except (KeyError, TypeError, InvalidInput):
                logger.warning(f"Ignoring malformed cache entry key={key}")

    band = RentInsightsQuery(db, location, filters, cache=cache).execute()

    if ttl > 0:
        cache_set_json(key, band.to_subunits(), ttl=ttl)
    return band
