"""
Geographic value objects: validated points and polygons.

Both are immutable and validated at construction, so an instance that exists
is always in bounds. Polygon coordinates keep the exact decimal digits of the
source payload; they are never round-tripped through binary floats.
"""

import json
import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from numbers import Number
from typing import Any, Iterable, NamedTuple, Sequence, Tuple

from rent_insights.core.exceptions import InvalidFormat, InvalidInput, OutOfRegion

MIN_RING_POINTS = 4


class Centroid(NamedTuple):
    lat: float
    lon: float


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned lat/lon box."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float, lon: float) -> bool:
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lon <= lon <= self.max_lon
        )


# Mainland France, rough box used as a data-quality guard on imported shapes
FRANCE_BOUNDS = BoundingBox(min_lat=41.0, max_lat=51.5, min_lon=-5.5, max_lon=9.8)


def _check_bounds(lon, lat) -> None:
    if not -180 <= lon <= 180:
        raise InvalidInput(f"Invalid longitude: {lon}")
    if not -90 <= lat <= 90:
        raise InvalidInput(f"Invalid latitude: {lat}")


def _to_float(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (Number, str)):
        raise InvalidInput(f"Invalid {name}: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid {name}: {value!r}")
    if not math.isfinite(number):
        raise InvalidInput(f"Invalid {name}: {value!r}")
    return number


@dataclass(frozen=True)
class GeometryPoint:
    """A (longitude, latitude) pair in WGS84."""

    longitude: float
    latitude: float

    def __post_init__(self):
        object.__setattr__(self, "longitude", _to_float(self.longitude, "longitude"))
        object.__setattr__(self, "latitude", _to_float(self.latitude, "latitude"))
        _check_bounds(self.longitude, self.latitude)

    @classmethod
    def from_components(cls, longitude, latitude) -> "GeometryPoint":
        return cls(longitude, latitude)

    @classmethod
    def from_pair(cls, pair: Sequence) -> "GeometryPoint":
        """Build from an ordered ``[lon, lat]`` container."""
        if isinstance(pair, (str, bytes)) or not isinstance(pair, Sequence) or len(pair) != 2:
            raise InvalidInput(f"Expected a [longitude, latitude] pair, got {pair!r}")
        return cls(pair[0], pair[1])

    @classmethod
    def from_string(cls, text: str) -> "GeometryPoint":
        """Parse ``"lon,lat"``, the exact inverse of ``str(point)``."""
        if not isinstance(text, str):
            raise InvalidInput(f"Expected a 'longitude,latitude' string, got {text!r}")
        parts = text.split(",")
        if len(parts) != 2:
            raise InvalidInput(f"Expected a 'longitude,latitude' string, got {text!r}")
        return cls(parts[0].strip(), parts[1].strip())

    def to_wkt(self) -> str:
        return f"POINT({self.longitude} {self.latitude})"

    def __str__(self) -> str:
        return f"{self.longitude},{self.latitude}"


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInput(f"Invalid coordinate value: {value!r}")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, str)):
        try:
            number = Decimal(value)
        except InvalidOperation:
            raise InvalidInput(f"Invalid coordinate value: {value!r}")
    elif isinstance(value, float):
        number = Decimal(repr(value))
    else:
        raise InvalidInput(f"Invalid coordinate value: {value!r}")
    if not number.is_finite():
        raise InvalidInput(f"Invalid coordinate value: {value!r}")
    return number


def _normalize_ring(ring: Any, longitude_first: bool) -> Tuple[Tuple[Decimal, Decimal], ...]:
    if isinstance(ring, (str, bytes)) or not isinstance(ring, Iterable):
        raise InvalidInput("Coordinates ring is invalid.")

    points = []
    for point in ring:
        if isinstance(point, (str, bytes)) or not isinstance(point, Sequence) or len(point) != 2:
            raise InvalidInput("Each point must have [lon, lat].")
        first, second = _to_decimal(point[0]), _to_decimal(point[1])
        lon, lat = (first, second) if longitude_first else (second, first)
        _check_bounds(lon, lat)
        points.append((lon, lat))
    return tuple(points)


def _format_decimal(value: Decimal) -> str:
    # JSON and WKT both reject exponent notation such as 2E+1
    text = format(value, "f")
    return text if text != "-0" else "0"


class GeometryShape:
    """
    A single-ring Polygon in WGS84 ``(lon, lat)`` order.

    Validation happens in the constructor: at least four points, every point in
    bounds, a closed ring, and a centroid inside mainland France. The centroid
    is the plain mean of the ring points, not the area-weighted centroid.
    """

    type = "Polygon"

    __slots__ = ("_coordinates",)

    def __init__(self, coordinates: Iterable, longitude_first: bool = True):
        ring = _normalize_ring(coordinates, longitude_first)

        if len(ring) < MIN_RING_POINTS:
            raise InvalidInput(f"Polygon must contain at least {MIN_RING_POINTS} points.")
        if ring[0] != ring[-1]:
            raise InvalidInput("Polygon ring must be closed (first point equal to last point).")

        object.__setattr__(self, "_coordinates", ring)

        if not self.is_within_region():
            centroid = self.centroid()
            raise OutOfRegion(
                "Polygon is not in France.",
                details={"centroid": {"lat": centroid.lat, "lon": centroid.lon}},
            )

    def __setattr__(self, name, value):
        raise AttributeError("GeometryShape is immutable")

    def __reduce__(self):
        return (GeometryShape, (self._coordinates,))

    @classmethod
    def from_geojson(cls, text: str, longitude_first: bool = True) -> "GeometryShape":
        """
        Parse a GeoJSON Polygon.

        Numeric literals are decoded straight to Decimal so no precision is
        lost against the source data. Only the outer ring is kept.

        Raises:
            InvalidFormat: payload is not JSON, not a Polygon, or has no coordinates
            InvalidInput: the ring itself is malformed
            OutOfRegion: the polygon lies outside mainland France
        """
        try:
            data = json.loads(text, parse_float=Decimal, parse_int=Decimal)
        except (TypeError, ValueError):
            raise InvalidFormat("Invalid GeoJSON format.")

        if not isinstance(data, dict) or data.get("type") != "Polygon" or "coordinates" not in data:
            raise InvalidFormat("Invalid GeoJSON format.")

        rings = data["coordinates"]
        if not isinstance(rings, list) or not rings:
            raise InvalidInput("Coordinates array is invalid.")

        return cls(rings[0], longitude_first=longitude_first)

    @property
    def coordinates(self) -> Tuple[Tuple[Decimal, Decimal], ...]:
        return self._coordinates

    def centroid(self) -> Centroid:
        count = len(self._coordinates)
        lon = sum(point[0] for point in self._coordinates) / count
        lat = sum(point[1] for point in self._coordinates) / count
        return Centroid(lat=float(lat), lon=float(lon))

    def is_within_region(self, bbox: BoundingBox = FRANCE_BOUNDS) -> bool:
        centroid = self.centroid()
        return bbox.contains(centroid.lat, centroid.lon)

    def to_geojson(self) -> str:
        points = ",".join(
            f"[{_format_decimal(lon)},{_format_decimal(lat)}]" for lon, lat in self._coordinates
        )
        return f'{{"type":"Polygon","coordinates":[[{points}]]}}'

    def to_wkt(self) -> str:
        points = ", ".join(
            f"{_format_decimal(lon)} {_format_decimal(lat)}" for lon, lat in self._coordinates
        )
        return f"POLYGON(({points}))"

    def __eq__(self, other):
        if not isinstance(other, GeometryShape):
            return NotImplemented
        return self._coordinates == other._coordinates

    def __hash__(self):
        return hash(self._coordinates)

    def __repr__(self):
        return f"GeometryShape(points={len(self._coordinates)}, centroid={tuple(self.centroid())})"
