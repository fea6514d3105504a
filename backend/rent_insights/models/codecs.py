"""
Explicit conversions between stored columns and value objects.

Nothing is converted implicitly by the ORM: writers call the ``*_to_column``
helpers and readers call the ``*_from_column`` helpers.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Any, Dict, List, Optional

from geoalchemy2 import WKTElement
from geoalchemy2 import functions as geo_func
from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from rent_insights.core.exceptions import InvalidInput
from rent_insights.models.unit import Unit
from rent_insights.values import ConstructionPeriod, GeometryPoint, GeometryShape, Money

SRID = 4326


def money_to_column(money: Money) -> int:
    return money.amount()


def money_from_column(value: Any) -> Money:
    """
    Stored subunits to Money; a NULL column reads as zero.

    Also decodes aggregates: AVG comes back as NUMERIC and is truncated toward
    zero to whole subunits.
    """
    if value is None:
        return Money.zero()
    if isinstance(value, int):
        return Money.from_subunits(value)
    try:
        subunits = Decimal(str(value)).to_integral_value(rounding=ROUND_DOWN)
    except InvalidOperation:
        raise InvalidInput(f"Invalid stored money value: {value!r}")
    return Money.from_subunits(subunits)


def shape_to_column(shape: GeometryShape) -> WKTElement:
    return WKTElement(shape.to_wkt(), srid=SRID)


def shape_from_column(geojson: Optional[str]) -> Optional[GeometryShape]:
    """Decode the output of ``ST_AsGeoJSON(geometry_shape)``."""
    if not geojson:
        return None
    return GeometryShape.from_geojson(geojson)


def point_to_columns(point: GeometryPoint) -> Dict[str, float]:
    return {"longitude": point.longitude, "latitude": point.latitude}


def point_from_columns(longitude: Any, latitude: Any) -> GeometryPoint:
    return GeometryPoint.from_components(longitude, latitude)


@dataclass(frozen=True)
class RentRecord:
    """A stored rent row decoded into value objects."""

    id: int
    district_number: int
    district_name: str
    number_of_rooms: int
    construction_period: ConstructionPeriod
    furnished: bool
    reference_rent: Money
    maximum_rent: Money
    minimum_rent: Money
    year: int
    city: str
    geographic_sector: Optional[str]
    geometry_shape: Optional[GeometryShape]
    geometry_point: GeometryPoint


def rent_records_statement(district_number: int, year: Optional[int] = None) -> Select:
    stmt = (
        select(Unit, geo_func.ST_AsGeoJSON(Unit.geometry_shape).label("geometry_geojson"))
        .where(Unit.district_number == district_number)
        .order_by(Unit.year.desc(), Unit.number_of_rooms, Unit.construction_period, Unit.rental_type)
    )
    if year is not None:
        stmt = stmt.where(Unit.year == year)
    return stmt


def rent_record_from_row(unit: Unit, geometry_geojson: Optional[str]) -> RentRecord:
    return RentRecord(
        id=unit.id,
        district_number=unit.district_number,
        district_name=unit.district_name,
        number_of_rooms=unit.number_of_rooms,
        construction_period=ConstructionPeriod(unit.construction_period),
        furnished=bool(unit.rental_type),
        reference_rent=money_from_column(unit.reference_rent),
        maximum_rent=money_from_column(unit.maximum_rent),
        minimum_rent=money_from_column(unit.minimum_rent),
        year=unit.year,
        city=unit.city,
        geographic_sector=unit.geographic_sector,
        geometry_shape=shape_from_column(geometry_geojson),
        geometry_point=point_from_columns(unit.longitude, unit.latitude),
    )


def load_rent_records(db: Session, district_number: int, year: Optional[int] = None) -> List[RentRecord]:
    """Read all rent records of a district as value objects."""
    rows = db.execute(rent_records_statement(district_number, year)).all()
    return [rent_record_from_row(unit, geojson) for unit, geojson in rows]
