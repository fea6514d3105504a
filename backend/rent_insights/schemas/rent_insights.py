"""Rent insights schemas for request/response validation."""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional

from rent_insights.services.district_resolver import LocationQuery
from rent_insights.services.rent_insights import MAX_ROOMS, MIN_ROOMS, RentBand, RentFilters
from rent_insights.values import ConstructionPeriod, GeometryPoint


class Coordinate(BaseModel):
    """WGS84 coordinate."""
    longitude: float = Field(..., ge=-180, le=180)
    latitude: float = Field(..., ge=-90, le=90)


class RentInsightsRequest(BaseModel):
    """Query of GET /rent-insights. Exactly one of coordinate / postal_code."""
    coordinate: Optional[Coordinate] = None
    postal_code: Optional[str] = Field(None, pattern=r"^\d{5}$")
    construction_period: str
    number_of_rooms: int = Field(..., ge=MIN_ROOMS, le=MAX_ROOMS)
    furnished: bool
    year: Optional[int] = Field(None, ge=2000, le=2100)

    @field_validator("construction_period")
    @classmethod
    def check_construction_period(cls, value: str) -> str:
        if value not in ConstructionPeriod.labels():
            raise ValueError(
                f"construction_period must be one of: {', '.join(ConstructionPeriod.labels())}"
            )
        return value

    @model_validator(mode="after")
    def check_location(self):
        if self.coordinate is not None and self.postal_code is not None:
            raise ValueError("coordinate and postal_code are mutually exclusive")
        if self.coordinate is None and self.postal_code is None:
            raise ValueError("Either coordinate or postal_code is required")
        return self

    def to_location(self) -> LocationQuery:
        if self.coordinate is not None:
            return LocationQuery(
                point=GeometryPoint.from_components(
                    self.coordinate.longitude, self.coordinate.latitude
                )
            )
        return LocationQuery(postal_code=self.postal_code)

    def to_filters(self) -> RentFilters:
        return RentFilters(
            construction_period=ConstructionPeriod.from_label(self.construction_period),
            number_of_rooms=self.number_of_rooms,
            furnished=self.furnished,
            year=self.year,
        )


class RentBandResponse(BaseModel):
    """Rent band in euros."""
    max_rent: float
    min_rent: float
    average_rent: float

    @classmethod
    def from_band(cls, band: RentBand) -> "RentBandResponse":
        return cls(**band.to_euros())


class RentInsightsResponse(BaseModel):
    data: RentBandResponse
