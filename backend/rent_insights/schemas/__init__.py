"""Pydantic schemas for request/response validation."""

from rent_insights.schemas.rent_insights import (
    Coordinate,
    RentInsightsRequest,
    RentBandResponse,
    RentInsightsResponse,
)

__all__ = [
    "Coordinate",
    "RentInsightsRequest",
    "RentBandResponse",
    "RentInsightsResponse",
]
