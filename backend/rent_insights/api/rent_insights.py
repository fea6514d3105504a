"""Rent insights API routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from rent_insights.core.database import get_db
from rent_insights.schemas.rent_insights import (
    RentBandResponse,
    RentInsightsRequest,
    RentInsightsResponse,
)
from rent_insights.services.district_resolver import ResolutionCache
from rent_insights.services.rent_insights import get_rent_insights

logger = logging.getLogger(__name__)

router = APIRouter()


def get_resolution_cache() -> ResolutionCache:
    """One resolution cache per request."""
    return ResolutionCache()


def rent_insights_request(
    longitude: Optional[float] = Query(None, alias="coordinate[longitude]"),
    latitude: Optional[float] = Query(None, alias="coordinate[latitude]"),
    postal_code: Optional[str] = Query(None, description="5-digit postal code"),
    construction_period: str = Query(..., description="Avant 1946, 1946-1970, 1971-1990 or Apres 1990"),
    number_of_rooms: int = Query(..., description="Number of main rooms (1-5)"),
    furnished: bool = Query(...),
    year: Optional[int] = Query(None, description="Restrict to one dataset year"),
) -> RentInsightsRequest:
    """Collect the flat query string into a validated RentInsightsRequest."""
    coordinate = None
    if longitude is not None or latitude is not None:
        coordinate = {"longitude": longitude, "latitude": latitude}

    try:
        return RentInsightsRequest(
            coordinate=coordinate,
            postal_code=postal_code,
            construction_period=construction_period,
            number_of_rooms=number_of_rooms,
            furnished=furnished,
            year=year,
        )
    except ValidationError as e:
        raise RequestValidationError(
            e.errors(include_url=False, include_context=False, include_input=False)
        )


@router.get("/rent-insights", response_model=RentInsightsResponse)
def rent_insights(
    params: RentInsightsRequest = Depends(rent_insights_request),
    db: Session = Depends(get_db),
    cache: ResolutionCache = Depends(get_resolution_cache),
):
    """
    Reference rent band (€/m²) for a location and filters.

    Returns zeros, not an error, when no rent data matches the filters.
    """
    band = get_rent_insights(db, params.to_location(), params.to_filters(), cache=cache)
    return RentInsightsResponse(data=RentBandResponse.from_band(band))
