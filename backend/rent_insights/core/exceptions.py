"""Error taxonomy shared by value objects, services and the HTTP layer."""

from typing import Any, Dict, Optional


class RentInsightsError(Exception):
    """Base exception for the rent insights application."""

    error_code = "RENT_INSIGHTS_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class InvalidInput(RentInsightsError, ValueError):
    """Malformed amount, out-of-range coordinate or invalid polygon ring."""

    error_code = "INVALID_INPUT"


class InvalidFormat(RentInsightsError, ValueError):
    """External geometry payload that cannot be understood at all."""

    error_code = "INVALID_FORMAT"


class OutOfRegion(RentInsightsError, ValueError):
    """Geometry is valid but lies outside mainland France."""

    error_code = "OUT_OF_REGION"


class NotFound(RentInsightsError, LookupError):
    """A location could not be resolved to a district."""

    error_code = "NOT_FOUND"


class ServiceUnavailable(RentInsightsError):
    """The database could not be reached."""

    error_code = "SERVICE_UNAVAILABLE"
