"""Database models."""

from rent_insights.models.district import District
from rent_insights.models.unit import Unit
from rent_insights.models.import_run import ImportRun

__all__ = ["District", "Unit", "ImportRun"]
