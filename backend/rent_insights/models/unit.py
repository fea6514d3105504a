"""Rent-control reference record model."""

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, ForeignKey, Index, Boolean,
    BigInteger, SmallInteger, LargeBinary,
)
from sqlalchemy.orm import relationship
from geoalchemy2 import Geometry
from datetime import datetime
from rent_insights.core.database import Base


class Unit(Base):
    """
    One row of the "encadrement des loyers" dataset: the price band for a
    district / rooms / construction period / furnished combination in a year.

    Rents are stored as Money subunits (1 EUR = 10,000). Use
    rent_insights.models.codecs to convert to and from value objects.
    """

    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)

    district_number = Column(
        Integer, ForeignKey("districts.district_number"), index=True, nullable=False
    )
    district_name = Column(String, nullable=False)
    geographic_sector = Column(String)

    number_of_rooms = Column(Integer, index=True, nullable=False)
    construction_period = Column(SmallInteger, index=True, nullable=False)  # ConstructionPeriod value
    rental_type = Column(Boolean, index=True, nullable=False, default=False)  # True = furnished

    reference_rent = Column(BigInteger)
    maximum_rent = Column(BigInteger, index=True)
    minimum_rent = Column(BigInteger, index=True)

    year = Column(Integer, index=True, nullable=False)
    city = Column(String, nullable=False, default="PARIS")

    geometry_shape = Column(Geometry("POLYGON", srid=4326, spatial_index=True), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    # MD5 of the configured identity fields, see services.importer.unit_hash
    unit_hash = Column(LargeBinary(16), unique=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    district = relationship("District", back_populates="units")

    __table_args__ = (
        Index('idx_units_rent_search',
              'district_number', 'number_of_rooms', 'construction_period', 'rental_type'),
    )
