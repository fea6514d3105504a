"""District (quartier) model."""

from sqlalchemy import Column, Integer, String, Float, DateTime, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from rent_insights.core.database import Base


class District(Base):
    """Paris administrative district with its representative coordinate."""

    __tablename__ = "districts"

    id = Column(Integer, primary_key=True, index=True)

    district_section_number = Column(String, unique=True, nullable=False)  # N_SQ_QU
    district_number = Column(Integer, unique=True, index=True, nullable=False)  # C_QU
    insee_code = Column(String, index=True)  # C_QUINSEE
    district_name = Column(String, nullable=False)  # L_QU
    borough_code = Column(String)  # C_AR
    borough_section_number = Column(String)  # N_SQ_AR

    perimeter = Column(Float)  # meters
    surface_area = Column(Float)  # m²

    latitude = Column(Float, index=True)
    longitude = Column(Float, index=True)
    postal_code = Column(String(5), index=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    units = relationship("Unit", back_populates="district")

    __table_args__ = (
        Index('idx_districts_coordinates', 'longitude', 'latitude'),
    )
