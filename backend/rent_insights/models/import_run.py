"""Import audit trail."""

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, Index
from datetime import datetime
from rent_insights.core.database import Base


class ImportRun(Base):
    """Track CSV import operations (one row per dataset per run)."""

    __tablename__ = "import_runs"

    id = Column(Integer, primary_key=True, index=True)
    batch_id = Column(String(36), index=True, nullable=False)  # UUID shared by datasets of one run
    dataset = Column(String, nullable=False)  # 'districts' or 'units'
    source_file = Column(String, nullable=False)
    source_file_hash = Column(String(64), nullable=False)  # SHA256

    total_records = Column(Integer, default=0)
    inserted_records = Column(Integer, default=0)
    skipped_records = Column(Integer, default=0)  # already present (idempotent re-import)
    rejected_records = Column(Integer, default=0)  # failed validation

    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime)
    duration_seconds = Column(Float)

    status = Column(String, nullable=False)  # 'running', 'completed', 'failed'
    error_message = Column(Text)

    __table_args__ = (
        Index('idx_import_runs_dataset_status', 'dataset', 'status'),
    )
