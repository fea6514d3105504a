"""create districts, units and import_runs tables

Revision ID: a3c5e7f9b1d2
Revises:
Create Date: 2026-10-12 10:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from geoalchemy2 import Geometry

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a3c5e7f9b1d2"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    op.create_table(
        "districts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("district_section_number", sa.String(), nullable=False, unique=True),
        sa.Column("district_number", sa.Integer(), nullable=False),
        sa.Column("insee_code", sa.String(), nullable=True),
        sa.Column("district_name", sa.String(), nullable=False),
        sa.Column("borough_code", sa.String(), nullable=True),
        sa.Column("borough_section_number", sa.String(), nullable=True),
        sa.Column("perimeter", sa.Float(), nullable=True),
        sa.Column("surface_area", sa.Float(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("postal_code", sa.String(5), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_districts_id", "districts", ["id"])
    op.create_index("ix_districts_district_number", "districts", ["district_number"], unique=True)
    op.create_index("ix_districts_insee_code", "districts", ["insee_code"])
    op.create_index("ix_districts_latitude", "districts", ["latitude"])
    op.create_index("ix_districts_longitude", "districts", ["longitude"])
    op.create_index("ix_districts_postal_code", "districts", ["postal_code"])
    op.create_index("idx_districts_coordinates", "districts", ["longitude", "latitude"])

    op.create_table(
        "units",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "district_number",
            sa.Integer(),
            sa.ForeignKey("districts.district_number"),
            nullable=False,
        ),
        sa.Column("district_name", sa.String(), nullable=False),
        sa.Column("geographic_sector", sa.String(), nullable=True),
        sa.Column("number_of_rooms", sa.Integer(), nullable=False),
        sa.Column("construction_period", sa.SmallInteger(), nullable=False),
        sa.Column("rental_type", sa.Boolean(), nullable=False),
        sa.Column("reference_rent", sa.BigInteger(), nullable=True),
        sa.Column("maximum_rent", sa.BigInteger(), nullable=True),
        sa.Column("minimum_rent", sa.BigInteger(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("city", sa.String(), nullable=False, server_default="PARIS"),
        sa.Column(
            "geometry_shape",
            Geometry("POLYGON", srid=4326, spatial_index=False),
            nullable=False,
        ),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("unit_hash", sa.LargeBinary(16), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_units_id", "units", ["id"])
    op.create_index("ix_units_district_number", "units", ["district_number"])
    op.create_index("ix_units_number_of_rooms", "units", ["number_of_rooms"])
    op.create_index("ix_units_construction_period", "units", ["construction_period"])
    op.create_index("ix_units_rental_type", "units", ["rental_type"])
    op.create_index("ix_units_maximum_rent", "units", ["maximum_rent"])
    op.create_index("ix_units_minimum_rent", "units", ["minimum_rent"])
    op.create_index("ix_units_year", "units", ["year"])
    op.create_index(
        "idx_units_rent_search",
        "units",
        ["district_number", "number_of_rooms", "construction_period", "rental_type"],
    )
    op.create_index(
        "idx_units_geometry_shape", "units", ["geometry_shape"], postgresql_using="gist"
    )
    # Radius searches cast to geography so distances are in meters
    op.execute(
        "CREATE INDEX idx_units_geometry_shape_geography "
        "ON units USING gist ((geometry_shape::geography))"
    )

    op.create_table(
        "import_runs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("batch_id", sa.String(36), nullable=False),
        sa.Column("dataset", sa.String(), nullable=False),
        sa.Column("source_file", sa.String(), nullable=False),
        sa.Column("source_file_hash", sa.String(64), nullable=False),
        sa.Column("total_records", sa.Integer(), nullable=True),
        sa.Column("inserted_records", sa.Integer(), nullable=True),
        sa.Column("skipped_records", sa.Integer(), nullable=True),
        sa.Column("rejected_records", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("duration_seconds", sa.Float(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_import_runs_id", "import_runs", ["id"])
    op.create_index("ix_import_runs_batch_id", "import_runs", ["batch_id"])
    op.create_index("idx_import_runs_dataset_status", "import_runs", ["dataset", "status"])


def downgrade() -> None:
    op.drop_table("import_runs")
    op.execute("DROP INDEX IF EXISTS idx_units_geometry_shape_geography")
    op.drop_table("units")
    op.drop_table("districts")
