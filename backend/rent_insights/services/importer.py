"""
Import of the Paris districts and rent-control CSV datasets.

Features:
- Every row goes through the value objects (Money, GeometryPoint,
  GeometryShape); rows that fail validation are rejected and counted
- Idempotent: INSERT ... ON CONFLICT DO NOTHING on district_number and on a
  content hash of each rent row, so re-importing a file adds nothing
- Batch processing with one commit per batch
- Audit trail in the import_runs table
"""

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

import pandas as pd
from sqlalchemy import select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import Session

from rent_insights.core.exceptions import InvalidFormat, InvalidInput, OutOfRegion
from rent_insights.models import District, ImportRun, Unit
from rent_insights.models.codecs import money_to_column, point_to_columns, shape_to_column
from rent_insights.values import ConstructionPeriod, GeometryPoint, GeometryShape, Money

logger = logging.getLogger(__name__)

DISTRICT_COLUMNS = {
    'N_SQ_QU': 'district_section_number',
    'Numéro du quartier / C_QU': 'district_number',
    'C_QUINSEE': 'insee_code',
    'L_QU': 'district_name',
    'C_AR': 'borough_code',
    'N_SQ_AR': 'borough_section_number',
    'PERIMETRE': 'perimeter',
    'SURFACE': 'surface_area',
    'Geometry X Y': 'coordinates',
    'ZIP CODE': 'postal_code',
}

RENT_COLUMNS = {
    'Secteurs géographiques': 'geographic_sector',
    'Numéro du quartier': 'district_number',
    'Nom du quartier': 'district_name',
    'Nombre de pièces principales': 'number_of_rooms',
    'Epoque de construction': 'construction_period',
    'Type de location': 'rental_type',
    'Loyers de référence': 'reference_rent',
    'Loyers de référence majorés': 'maximum_rent',
    'Loyers de référence minorés': 'minimum_rent',
    'Année': 'year',
    'Ville': 'city',
    'geo_shape': 'geo_shape',
    'geo_point_2d': 'geo_point_2d',
}

HASHABLE_FIELDS = (
    'district_number', 'number_of_rooms', 'construction_period', 'rental_type',
    'year', 'city', 'geographic_sector', 'latitude', 'longitude',
)

FURNISHED_LABELS = {'meublé', 'meuble'}
UNFURNISHED_LABELS = {'non meublé', 'non meuble'}

ROW_ERRORS = (InvalidInput, InvalidFormat, OutOfRegion)


@dataclass(frozen=True)
class ImportConfig:
    """Everything the importer needs to know about its inputs, fixed at startup."""

    districts_csv: Path
    rent_csv: Path
    delimiter: str = ';'
    batch_size: int = 1000
    unit_hash_fields: Sequence[str] = field(default=HASHABLE_FIELDS)

    def __post_init__(self):
        unknown = [f for f in self.unit_hash_fields if f not in HASHABLE_FIELDS]
        if unknown:
            raise ValueError(f"Unknown unit hash fields: {unknown}")
        if not self.unit_hash_fields:
            raise ValueError("unit_hash_fields must not be empty")
        if self.batch_size < 1:
            raise ValueError("batch_size must be positive")

    @classmethod
    def from_settings(cls, settings, districts_csv=None, rent_csv=None, batch_size=None) -> "ImportConfig":
        data_dir = Path(settings.DATA_DIR)
        return cls(
            districts_csv=Path(districts_csv) if districts_csv else data_dir / settings.DISTRICTS_CSV,
            rent_csv=Path(rent_csv) if rent_csv else data_dir / settings.RENT_CSV,
            delimiter=settings.CSV_DELIMITER,
            batch_size=batch_size or settings.IMPORT_BATCH_SIZE,
            unit_hash_fields=tuple(settings.UNIT_HASH_FIELDS),
        )


def _hash_part(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, IntEnum):
        return str(int(value))
    return str(value)


def unit_hash(values: Dict[str, Any], fields: Sequence[str] = HASHABLE_FIELDS) -> bytes:
    """
    Deterministic 16-byte digest identifying a rent row.

    Args:
        values: Column values of the row (as produced by unit_values_from_row)
        fields: Which columns take part in the identity

    Returns:
        MD5 digest of the '|'-joined field values
    """
    payload = '|'.join(_hash_part(values.get(name)) for name in fields)
    return hashlib.md5(payload.encode('utf-8')).digest()


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _to_int(value: Any, name: str) -> int:
    cleaned = _clean(value)
    try:
        number = float(cleaned.replace(',', '.'))
    except (AttributeError, ValueError):
        raise InvalidInput(f"Invalid {name}: {value!r}")
    if not number.is_integer():
        raise InvalidInput(f"Invalid {name}: {value!r} is not a whole number")
    return int(number)


def _to_float(value: Any, name: str) -> Optional[float]:
    cleaned = _clean(value)
    if cleaned is None:
        return None
    try:
        return float(cleaned.replace(',', '.'))
    except ValueError:
        raise InvalidInput(f"Invalid {name}: {value!r}")


def _to_money(value: Any) -> Optional[Money]:
    cleaned = _clean(value)
    if cleaned is None:
        return None
    return Money.from_decimal(cleaned.replace(',', '.'))


def _lat_lon_point(value: Any, name: str) -> GeometryPoint:
    """Open-data exports write points as "lat, lon"."""
    cleaned = _clean(value)
    parts = cleaned.split(',') if cleaned else []
    if len(parts) != 2:
        raise InvalidInput(f"Invalid {name}: {value!r}")
    latitude, longitude = parts
    return GeometryPoint.from_components(longitude.strip(), latitude.strip())


def district_values_from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Validate one districts CSV row (already renamed) into column values."""
    point = _lat_lon_point(row.get('coordinates'), 'Geometry X Y')
    postal_code = _clean(row.get('postal_code'))
    if not postal_code:
        raise InvalidInput("Missing postal code")
    district_name = _clean(row.get('district_name'))
    if not district_name:
        raise InvalidInput("Missing district name")
    section_number = _clean(row.get('district_section_number'))
    if not section_number:
        raise InvalidInput("Missing district section number")

    return {
        'district_section_number': section_number,
        'district_number': _to_int(row.get('district_number'), 'district number'),
        'insee_code': _clean(row.get('insee_code')),
        'district_name': district_name,
        'borough_code': _clean(row.get('borough_code')),
        'borough_section_number': _clean(row.get('borough_section_number')),
        'perimeter': _to_float(row.get('perimeter'), 'perimeter'),
        'surface_area': _to_float(row.get('surface_area'), 'surface area'),
        'postal_code': postal_code.zfill(5),
        **point_to_columns(point),
    }


def unit_values_from_row(row: Dict[str, Any], hash_fields: Sequence[str] = HASHABLE_FIELDS) -> Dict[str, Any]:
    """Validate one rent CSV row (already renamed) into column values, hash included."""
    period = ConstructionPeriod.from_label(_clean(row.get('construction_period')))
    shape = GeometryShape.from_geojson(row.get('geo_shape') or '')
    point = _lat_lon_point(row.get('geo_point_2d'), 'geo_point_2d')
    rental_type = (_clean(row.get('rental_type')) or '').lower()
    if rental_type not in FURNISHED_LABELS | UNFURNISHED_LABELS:
        raise InvalidInput(f"Unknown rental type: {row.get('rental_type')!r}")
    district_name = _clean(row.get('district_name'))
    if not district_name:
        raise InvalidInput("Missing district name")

    rents = {
        name: _to_money(row.get(name))
        for name in ('reference_rent', 'maximum_rent', 'minimum_rent')
    }

    values = {
        'geographic_sector': _clean(row.get('geographic_sector')),
        'district_number': _to_int(row.get('district_number'), 'district number'),
        'district_name': district_name,
        'number_of_rooms': _to_int(row.get('number_of_rooms'), 'number of rooms'),
        'construction_period': period,
        'rental_type': rental_type in FURNISHED_LABELS,
        'year': _to_int(row.get('year'), 'year'),
        'city': _clean(row.get('city')) or 'PARIS',
        **point_to_columns(point),
    }
    values['unit_hash'] = unit_hash(values, hash_fields)

    values['construction_period'] = int(period)
    values['geometry_shape'] = shape_to_column(shape)
    for name, money in rents.items():
        values[name] = money_to_column(money) if money is not None else None
    return values


class RentDataImporter:
    """Load the districts and rent CSV files into the database."""

    def __init__(self, db: Session, config: ImportConfig):
        self.db = db
        self.config = config
        self.batch_id = str(uuid.uuid4())

    @staticmethod
    def calculate_file_hash(file_path: Path) -> str:
        """Calculate SHA256 hash of file for the audit trail."""
        sha256 = hashlib.sha256()
        with open(file_path, 'rb') as f:
            for chunk in iter(lambda: f.read(8192), b''):
                sha256.update(chunk)
        return sha256.hexdigest()

    def read_csv(self, file_path: Path, columns: Dict[str, str]) -> pd.DataFrame:
        """Read a semicolon-delimited file as strings and rename to column names."""
        logger.info(f"Reading CSV file: {file_path}")
        df = pd.read_csv(
            file_path,
            sep=self.config.delimiter,
            dtype=str,
            keep_default_na=False,
            encoding='utf-8-sig',
        )
        missing = [name for name in columns if name not in df.columns]
        if missing:
            raise InvalidFormat(
                f"Missing columns in {Path(file_path).name}: {missing}",
                details={"missing": missing},
            )
        df = df.rename(columns=columns)[list(columns.values())]
        logger.info(f"Loaded {len(df):,} records")
        return df

    def truncate(self, districts: bool, units: bool) -> None:
        """Delete existing data. Truncating districts cascades to units."""
        if units:
            self.db.execute(text("TRUNCATE TABLE units RESTART IDENTITY"))
            logger.warning("Truncated units table")
        if districts:
            self.db.execute(text("TRUNCATE TABLE districts RESTART IDENTITY CASCADE"))
            logger.warning("Truncated districts table (cascades to units)")
        self.db.commit()

    def import_districts(self) -> ImportRun:
        return self._run(
            dataset='districts',
            file_path=self.config.districts_csv,
            columns=DISTRICT_COLUMNS,
            model=District,
            to_values=district_values_from_row,
        )

    def import_units(self) -> ImportRun:
        known_districts = set(self.db.execute(select(District.district_number)).scalars())

        def to_values(row):
            values = unit_values_from_row(row, self.config.unit_hash_fields)
            if values['district_number'] not in known_districts:
                raise InvalidInput(f"Unknown district number: {values['district_number']}")
            return values

        return self._run(
            dataset='units',
            file_path=self.config.rent_csv,
            columns=RENT_COLUMNS,
            model=Unit,
            to_values=to_values,
        )

    def validated_rows(self, df: pd.DataFrame, to_values, run: ImportRun) -> Iterator[Dict[str, Any]]:
        for line, row in enumerate(df.to_dict(orient='records'), start=2):
            try:
                yield to_values(row)
            except ROW_ERRORS as e:
                run.rejected_records += 1
                logger.warning(f"Rejected {run.dataset} row at line {line}: {e}")

    def insert_batch(self, model, batch: List[Dict[str, Any]]) -> int:
        """INSERT ... ON CONFLICT DO NOTHING; returns the number of new rows."""
        if not batch:
            return 0
        stmt = pg_insert(model).values(batch).on_conflict_do_nothing().returning(model.id)
        return len(self.db.execute(stmt).all())

    def _run(self, dataset: str, file_path: Path, columns, model, to_values) -> ImportRun:
        file_path = Path(file_path)
        logger.info(f"Starting {dataset} import: {file_path.name} (batch {self.batch_id})")

        run = ImportRun(
            batch_id=self.batch_id,
            dataset=dataset,
            source_file=file_path.name,
            source_file_hash=self.calculate_file_hash(file_path),
            total_records=0,
            inserted_records=0,
            skipped_records=0,
            rejected_records=0,
            status='running',
            started_at=datetime.utcnow(),
        )
        self.db.add(run)
        self.db.commit()

        try:
            df = self.read_csv(file_path, columns)
            run.total_records = len(df)

            batch: List[Dict[str, Any]] = []
            valid = 0
            for values in self.validated_rows(df, to_values, run):
                batch.append(values)
                valid += 1
                if len(batch) >= self.config.batch_size:
                    run.inserted_records += self.insert_batch(model, batch)
                    self.db.commit()
                    batch = []
            run.inserted_records += self.insert_batch(model, batch)

            run.skipped_records = valid - run.inserted_records
            run.completed_at = datetime.utcnow()
            run.duration_seconds = (run.completed_at - run.started_at).total_seconds()
            run.status = 'completed'
            self.db.commit()

            logger.info(
                f"✓ {dataset}: {run.inserted_records:,} imported, {run.skipped_records:,} skipped, "
                f"{run.rejected_records:,} rejected ({run.duration_seconds:.1f}s)"
            )
            return run

        except Exception as e:
            self.db.rollback()
            run.status = 'failed'
            run.error_message = str(e)
            run.completed_at = datetime.utcnow()
            self.db.add(run)
            self.db.commit()

            logger.error(f"{dataset} import failed: {e}", exc_info=True)
            raise
