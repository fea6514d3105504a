"""Unit tests for the CSV importer."""

import pytest
import pandas as pd
from pathlib import Path
from unittest.mock import Mock, patch
from geoalchemy2 import WKTElement

from rent_insights.core.config import settings
from rent_insights.core.exceptions import InvalidFormat, InvalidInput, OutOfRegion
from rent_insights.models import ImportRun
from rent_insights.services.importer import (
    DISTRICT_COLUMNS,
    HASHABLE_FIELDS,
    RENT_COLUMNS,
    ImportConfig,
    RentDataImporter,
    district_values_from_row,
    unit_hash,
    unit_values_from_row,
)


def make_importer(db=None, tmp_path=Path("."), **overrides):
    config = ImportConfig(
        districts_csv=tmp_path / "quartier_paris.csv",
        rent_csv=tmp_path / "logement-encadrement-des-loyers.csv",
        **overrides,
    )
    return RentDataImporter(db or Mock(), config)


class TestDistrictValues:
    """Test district_values_from_row."""

    def test_valid_row(self, district_row):
        values = district_values_from_row(district_row)
        assert values['district_number'] == 1
        assert values['postal_code'] == '75001'
        assert values['latitude'] == 48.8606
        assert values['longitude'] == 2.3448
        assert values['perimeter'] == 6054.94

    def test_postal_code_is_zero_padded(self, district_row):
        district_row['postal_code'] = '7501'
        assert district_values_from_row(district_row)['postal_code'] == '07501'

    @pytest.mark.parametrize("column", ['postal_code', 'district_name', 'district_section_number'])
    def test_missing_required(self, district_row, column):
        district_row[column] = ''
        with pytest.raises(InvalidInput):
            district_values_from_row(district_row)

    def test_invalid_coordinates(self, district_row):
        district_row['coordinates'] = '48.8606'
        with pytest.raises(InvalidInput):
            district_values_from_row(district_row)


class TestUnitValues:
    """Test unit_values_from_row."""

    def test_valid_row(self, rent_row):
        values = unit_values_from_row(rent_row)
        assert values['district_number'] == 1
        assert values['number_of_rooms'] == 2
        assert values['construction_period'] == 1
        assert values['rental_type'] is True
        assert values['year'] == 2023
        assert values['reference_rent'] == 295000
        assert values['maximum_rent'] == 354000
        assert values['minimum_rent'] == 206500
        assert len(values['unit_hash']) == 16

    def test_geo_point_is_lat_lon(self, rent_row):
        values = unit_values_from_row(rent_row)
        assert values['latitude'] == 48.8612
        assert values['longitude'] == 2.3441

    def test_geometry_is_wkt(self, rent_row):
        shape = unit_values_from_row(rent_row)['geometry_shape']
        assert isinstance(shape, WKTElement)
        assert shape.srid == 4326
        assert shape.data.startswith("POLYGON((2.3412 48.8594")

    def test_unfurnished(self, rent_row):
        rent_row['rental_type'] = 'non meublé'
        assert unit_values_from_row(rent_row)['rental_type'] is False

    def test_unknown_rental_type(self, rent_row):
        rent_row['rental_type'] = 'colocation'
        with pytest.raises(InvalidInput):
            unit_values_from_row(rent_row)

    def test_fractional_rooms(self, rent_row):
        rent_row['number_of_rooms'] = '2,9'
        with pytest.raises(InvalidInput):
            unit_values_from_row(rent_row)

    def test_whole_decimal_rooms(self, rent_row):
        rent_row['number_of_rooms'] = '3,0'
        assert unit_values_from_row(rent_row)['number_of_rooms'] == 3

    def test_empty_rent_is_null(self, rent_row):
        rent_row['minimum_rent'] = ''
        assert unit_values_from_row(rent_row)['minimum_rent'] is None

    def test_unknown_construction_period(self, rent_row):
        rent_row['construction_period'] = 'Inconnue'
        with pytest.raises(InvalidInput):
            unit_values_from_row(rent_row)

    def test_invalid_shape(self, rent_row):
        rent_row['geo_shape'] = '{"type": "Point"}'
        with pytest.raises(InvalidFormat):
            unit_values_from_row(rent_row)

    def test_shape_outside_france(self, rent_row):
        rent_row['geo_shape'] = (
            '{"type": "Polygon", "coordinates": [[[-1, -1], [1, -1], [1, 1], [-1, -1]]]}'
        )
        with pytest.raises(OutOfRegion):
            unit_values_from_row(rent_row)

    def test_invalid_rent(self, rent_row):
        rent_row['reference_rent'] = 'n/a'
        with pytest.raises(InvalidInput):
            unit_values_from_row(rent_row)


class TestUnitHash:
    """Test the rent row identity hash."""

    def test_deterministic(self, rent_row):
        assert unit_values_from_row(rent_row)['unit_hash'] == unit_values_from_row(dict(rent_row))['unit_hash']

    def test_changes_with_identity_field(self, rent_row):
        first = unit_values_from_row(rent_row)['unit_hash']
        rent_row['year'] = '2024'
        assert unit_values_from_row(rent_row)['unit_hash'] != first

    def test_ignores_rent_amounts(self, rent_row):
        first = unit_values_from_row(rent_row)['unit_hash']
        rent_row['reference_rent'] = '30,1'
        assert unit_values_from_row(rent_row)['unit_hash'] == first

    def test_configured_fields(self, rent_row):
        fields = ('district_number', 'year')
        first = unit_values_from_row(rent_row, fields)['unit_hash']
        rent_row['number_of_rooms'] = '3'
        assert unit_values_from_row(rent_row, fields)['unit_hash'] == first

    def test_boolean_encoding(self):
        assert unit_hash({'rental_type': True}, ('rental_type',)) == unit_hash({'rental_type': '1'}, ('rental_type',))
        assert unit_hash({'rental_type': False}, ('rental_type',)) == unit_hash({'rental_type': '0'}, ('rental_type',))


class TestImportConfig:
    """Test ImportConfig validation."""

    def test_unknown_hash_field(self, tmp_path):
        with pytest.raises(ValueError):
            make_importer(tmp_path=tmp_path, unit_hash_fields=('reference_rent',))

    def test_empty_hash_fields(self, tmp_path):
        with pytest.raises(ValueError):
            make_importer(tmp_path=tmp_path, unit_hash_fields=())

    def test_batch_size(self, tmp_path):
        with pytest.raises(ValueError):
            make_importer(tmp_path=tmp_path, batch_size=0)

    def test_from_settings(self):
        config = ImportConfig.from_settings(settings, rent_csv="/tmp/rent.csv", batch_size=50)
        assert config.rent_csv == Path("/tmp/rent.csv")
        assert config.districts_csv.name == settings.DISTRICTS_CSV
        assert config.batch_size == 50
        assert tuple(config.unit_hash_fields) == HASHABLE_FIELDS


class TestReadCsv:
    """Test CSV loading."""

    def test_reads_semicolon_file(self, tmp_path, district_row):
        headers = list(DISTRICT_COLUMNS)
        values = [district_row[DISTRICT_COLUMNS[h]] for h in headers]
        path = tmp_path / "quartier_paris.csv"
        path.write_text(";".join(headers) + "\n" + ";".join(values) + "\n", encoding="utf-8")

        df = make_importer(tmp_path=tmp_path).read_csv(path, DISTRICT_COLUMNS)

        assert list(df.columns) == list(DISTRICT_COLUMNS.values())
        assert df.iloc[0]['postal_code'] == '75001'
        assert df.iloc[0]['perimeter'] == '6054,94'

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "rent.csv"
        path.write_text("Année;Ville\n2023;PARIS\n", encoding="utf-8")

        with pytest.raises(InvalidFormat) as exc_info:
            make_importer(tmp_path=tmp_path).read_csv(path, RENT_COLUMNS)
        assert 'geo_shape' in exc_info.value.details['missing']


class TestImportRun:
    """Test the import lifecycle with the database mocked out."""

    def test_counts(self, tmp_path):
        source = tmp_path / "logement-encadrement-des-loyers.csv"
        source.write_text("data", encoding="utf-8")
        db = Mock()
        importer = make_importer(db, tmp_path=tmp_path, batch_size=2)

        df = pd.DataFrame([{'n': '1'}, {'n': 'bad'}, {'n': '2'}, {'n': '3'}])

        def to_values(row):
            if row['n'] == 'bad':
                raise InvalidInput("bad row")
            return {'n': int(row['n'])}

        with patch.object(importer, 'read_csv', return_value=df), \
                patch.object(importer, 'insert_batch', side_effect=[2, 0]) as insert_batch:
            run = importer._run('units', source, RENT_COLUMNS, Mock(), to_values)

        assert run.status == 'completed'
        assert run.total_records == 4
        assert run.rejected_records == 1
        assert run.inserted_records == 2
        assert run.skipped_records == 1
        assert [len(call.args[1]) for call in insert_batch.call_args_list] == [2, 1]
        assert run.source_file_hash == RentDataImporter.calculate_file_hash(source)

    def test_failure_is_recorded(self, tmp_path):
        source = tmp_path / "logement-encadrement-des-loyers.csv"
        source.write_text("data", encoding="utf-8")
        db = Mock()
        importer = make_importer(db, tmp_path=tmp_path)

        with patch.object(importer, 'read_csv', side_effect=InvalidFormat("Missing columns")):
            with pytest.raises(InvalidFormat):
                importer._run('units', source, RENT_COLUMNS, Mock(), lambda row: row)

        db.rollback.assert_called_once()
        run = db.add.call_args[0][0]
        assert isinstance(run, ImportRun)
        assert run.status == 'failed'
        assert run.error_message == "Missing columns"

    def test_unknown_district_is_rejected(self, tmp_path, rent_row):
        db = Mock()
        db.execute.return_value.scalars.return_value = iter([2, 3])
        importer = make_importer(db, tmp_path=tmp_path)

        with patch.object(importer, '_run', side_effect=lambda **kwargs: kwargs['to_values']) as run:
            to_values = importer.import_units()

        assert run.call_args[1]['dataset'] == 'units'
        with pytest.raises(InvalidInput):
            to_values(rent_row)

    def test_insert_batch_empty(self):
        db = Mock()
        assert make_importer(db).insert_batch(Mock(), []) == 0
        db.execute.assert_not_called()
