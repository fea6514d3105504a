"""Shared fixtures for rent insights tests."""

import json

import pytest

# Small closed ring around Saint-Germain-l'Auxerrois (1st arrondissement)
PARIS_RING = [
    [2.3412, 48.8594],
    [2.3470, 48.8594],
    [2.3470, 48.8631],
    [2.3412, 48.8631],
    [2.3412, 48.8594],
]


@pytest.fixture
def paris_ring():
    return [list(point) for point in PARIS_RING]


@pytest.fixture
def paris_geojson():
    return json.dumps({"type": "Polygon", "coordinates": [PARIS_RING]})


@pytest.fixture
def district_row():
    """A districts CSV row after column renaming."""
    return {
        'district_section_number': '750000001',
        'district_number': '1',
        'insee_code': '7510101',
        'district_name': 'St-Germain-l\'Auxerrois',
        'borough_code': '1',
        'borough_section_number': '750000001',
        'perimeter': '6054,94',
        'surface_area': '869000,78',
        'coordinates': '48.8606, 2.3448',
        'postal_code': '75001',
    }


@pytest.fixture
def rent_row(paris_geojson):
    """A rent-control CSV row after column renaming."""
    return {
        'geographic_sector': '1',
        'district_number': '1',
        'district_name': 'St-Germain-l\'Auxerrois',
        'number_of_rooms': '2',
        'construction_period': 'Avant 1946',
        'rental_type': 'meublé',
        'reference_rent': '29,5',
        'maximum_rent': '35,4',
        'minimum_rent': '20,65',
        'year': '2023',
        'city': 'PARIS',
        'geo_shape': paris_geojson,
        'geo_point_2d': '48.8612, 2.3441',
    }
