"""Tests for distance ranking, classification, location and device identity."""
import random
import threading
from types import SimpleNamespace

import pytest

from pole_app.device import DeviceIdentity
from pole_app.services.classifier import Classification, FixedPoleClassifier, RandomPoleClassifier
from pole_app.services.distance_ranker import distance_to, haversine_distance, rank_by_distance
from pole_app.services.location_service import LocationFix, LocationService, StaticLocationProvider
from shared.enums import PoleStatus


# Distance ranker

def test_haversine_is_symmetric():
    a, b = (40.7128, -74.0060), (34.0522, -118.2437)
    assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a))


def test_haversine_same_point_is_zero():
    assert haversine_distance(51.5, -0.12, 51.5, -0.12) == 0


def test_one_degree_of_latitude_is_about_111_km():
    assert haversine_distance(0, 0, 1, 0) == pytest.approx(111.2, abs=1.0)
    assert haversine_distance(45, 10, 46, 10) == pytest.approx(111.2, abs=1.0)


def test_rank_by_distance_orders_nearest_first():
    records = [{'latitude': 0, 'longitude': 1}, {'latitude': 0, 'longitude': 0}]
    ranked = rank_by_distance(records, {'latitude': 0, 'longitude': 0})
    assert ranked == [{'latitude': 0, 'longitude': 0}, {'latitude': 0, 'longitude': 1}]


def test_rank_by_distance_is_stable_and_pure():
    records = [
        {'name': 'first', 'latitude': 1, 'longitude': 0},
        {'name': 'second', 'latitude': -1, 'longitude': 0},
        {'name': 'origin', 'latitude': 0, 'longitude': 0},
    ]
    original = list(records)

    ranked = rank_by_distance(records, SimpleNamespace(latitude=0, longitude=0))

    assert [r['name'] for r in ranked] == ['origin', 'first', 'second']
    assert records == original


def test_records_without_coordinates_sort_last():
    records = [SimpleNamespace(latitude=None, longitude=None), SimpleNamespace(latitude=5, longitude=5)]
    ranked = rank_by_distance(records, LocationFix(0, 0))
    assert ranked[0].latitude == 5
    assert distance_to(records[0], LocationFix(0, 0)) == float('inf')


# Classifier

def test_random_classifier_is_a_valid_placeholder():
    classifier = RandomPoleClassifier(rng=random.Random(7))
    results = {classifier.classify('/tmp/photo.jpg').status for _ in range(200)}
    assert results == set(PoleStatus)


def test_classification_flags_match_status():
    result = Classification(PoleStatus.CRACKED)
    assert result.type_flags == {
        'normal_pole': False,
        'leaning_pole': False,
        'cracked_pole': True,
        'warped_pole': False,
        'vegetation_pole': False,
    }
    assert (result.lower_confidence, result.upper_confidence) == (0.0, 0.0)


def test_fixed_classifier():
    assert FixedPoleClassifier('Leaning').classify().status == PoleStatus.LEANING


# Location service

class CountingProvider:
    def __init__(self, fix):
        self.fix = fix
        self.calls = 0

    def get_position(self):
        self.calls += 1
        return self.fix


def test_no_provider_returns_none():
    assert LocationService().get_current_location() is None


def test_static_provider():
    fix = LocationService(StaticLocationProvider(40.0, -74.0)).get_current_location()
    assert (fix.latitude, fix.longitude) == (40.0, -74.0)
    assert fix.as_dict() == {'latitude': 40.0, 'longitude': -74.0}


def test_recent_fix_is_reused():
    now = [1000.0]
    provider = CountingProvider(LocationFix(1.0, 2.0, timestamp=1000.0))
    service = LocationService(provider, maximum_age=10.0, clock=lambda: now[0])

    service.get_current_location()
    now[0] = 1009.0
    service.get_current_location()
    assert provider.calls == 1

    now[0] = 1011.0
    service.get_current_location()
    assert provider.calls == 2


def test_provider_error_returns_none():
    class Broken:
        def get_position(self):
            raise RuntimeError('gps off')

    assert LocationService(Broken()).get_current_location() is None


def test_provider_without_fix_returns_none():
    assert LocationService(CountingProvider(None)).get_current_location() is None


def test_slow_provider_times_out():
    release = threading.Event()

    class Stuck:
        def get_position(self):
            release.wait(5)
            return LocationFix(0, 0)

    try:
        assert LocationService(Stuck(), timeout=0.05).get_current_location() is None
    finally:
        release.set()


# Device identity

def test_device_id_is_generated_once_and_persisted(tmp_path):
    first = DeviceIdentity(tmp_path / 'data').taker_id
    second = DeviceIdentity(tmp_path / 'data').taker_id
    assert first == second
    assert (tmp_path / 'data' / 'device_id').read_text() == first


def test_device_id_override_wins(tmp_path):
    assert DeviceIdentity(tmp_path, override='field-tablet-3').taker_id == 'field-tablet-3'
    assert not (tmp_path / 'device_id').exists()


def test_device_id_falls_back_when_storage_fails(tmp_path):
    blocker = tmp_path / 'blocker'
    blocker.write_text('a file, not a directory')
    assert DeviceIdentity(blocker / 'data').taker_id == DeviceIdentity.UNKNOWN_DEVICE == 'unknown-device'
