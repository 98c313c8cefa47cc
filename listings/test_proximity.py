"""
Tests for proximity queries.
"""
import random

import pytest

from listings.core import create_listing
from listings.database import db_insert_listing
from listings.distance import haversine_km
from listings.errors import InvalidInput, NoMatch, ProviderError
from listings.models import Listing, Point
from listings.proximity import find_near, resolve_point, search_near_text


def add(conn, user, name, lat=None, lng=None, price=10.0, location="somewhere"):
    return db_insert_listing(conn, Listing(
        user_id=user.id, name=name, price=price, location=location, latitude=lat, longitude=lng,
    ))


def test_cairo_listing_found_nearby_and_not_from_null_island(conn, geocoder, user):
    listing = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")

    near = list(find_near(conn, Point(30.05, 31.24), 10))
    assert [r.listing.id for r in near] == [listing.id]
    assert near[0].distance_km < 1.0

    assert list(find_near(conn, Point(0.0, 0.0), 10)) == []


def test_listing_without_coordinates_never_matches(conn, geocoder, user):
    create_listing(conn, geocoder, user.id, "Sofa", 80, "Nowhere Land")
    add(conn, user, "No location", location="")

    assert list(find_near(conn, Point(0.0, 0.0), 20000)) == []
    assert list(find_near(conn, Point(30.05, 31.24), 20000)) == []


def test_results_ordered_by_distance_then_id(conn, user):
    far = add(conn, user, "far", 30.20, 31.24)
    tie_a = add(conn, user, "tie a", 30.10, 31.24)
    near = add(conn, user, "near", 30.06, 31.24)
    tie_b = add(conn, user, "tie b", 30.10, 31.24)

    results = list(find_near(conn, Point(30.05, 31.24), 50))

    assert [r.listing.id for r in results] == [near.id, tie_a.id, tie_b.id, far.id]
    distances = [r.distance_km for r in results]
    assert distances == sorted(distances)


def test_radius_is_inclusive_and_exact(conn, user):
    inside = add(conn, user, "inside", 30.0, 31.0)
    center = Point(30.0, 31.1)
    d = haversine_km(30.0, 31.1, 30.0, 31.0)

    assert [r.listing.id for r in find_near(conn, center, d)] == [inside.id]
    assert list(find_near(conn, center, d * 0.999)) == []


def test_matches_brute_force_on_random_data(conn, user):
    rng = random.Random(1234)
    points = {}
    for i in range(300):
        lat = rng.uniform(25.0, 35.0)
        lng = rng.uniform(26.0, 36.0)
        listing = add(conn, user, f"item {i}", lat, lng)
        points[listing.id] = (lat, lng)

    center = Point(30.0, 31.0)
    for radius in (5, 50, 150, 400):
        expected = sorted(
            (haversine_km(30.0, 31.0, lat, lng), lid)
            for lid, (lat, lng) in points.items()
            if haversine_km(30.0, 31.0, lat, lng) <= radius
        )
        got = [(r.distance_km, r.listing.id) for r in find_near(conn, center, radius)]
        assert got == expected


def test_repeated_queries_are_identical(conn, user):
    for i in range(20):
        add(conn, user, f"item {i}", 30.0 + (i % 4) * 0.01, 31.0)
    first = list(find_near(conn, Point(30.0, 31.0), 30))
    second = list(find_near(conn, Point(30.0, 31.0), 30))
    assert first == second


def test_across_antimeridian(conn, user):
    east = add(conn, user, "east", -17.0, 179.95)
    west = add(conn, user, "west", -17.0, -179.95)
    add(conn, user, "elsewhere", -17.0, 170.0)

    results = list(find_near(conn, Point(-17.0, 179.99), 20))
    assert [r.listing.id for r in results] == [east.id, west.id]


def test_filters_apply_on_top_of_distance(conn, user, other_user):
    cheap = add(conn, user, "cheap bike", 30.05, 31.24, price=50)
    add(conn, user, "fancy bike", 30.05, 31.24, price=5000)
    add(conn, other_user, "other bike", 30.05, 31.24, price=60)

    results = list(find_near(conn, Point(30.05, 31.24), 5, {"user_id": user.id, "max_price": 100}))
    assert [r.listing.id for r in results] == [cheap.id]

    results = list(find_near(conn, Point(30.05, 31.24), 5, {"q": "FANCY"}))
    assert [r.listing.name for r in results] == ["fancy bike"]


@pytest.mark.parametrize("radius", [0, -5, float("nan"), float("inf"), "10", None, True])
def test_invalid_radius(conn, radius):
    with pytest.raises(InvalidInput):
        find_near(conn, Point(0.0, 0.0), radius)


def test_invalid_point(conn):
    with pytest.raises(InvalidInput):
        find_near(conn, (30.0, 31.0), 10)


def test_search_near_text(conn, geocoder, user):
    cairo = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    giza = create_listing(conn, geocoder, user.id, "Kettle", 15, "Giza, Egypt")
    create_listing(conn, geocoder, user.id, "Boat", 900, "Alexandria, Egypt")

    results = search_near_text(conn, geocoder, "Cairo, Egypt")
    assert [r.listing.id for r in results] == [cairo.id, giza.id]

    results = search_near_text(conn, geocoder, "Giza, Egypt", radius_km=1)
    assert [r.listing.id for r in results] == [giza.id]


def test_search_near_text_unresolved_place_is_empty(conn, geocoder, user):
    create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    assert search_near_text(conn, geocoder, "Nowhere Land") == []


def test_search_near_text_errors(conn, geocoder):
    with pytest.raises(InvalidInput):
        search_near_text(conn, geocoder, "   ")
    with pytest.raises(InvalidInput):
        search_near_text(conn, geocoder, "Cairo, Egypt", radius_km=0)
    with pytest.raises(ProviderError):
        search_near_text(conn, geocoder, "Flaky Street")


def test_resolve_point(geocoder):
    assert resolve_point(geocoder, "Cairo, Egypt") == Point(30.0444, 31.2357)
    with pytest.raises(NoMatch):
        resolve_point(geocoder, "Nowhere Land")
