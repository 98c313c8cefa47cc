"""
Tests for listing writes: geocode-on-save, atomicity and ownership.
"""
import pytest

from listings.core import backfill_coordinates, create_listing, delete_listing, update_listing
from listings.database import db_delete_user, db_get_listing, db_list_listings
from listings.errors import InvalidInput, NotFound, PermissionDenied, ProviderError


def stored(conn, listing_id):
    return db_get_listing(conn, listing_id)


def test_create_geocodes_location(conn, geocoder, user):
    listing = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    row = stored(conn, listing.id)
    assert (row.latitude, row.longitude) == (30.0444, 31.2357)
    assert row.user_id == user.id
    assert row.created_at and row.updated_at


def test_create_with_no_match_saves_without_coordinates(conn, geocoder, user):
    listing = create_listing(conn, geocoder, user.id, "Sofa", 80, "Nowhere Land")
    row = stored(conn, listing.id)
    assert row.location == "Nowhere Land"
    assert row.latitude is None and row.longitude is None


def test_create_with_provider_error_writes_nothing(conn, geocoder, user):
    with pytest.raises(ProviderError):
        create_listing(conn, geocoder, user.id, "Lamp", 10, "Flaky Street")
    assert db_list_listings(conn) == []


def test_create_for_unknown_user(conn, geocoder):
    with pytest.raises(NotFound):
        create_listing(conn, geocoder, 999, "Lamp", 10, "Cairo, Egypt")
    assert geocoder.calls == []


@pytest.mark.parametrize("name,price", [("", 10), ("   ", 10), ("Lamp", -1), ("Lamp", "free"), ("Lamp", None)])
def test_create_rejects_bad_fields(conn, geocoder, user, name, price):
    with pytest.raises(InvalidInput):
        create_listing(conn, geocoder, user.id, name, price, "Cairo, Egypt")
    assert geocoder.calls == []


def test_update_without_location_change_keeps_coordinates(conn, geocoder, user):
    listing = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    geocoder.calls.clear()

    update_listing(conn, geocoder, listing.id, {"name": "Racing bike", "location": "Cairo, Egypt"})

    row = stored(conn, listing.id)
    assert row.name == "Racing bike"
    assert (row.latitude, row.longitude) == (30.0444, 31.2357)
    assert geocoder.calls == []


def test_update_location_regeocodes(conn, geocoder, user):
    listing = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    update_listing(conn, geocoder, listing.id, {"location": "Alexandria, Egypt"})
    row = stored(conn, listing.id)
    assert (row.latitude, row.longitude) == (31.2001, 29.9187)


def test_clearing_location_clears_coordinates_without_provider_call(conn, geocoder, user):
    listing = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    geocoder.calls.clear()

    update_listing(conn, geocoder, listing.id, {"location": ""})

    row = stored(conn, listing.id)
    assert row.location == ""
    assert row.latitude is None and row.longitude is None
    assert geocoder.calls == []


def test_provider_error_aborts_whole_update(conn, geocoder, user):
    listing = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    before = stored(conn, listing.id)

    with pytest.raises(ProviderError):
        update_listing(conn, geocoder, listing.id, {"name": "Renamed", "location": "Flaky Street"})

    after = stored(conn, listing.id)
    assert after == before


@pytest.mark.parametrize("changes", [
    {"latitude": 1.0},
    {"longitude": 1.0},
    {"location": "Giza, Egypt", "latitude": 0.0, "longitude": 0.0},
    {"user_id": 2},
])
def test_update_rejects_non_editable_fields(conn, geocoder, user, changes):
    listing = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    with pytest.raises(InvalidInput):
        update_listing(conn, geocoder, listing.id, changes)
    row = stored(conn, listing.id)
    assert (row.latitude, row.longitude) == (30.0444, 31.2357)


def test_update_by_non_owner_is_denied(conn, geocoder, user, other_user):
    listing = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    with pytest.raises(PermissionDenied):
        update_listing(conn, geocoder, listing.id, {"name": "Mine now"}, acting_user_id=other_user.id)
    with pytest.raises(PermissionDenied):
        delete_listing(conn, listing.id, acting_user_id=other_user.id)


def test_update_missing_listing(conn, geocoder):
    with pytest.raises(NotFound):
        update_listing(conn, geocoder, 42, {"name": "Ghost"})


def test_coordinates_always_set_together(conn, geocoder, user):
    listing = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    for location in ["Nowhere Land", "Giza, Egypt", "", "Alexandria, Egypt", "Alexandria, Egypt"]:
        update_listing(conn, geocoder, listing.id, {"location": location})
        row = stored(conn, listing.id)
        assert (row.latitude is None) == (row.longitude is None)


def test_delete_listing(conn, geocoder, user):
    listing = create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    delete_listing(conn, listing.id, acting_user_id=user.id)
    assert stored(conn, listing.id) is None
    with pytest.raises(NotFound):
        delete_listing(conn, listing.id)


def test_deleting_user_deletes_their_listings(conn, geocoder, user, other_user):
    create_listing(conn, geocoder, user.id, "Road bike", 350, "Cairo, Egypt")
    kept = create_listing(conn, geocoder, other_user.id, "Kettle", 15, "Giza, Egypt")

    assert db_delete_user(conn, user.id)

    assert [x.id for x in db_list_listings(conn)] == [kept.id]


def test_backfill_resolves_previously_unmatched(conn, geocoder, user):
    listing = create_listing(conn, geocoder, user.id, "Sofa", 80, "Nowhere Land")
    create_listing(conn, geocoder, user.id, "Chair", 20, "Still Nowhere")
    geocoder.answers["Nowhere Land"] = (30.0131, 31.2089)

    counts = backfill_coordinates(conn, geocoder)

    assert counts == {"checked": 2, "resolved": 1, "unmatched": 1, "skipped": 0}
    row = stored(conn, listing.id)
    assert (row.latitude, row.longitude) == (30.0131, 31.2089)


def test_backfill_stops_on_provider_error(conn, geocoder, user):
    create_listing(conn, geocoder, user.id, "Sofa", 80, "Nowhere Land")
    geocoder.answers["Nowhere Land"] = ProviderError("down")
    with pytest.raises(ProviderError):
        backfill_coordinates(conn, geocoder)
