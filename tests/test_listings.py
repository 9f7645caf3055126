import math
from datetime import datetime

from app.domain.rentals.listings import (
    build_rental_listings,
    km_between,
    km_to_miles,
    organization_distance_km,
)
from app.domain.rentals.records import GeoPoint
from tests.conftest import REFERENCE, one_off_slot, rental_field, rental_org, weekly_slot

VIEWER = GeoPoint(lat=40.7128, lng=-74.0060)  # New York


def test_distance_to_same_point_is_zero():
    assert km_between(VIEWER, VIEWER) == 0


def test_distance_new_york_to_los_angeles():
    los_angeles = GeoPoint(lat=34.0522, lng=-118.2437)
    distance = km_between(VIEWER, los_angeles)
    assert abs(distance - 3936) < 5
    assert abs(km_to_miles(distance) - 2445) < 5


def test_distance_is_symmetric():
    boston = GeoPoint(lat=42.3601, lng=-71.0589)
    assert math.isclose(km_between(VIEWER, boston), km_between(boston, VIEWER))


def test_distance_unavailable_without_viewer_or_coordinates():
    located = rental_org("located", lat=40.7, long=-74.0)
    unlocated = rental_org("unlocated")
    broken = rental_org("broken", lat=float("nan"), long=-74.0)

    assert organization_distance_km(located, None) is None
    assert organization_distance_km(unlocated, VIEWER) is None
    assert organization_distance_km(broken, VIEWER) is None
    assert organization_distance_km(located, VIEWER) is not None


def test_one_listing_per_upcoming_slot():
    org = rental_org(
        "org",
        fields=[
            rental_field("f1", [weekly_slot("weekly"), one_off_slot("expired", start=datetime(2023, 1, 1))]),
            rental_field("f2", [one_off_slot("upcoming")]),
        ],
    )

    listings = build_rental_listings([org], REFERENCE)

    assert [listing.slot.id for listing in listings] == ["upcoming", "weekly"]
    assert all(listing.organization is org for listing in listings)
    assert listings[0].field.id == "f2"
    assert listings[1].next_occurrence == datetime(2024, 1, 3, 18, 0)


def test_no_organizations_no_listings():
    assert build_rental_listings([], REFERENCE) == []


def test_located_listings_first_then_by_occurrence():
    near = rental_org("near", lat=40.73, long=-73.99, fields=[rental_field("nf", [weekly_slot("near-slot", day_of_week=5)])])
    far = rental_org("far", lat=42.36, long=-71.06, fields=[rental_field("ff", [one_off_slot("far-slot")])])
    nowhere = rental_org(
        "nowhere",
        fields=[
            rental_field(
                "xf",
                [
                    weekly_slot("later", day_of_week=4),
                    one_off_slot("sooner", start=datetime(2024, 1, 1, 15, 0)),
                ],
            )
        ],
    )

    listings = build_rental_listings([nowhere, far, near], REFERENCE, VIEWER)

    assert [listing.slot.id for listing in listings] == ["near-slot", "far-slot", "sooner", "later"]
    assert listings[0].distance_km < listings[1].distance_km
    assert listings[2].distance_km is None


def test_without_viewer_sorted_by_occurrence():
    org = rental_org(
        "org",
        lat=40.7,
        long=-74.0,
        fields=[rental_field("f", [weekly_slot("fri", day_of_week=4), weekly_slot("tue", day_of_week=1)])],
    )

    listings = build_rental_listings([org], REFERENCE)

    assert [listing.slot.id for listing in listings] == ["tue", "fri"]
    assert all(listing.distance_km is None for listing in listings)
