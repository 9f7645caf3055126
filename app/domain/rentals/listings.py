"""Listing assembly - fan the resolver out across organizations, fields and slots"""

import logging
import math
from datetime import datetime
from typing import Iterable, Optional

from .occurrence import resolve_next_occurrence
from .records import GeoPoint, RentalListing, RentalOrganization

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371


def km_between(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in kilometers (haversine)"""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    sin_d_lat = math.sin(d_lat / 2)
    sin_d_lng = math.sin(d_lng / 2)
    h = sin_d_lat * sin_d_lat + math.cos(lat1) * math.cos(lat2) * sin_d_lng * sin_d_lng
    return EARTH_RADIUS_KM * 2 * math.asin(math.sqrt(min(1.0, h)))


def km_to_miles(km: float) -> float:
    return km * KM_TO_MILES


def _is_finite_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def organization_distance_km(
    organization: RentalOrganization, viewer_location: Optional[GeoPoint]
) -> Optional[float]:
    """Distance from the viewer, or None when it cannot be computed"""
    if viewer_location is None:
        return None
    if not (_is_finite_number(organization.lat) and _is_finite_number(organization.long)):
        return None
    try:
        distance = km_between(viewer_location, GeoPoint(lat=organization.lat, lng=organization.long))
    except (TypeError, ValueError) as e:
        logger.debug(f"Distance unavailable for organization {organization.id}: {e}")
        return None
    return distance if math.isfinite(distance) else None


def listing_sort_key(listing: RentalListing) -> tuple:
    """
    Listings with a distance come first, nearest first. Listings without one
    follow, soonest occurrence first.
    """
    if listing.distance_km is not None:
        return (0, listing.distance_km)
    return (1, listing.next_occurrence)


def build_rental_listings(
    organizations: Iterable[RentalOrganization],
    reference: datetime,
    viewer_location: Optional[GeoPoint] = None,
) -> list[RentalListing]:
    """Flatten organizations -> fields -> slots into sorted listings with a next occurrence"""
    listings: list[RentalListing] = []
    skipped = 0

    for organization in organizations:
        # Same distance for every slot of the organization
        distance_km = organization_distance_km(organization, viewer_location)

        for rental_field in organization.fields:
            for slot in rental_field.rental_slots:
                next_occurrence = resolve_next_occurrence(slot, reference)
                if next_occurrence is None:
                    skipped += 1
                    continue
                listings.append(
                    RentalListing(
                        organization=organization,
                        field=rental_field,
                        slot=slot,
                        next_occurrence=next_occurrence,
                        distance_km=distance_km,
                    )
                )

    listings.sort(key=listing_sort_key)
    logger.debug(f"Assembled {len(listings)} rental listings ({skipped} slots without an upcoming occurrence)")
    return listings
