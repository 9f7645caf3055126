"""Filter, group and summarize rental listings for the discover feed"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from .listings import build_rental_listings
from .records import GeoPoint, OrganizationRentalGroup, RentalListing, RentalOrganization

logger = logging.getLogger(__name__)

DEFAULT_TIME_RANGE = (8, 22)


@dataclass(frozen=True)
class RentalFilterOptions:
    """
    Active discover filters. Empty sets accept everything; ``None`` disables
    the time, distance and text filters.
    """

    field_types: frozenset[str] = field(default_factory=frozenset)
    sports: frozenset[str] = field(default_factory=frozenset)
    time_range_hours: Optional[tuple[float, float]] = None  # [start, end)
    max_distance_km: Optional[float] = None
    query: Optional[str] = None


def occurrence_hour(occurrence: datetime) -> float:
    """Local clock hour with minutes as a fraction (18:30 -> 18.5)"""
    return occurrence.hour + occurrence.minute / 60


def _matches_field_type(listing: RentalListing, field_types: frozenset[str]) -> bool:
    if not field_types:
        return True
    return listing.field.type in field_types


def _matches_sport(listing: RentalListing, sports: frozenset[str]) -> bool:
    if not sports:
        return True
    wanted = {sport.strip().lower() for sport in sports}
    return any(sport.strip().lower() in wanted for sport in listing.organization.sports)


def _matches_time_range(listing: RentalListing, time_range: Optional[tuple[float, float]]) -> bool:
    if time_range is None:
        return True
    start_hour, end_hour = time_range
    hour = occurrence_hour(listing.next_occurrence)
    return start_hour <= hour < end_hour


def _matches_distance(listing: RentalListing, max_distance_km: Optional[float]) -> bool:
    if max_distance_km is None:
        return True
    # A listing that cannot be measured fails an explicit distance filter
    if listing.distance_km is None:
        return False
    return listing.distance_km <= max_distance_km


def listing_search_text(listing: RentalListing) -> str:
    organization = listing.organization
    parts = [
        organization.name,
        organization.description or "",
        organization.location or "",
        listing.field.name,
    ]
    return " ".join(parts).lower()


def _matches_query(listing: RentalListing, query: Optional[str]) -> bool:
    term = (query or "").strip().lower()
    if not term:
        return True
    return term in listing_search_text(listing)


def filter_listings(listings: Iterable[RentalListing], options: RentalFilterOptions) -> list[RentalListing]:
    """Keep listings passing every active filter, preserving input order"""
    return [
        listing
        for listing in listings
        if _matches_field_type(listing, options.field_types)
        and _matches_sport(listing, options.sports)
        and _matches_time_range(listing, options.time_range_hours)
        and _matches_distance(listing, options.max_distance_km)
        and _matches_query(listing, options.query)
    ]


def group_listings_by_organization(listings: Iterable[RentalListing]) -> list[OrganizationRentalGroup]:
    """Bucket listings per organization, organizations in first-seen order"""
    groups: dict[str, OrganizationRentalGroup] = {}
    for listing in listings:
        org_id = listing.organization.id
        group = groups.get(org_id)
        if group is None:
            group = OrganizationRentalGroup(organization=listing.organization)
            groups[org_id] = group
        group.listings.append(listing)
    return list(groups.values())


def default_time_range(listings: Iterable[RentalListing]) -> tuple[int, int]:
    """
    Hour window covering every listing, used to seed the time slider.

    Starts at the floor of the earliest occurrence hour and ends at the ceiling
    of the latest end hour. A degenerate window is widened to one hour.
    """
    listings = list(listings)
    if not listings:
        return DEFAULT_TIME_RANGE

    earliest = 24.0
    latest = 0.0
    for listing in listings:
        start_hour = occurrence_hour(listing.next_occurrence)
        slot = listing.slot
        if slot.end_time_minutes is not None:
            end_minutes = slot.end_time_minutes
        elif slot.start_time_minutes is not None:
            end_minutes = slot.start_time_minutes
        else:
            end_minutes = listing.next_occurrence.hour * 60
        earliest = min(earliest, start_hour)
        latest = max(latest, float(end_minutes // 60))

    floor = max(0, math.floor(earliest))
    ceil = min(24, math.ceil(latest))
    if floor == ceil:
        adjusted = min(24, floor + 1)
        return max(0, adjusted - 1), adjusted
    return floor, ceil


@dataclass
class RentalDiscoveryResult:
    groups: list[OrganizationRentalGroup]
    listings: list[RentalListing]
    total_listings: int
    default_time_range: tuple[int, int]


def discover_rentals(
    organizations: Iterable[RentalOrganization],
    reference: datetime,
    options: RentalFilterOptions,
    viewer_location: Optional[GeoPoint] = None,
) -> RentalDiscoveryResult:
    """Assemble, filter and group listings for one render pass"""
    listings = build_rental_listings(organizations, reference, viewer_location)
    filtered = filter_listings(listings, options)
    groups = group_listings_by_organization(filtered)
    logger.info(
        f"🔎 Rental discovery: {len(filtered)}/{len(listings)} listings across {len(groups)} organizations"
    )
    return RentalDiscoveryResult(
        groups=groups,
        listings=filtered,
        total_listings=len(listings),
        default_time_range=default_time_range(listings),
    )
