"""Organization search for the discover page"""

import sys
from dataclasses import dataclass
from typing import Iterable, Optional

from .listings import organization_distance_km
from .records import GeoPoint, RentalOrganization

NO_RELEVANCE = sys.maxsize


@dataclass
class OrganizationResult:
    organization: RentalOrganization
    distance_km: Optional[float]
    relevance: int


def organization_search_text(organization: RentalOrganization) -> str:
    parts = [
        organization.name,
        organization.description or "",
        organization.location or "",
        organization.website or "",
    ]
    return " ".join(parts).lower()


def _result_sort_key(result: OrganizationResult) -> tuple:
    if result.distance_km is not None:
        return (0, result.distance_km, 0, "")
    return (1, 0.0, result.relevance, result.organization.name.lower())


def search_organizations(
    organizations: Iterable[RentalOrganization],
    query: Optional[str] = None,
    viewer_location: Optional[GeoPoint] = None,
) -> list[OrganizationResult]:
    """
    Rank organizations for the discover page.

    Without a query only organizations with coordinates are listed (the feed is
    "near you"). With a query, organizations must contain it in their name,
    description, location or website. Measurable results come first by
    distance; the rest by how early the query appears, then by name.
    """
    term = (query or "").strip().lower()
    results: list[OrganizationResult] = []

    for organization in organizations:
        text = organization_search_text(organization)
        if not term and organization.coordinates is None:
            continue
        if term and term not in text:
            continue

        results.append(
            OrganizationResult(
                organization=organization,
                distance_km=organization_distance_km(organization, viewer_location),
                relevance=text.index(term) if term else NO_RELEVANCE,
            )
        )

    results.sort(key=_result_sort_key)
    return results
