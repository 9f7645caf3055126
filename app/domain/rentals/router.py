"""Rental discovery router - FastAPI endpoints for the discover feed"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...database import get_db
from .filters import RentalDiscoveryResult
from .occurrence import weekday_label
from .records import GeoPoint, RentalListing, RentalOrganization
from .schemas import (
    FieldSummary,
    OrganizationResultResponse,
    OrganizationRentalGroupResponse,
    OrganizationSummary,
    RentalDiscoveryResponse,
    RentalFiltersIn,
    RentalListingResponse,
    RentalSearchRequest,
    TimeSlotResponse,
)
from .service import RentalService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discover", tags=["Discover"])


def get_rental_service(db: Session = Depends(get_db)) -> RentalService:
    """Dependency injection for RentalService"""
    return RentalService(db)


def get_reference_time() -> datetime:
    """The instant "next occurrence" is measured from; overridden in tests"""
    return datetime.now(timezone.utc)


def _viewer_location(lat: Optional[float], lng: Optional[float]) -> Optional[GeoPoint]:
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        raise HTTPException(status_code=400, detail="lat and lng must be provided together")
    return GeoPoint(lat=lat, lng=lng)


def _filters_from_query(
    sports: list[str],
    field_types: list[str],
    start_hour: Optional[float],
    end_hour: Optional[float],
    max_distance_km: Optional[float],
    q: Optional[str],
) -> RentalFiltersIn:
    try:
        return RentalFiltersIn(
            sports=sports,
            fieldTypes=field_types,
            startHour=start_hour,
            endHour=end_hour,
            maxDistanceKm=max_distance_km,
            query=q,
        )
    except ValidationError as e:
        logger.warning(f"⚠️ Invalid rental filters: {e.errors()}")
        raise HTTPException(status_code=400, detail="Invalid filters: check the hour range and distance")


def _organization_summary(organization: RentalOrganization) -> OrganizationSummary:
    return OrganizationSummary(
        id=organization.id,
        name=organization.name,
        description=organization.description,
        location=organization.location,
        website=organization.website,
        lat=organization.lat,
        long=organization.long,
        sports=list(organization.sports),
    )


def _listing_response(listing: RentalListing) -> RentalListingResponse:
    slot = listing.slot
    return RentalListingResponse(
        organizationId=listing.organization.id,
        field=FieldSummary(
            id=listing.field.id,
            name=listing.field.name,
            type=listing.field.type,
            fieldNumber=listing.field.field_number,
        ),
        slot=TimeSlotResponse(
            id=slot.id,
            dayOfWeek=slot.day_of_week,
            dayLabel=weekday_label(listing.next_occurrence.weekday()),
            startTimeMinutes=slot.start_time_minutes,
            endTimeMinutes=slot.end_time_minutes,
            startDate=slot.start_date,
            endDate=slot.end_date,
            repeating=slot.repeating,
            price=slot.price,
        ),
        nextOccurrence=listing.next_occurrence,
        distanceKm=round(listing.distance_km, 2) if listing.distance_km is not None else None,
    )


def _discovery_response(result: RentalDiscoveryResult) -> RentalDiscoveryResponse:
    return RentalDiscoveryResponse(
        groups=[
            OrganizationRentalGroupResponse(
                organization=_organization_summary(group.organization),
                listingCount=group.listing_count,
                summary=group.summary,
                listings=[_listing_response(listing) for listing in group.listings],
            )
            for group in result.groups
        ],
        totalListings=result.total_listings,
        matchingListings=len(result.listings),
        defaultTimeRange=result.default_time_range,
    )


# ============================================================================
# RENTALS
# ============================================================================


@router.get("/rentals", response_model=RentalDiscoveryResponse)
async def discover_rentals(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    sports: list[str] = Query([]),
    field_types: list[str] = Query([]),
    start_hour: Optional[float] = Query(None),
    end_hour: Optional[float] = Query(None),
    max_distance_km: Optional[float] = Query(None),
    q: Optional[str] = Query(None, max_length=200),
    reference: datetime = Depends(get_reference_time),
    service: RentalService = Depends(get_rental_service),
):
    """Upcoming rental slots across organizations, filtered and grouped by organization"""
    filters = _filters_from_query(sports, field_types, start_hour, end_hour, max_distance_km, q)
    result = service.discover(filters.to_options(), reference, _viewer_location(lat, lng))
    return _discovery_response(result)


@router.post("/rentals/search", response_model=RentalDiscoveryResponse)
async def search_rentals(
    data: RentalSearchRequest,
    reference: datetime = Depends(get_reference_time),
):
    """Run discovery over an organizations snapshot supplied in the request body"""
    organizations = [org.to_record() for org in data.organizations]
    location = data.location.to_point() if data.location else None
    result = RentalService.discover_snapshot(
        organizations,
        data.filters.to_options(),
        data.referenceDate or reference,
        location,
    )
    return _discovery_response(result)


@router.get("/rentals/{organization_id}", response_model=RentalDiscoveryResponse)
async def organization_rentals(
    organization_id: str,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    field_types: list[str] = Query([]),
    start_hour: Optional[float] = Query(None),
    end_hour: Optional[float] = Query(None),
    reference: datetime = Depends(get_reference_time),
    service: RentalService = Depends(get_rental_service),
):
    """Upcoming rental slots for one organization"""
    filters = _filters_from_query([], field_types, start_hour, end_hour, None, None)
    result = service.organization_rentals(
        organization_id, filters.to_options(), reference, _viewer_location(lat, lng)
    )
    return _discovery_response(result)


# ============================================================================
# ORGANIZATIONS
# ============================================================================


@router.get("/organizations", response_model=list[OrganizationResultResponse])
async def discover_organizations(
    q: Optional[str] = Query(None, max_length=200),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    service: RentalService = Depends(get_rental_service),
):
    """Organizations near the viewer, or matching a search term"""
    results = service.search_organizations(q, _viewer_location(lat, lng))
    return [
        OrganizationResultResponse(
            organization=_organization_summary(result.organization),
            distanceKm=round(result.distance_km, 2) if result.distance_km is not None else None,
        )
        for result in results
    ]
