"""Rental service - Business logic for rental discovery"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from .filters import RentalDiscoveryResult, RentalFilterOptions, discover_rentals
from .organizations import OrganizationResult, search_organizations
from .records import GeoPoint, RentalOrganization
from .repository import RentalRepository

logger = logging.getLogger(__name__)


class RentalService:
    """Service layer for rental discovery"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = RentalRepository()

    def discover(
        self,
        options: RentalFilterOptions,
        reference: datetime,
        viewer_location: Optional[GeoPoint] = None,
    ) -> RentalDiscoveryResult:
        """Run the discovery pipeline over every organization offering rentals"""
        organizations = self.repo.get_organizations_with_rentals(self.db)
        logger.info(f"📥 Loaded {len(organizations)} organizations with rental slots")
        return discover_rentals(organizations, reference, options, viewer_location)

    def organization_rentals(
        self,
        organization_id: str,
        options: RentalFilterOptions,
        reference: datetime,
        viewer_location: Optional[GeoPoint] = None,
    ) -> RentalDiscoveryResult:
        """Upcoming rentals for a single organization"""
        organization = self.repo.get_organization_with_rentals(self.db, organization_id)
        if not organization:
            raise HTTPException(status_code=404, detail="Organization not found")
        return discover_rentals([organization], reference, options, viewer_location)

    def search_organizations(
        self, query: Optional[str], viewer_location: Optional[GeoPoint] = None
    ) -> list[OrganizationResult]:
        organizations = self.repo.get_organizations(self.db)
        return search_organizations(organizations, query, viewer_location)

    @staticmethod
    def discover_snapshot(
        organizations: list[RentalOrganization],
        options: RentalFilterOptions,
        reference: datetime,
        viewer_location: Optional[GeoPoint] = None,
    ) -> RentalDiscoveryResult:
        """Run discovery over organizations supplied by the caller"""
        logger.info(f"📥 Discovering rentals over a snapshot of {len(organizations)} organizations")
        return discover_rentals(organizations, reference, options, viewer_location)
