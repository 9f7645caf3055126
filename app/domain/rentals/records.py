"""Rental records - validated, read-only shapes consumed by the discovery pipeline"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class TimeSlot:
    """A rental availability window, either one-off or weekly repeating.

    ``day_of_week`` uses 0 = Monday ... 6 = Sunday. ``start_date`` and
    ``end_date`` are wall-clock datetimes without tzinfo; ``start_date`` is
    ``None`` when the stored value could not be parsed.
    """

    id: str
    repeating: bool
    start_date: Optional[datetime]
    end_date: Optional[datetime] = None
    day_of_week: Optional[int] = None
    start_time_minutes: Optional[int] = None
    end_time_minutes: Optional[int] = None
    price: Optional[int] = None


@dataclass(frozen=True)
class RentalField:
    id: str
    name: str
    type: Optional[str] = None
    field_number: Optional[int] = None
    location: Optional[str] = None
    rental_slots: tuple[TimeSlot, ...] = ()


@dataclass(frozen=True)
class RentalOrganization:
    id: str
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    lat: Optional[float] = None
    long: Optional[float] = None
    sports: tuple[str, ...] = ()
    fields: tuple[RentalField, ...] = ()

    @property
    def coordinates(self) -> Optional[tuple[float, float]]:
        """(lat, lng) when both are known"""
        if self.lat is None or self.long is None:
            return None
        return self.lat, self.long


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass
class RentalListing:
    """One bookable (organization, field, slot) with its next concrete start"""

    organization: RentalOrganization
    field: RentalField
    slot: TimeSlot
    next_occurrence: datetime
    distance_km: Optional[float] = None


@dataclass
class OrganizationRentalGroup:
    organization: RentalOrganization
    listings: list[RentalListing] = field(default_factory=list)

    @property
    def listing_count(self) -> int:
        return len(self.listings)

    @property
    def summary(self) -> str:
        noun = "rental slot" if self.listing_count == 1 else "rental slots"
        return f"{self.listing_count} {noun}"
