"""Rental discovery schemas - Pydantic models for validation"""

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from .filters import RentalFilterOptions
from .occurrence import parse_local_datetime
from .records import GeoPoint, RentalField, RentalOrganization, TimeSlot


def _lenient_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return int(number) if math.isfinite(number) else None


def _lenient_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def _record_id(value: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return _clean_text(value) or ""


def _record_items(value: Any) -> list:
    """Nested records only; anything that is not an object is dropped"""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, (dict, BaseModel))]


# ============================================================================
# INPUT (loosely typed JSON from the data-fetching layer)
# ============================================================================


class TimeSlotIn(BaseModel):
    """Schema for a rental time slot; malformed values default instead of failing"""

    id: str = Field(default="", validation_alias=AliasChoices("id", "$id"))
    dayOfWeek: Optional[int] = None
    startTimeMinutes: Optional[int] = None
    endTimeMinutes: Optional[int] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    repeating: bool = False
    price: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return _record_id(v)

    @field_validator("dayOfWeek", "startTimeMinutes", "endTimeMinutes", "price", mode="before")
    @classmethod
    def coerce_int(cls, v):
        return _lenient_int(v)

    @field_validator("startDate", "endDate", mode="before")
    @classmethod
    def parse_wall_clock(cls, v):
        return parse_local_datetime(v)

    @field_validator("repeating", mode="before")
    @classmethod
    def coerce_bool(cls, v):
        return bool(v)

    def to_record(self) -> TimeSlot:
        return TimeSlot(
            id=self.id,
            repeating=self.repeating,
            start_date=self.startDate,
            end_date=self.endDate,
            day_of_week=self.dayOfWeek,
            start_time_minutes=self.startTimeMinutes,
            end_time_minutes=self.endTimeMinutes,
            price=self.price,
        )


class FieldIn(BaseModel):
    """Schema for a field and its rental slots"""

    id: str = Field(default="", validation_alias=AliasChoices("id", "$id"))
    name: str = ""
    type: Optional[str] = None
    fieldNumber: Optional[int] = None
    location: Optional[str] = None
    rentalSlots: list[TimeSlotIn] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return _record_id(v)

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v):
        return _clean_text(v) or ""

    @field_validator("location", mode="before")
    @classmethod
    def coerce_location(cls, v):
        return _clean_text(v)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        text = _clean_text(v)
        return text.upper() if text else None

    @field_validator("fieldNumber", mode="before")
    @classmethod
    def coerce_field_number(cls, v):
        return _lenient_int(v)

    @field_validator("rentalSlots", mode="before")
    @classmethod
    def default_slots(cls, v):
        return _record_items(v)

    def to_record(self) -> RentalField:
        return RentalField(
            id=self.id,
            name=self.name,
            type=self.type,
            field_number=self.fieldNumber,
            location=self.location,
            rental_slots=tuple(slot.to_record() for slot in self.rentalSlots),
        )


class OrganizationIn(BaseModel):
    """Schema for an organization snapshot with nested fields"""

    id: str = Field(default="", validation_alias=AliasChoices("id", "$id"))
    name: str = ""
    description: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    lat: Optional[float] = Field(default=None, validation_alias=AliasChoices("lat", "latitude"))
    long: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("long", "lng", "longitude")
    )
    coordinates: Optional[list[Any]] = None  # [lng, lat]
    sports: list[str] = Field(default_factory=list)
    fields: list[FieldIn] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return _record_id(v)

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v):
        return _clean_text(v) or ""

    @field_validator("description", "location", "website", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _clean_text(v)

    @field_validator("lat", "long", mode="before")
    @classmethod
    def coerce_coordinate(cls, v):
        return _lenient_float(v)

    @field_validator("coordinates", mode="before")
    @classmethod
    def coerce_coordinates(cls, v):
        return v if isinstance(v, (list, tuple)) else None

    @field_validator("sports", mode="before")
    @classmethod
    def clean_sports(cls, v):
        if not isinstance(v, (list, tuple)):
            return []
        return [text for text in (_clean_text(item) for item in v) if text]

    @field_validator("fields", mode="before")
    @classmethod
    def default_fields(cls, v):
        return _record_items(v)

    @model_validator(mode="after")
    def prefer_coordinate_pair(self):
        if self.coordinates and len(self.coordinates) >= 2:
            lng = _lenient_float(self.coordinates[0])
            lat = _lenient_float(self.coordinates[1])
            if lat is not None and lng is not None:
                self.lat = lat
                self.long = lng
        return self

    def to_record(self) -> RentalOrganization:
        return RentalOrganization(
            id=self.id,
            name=self.name,
            description=self.description,
            location=self.location,
            website=self.website,
            lat=self.lat,
            long=self.long,
            sports=tuple(self.sports),
            fields=tuple(f.to_record() for f in self.fields),
        )


class RentalFiltersIn(BaseModel):
    """Schema for the active discover filters"""

    fieldTypes: list[str] = Field(default_factory=list)
    sports: list[str] = Field(default_factory=list)
    startHour: Optional[float] = Field(default=None, ge=0, le=24)
    endHour: Optional[float] = Field(default=None, ge=0, le=24)
    maxDistanceKm: Optional[float] = Field(default=None, ge=0)
    query: Optional[str] = None

    @model_validator(mode="after")
    def validate_hours(self):
        if (self.startHour is None) != (self.endHour is None):
            raise ValueError("startHour and endHour must be provided together")
        if self.startHour is not None and self.startHour >= self.endHour:
            raise ValueError("startHour must be before endHour")
        return self

    def to_options(self) -> RentalFilterOptions:
        time_range = None
        if self.startHour is not None and self.endHour is not None:
            time_range = (self.startHour, self.endHour)
        return RentalFilterOptions(
            field_types=frozenset(t.strip().upper() for t in self.fieldTypes if t.strip()),
            sports=frozenset(s.strip() for s in self.sports if s.strip()),
            time_range_hours=time_range,
            max_distance_km=self.maxDistanceKm,
            query=_clean_text(self.query),
        )


class LocationIn(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    def to_point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


class RentalSearchRequest(BaseModel):
    """Schema for running discovery over a caller-supplied snapshot"""

    organizations: list[OrganizationIn]
    filters: RentalFiltersIn = Field(default_factory=RentalFiltersIn)
    location: Optional[LocationIn] = None
    referenceDate: Optional[datetime] = None

    @field_validator("organizations", mode="before")
    @classmethod
    def drop_non_objects(cls, v):
        if not isinstance(v, list):
            return v
        return [item for item in v if isinstance(item, (dict, BaseModel))]


# ============================================================================
# RESPONSES
# ============================================================================


class TimeSlotResponse(BaseModel):
    id: str
    dayOfWeek: Optional[int] = None
    dayLabel: Optional[str] = None
    startTimeMinutes: Optional[int] = None
    endTimeMinutes: Optional[int] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    repeating: bool
    price: Optional[int] = None


class FieldSummary(BaseModel):
    id: str
    name: str
    type: Optional[str] = None
    fieldNumber: Optional[int] = None


class OrganizationSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    lat: Optional[float] = None
    long: Optional[float] = None
    sports: list[str] = Field(default_factory=list)


class RentalListingResponse(BaseModel):
    organizationId: str
    field: FieldSummary
    slot: TimeSlotResponse
    nextOccurrence: datetime
    distanceKm: Optional[float] = None


class OrganizationRentalGroupResponse(BaseModel):
    organization: OrganizationSummary
    listingCount: int
    summary: str
    listings: list[RentalListingResponse]


class RentalDiscoveryResponse(BaseModel):
    groups: list[OrganizationRentalGroupResponse]
    totalListings: int
    matchingListings: int
    defaultTimeRange: tuple[int, int]


class OrganizationResultResponse(BaseModel):
    organization: OrganizationSummary
    distanceKm: Optional[float] = None
