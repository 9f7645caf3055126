"""Rental repository - Database operations for the discovery snapshot"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Field, Organization, TimeSlot
from .records import RentalField, RentalOrganization
from .records import TimeSlot as TimeSlotRecord


def time_slot_to_record(slot: TimeSlot) -> TimeSlotRecord:
    return TimeSlotRecord(
        id=slot.id,
        repeating=bool(slot.repeating),
        start_date=slot.start_date,
        end_date=slot.end_date,
        day_of_week=slot.day_of_week,
        start_time_minutes=slot.start_time_minutes,
        end_time_minutes=slot.end_time_minutes,
        price=slot.price,
    )


def field_to_record(field: Field) -> RentalField:
    return RentalField(
        id=field.id,
        name=field.name,
        type=field.type.upper() if field.type else None,
        field_number=field.field_number,
        location=field.location,
        rental_slots=tuple(time_slot_to_record(slot) for slot in field.rental_slots),
    )


def organization_to_record(organization: Organization) -> RentalOrganization:
    sports = organization.sports if isinstance(organization.sports, list) else []
    return RentalOrganization(
        id=organization.id,
        name=organization.name,
        description=organization.description,
        location=organization.location,
        website=organization.website,
        lat=organization.lat,
        long=organization.long,
        sports=tuple(s for s in sports if isinstance(s, str) and s.strip()),
        fields=tuple(field_to_record(field) for field in organization.fields),
    )


class RentalRepository:
    """Repository for rental snapshot queries"""

    @staticmethod
    def _with_slots(query):
        return query.options(selectinload(Organization.fields).selectinload(Field.rental_slots))

    @staticmethod
    def get_organizations_with_rentals(db: Session) -> list[RentalOrganization]:
        """Organizations owning at least one field with rental slots, fully loaded"""
        query = (
            db.query(Organization)
            .filter(Organization.fields.any(Field.rental_slots.any()))
            .order_by(Organization.name.asc())
        )
        organizations = RentalRepository._with_slots(query).all()
        return [organization_to_record(org) for org in organizations]

    @staticmethod
    def get_organization_with_rentals(db: Session, organization_id: str) -> Optional[RentalOrganization]:
        query = db.query(Organization).filter(Organization.id == organization_id)
        organization = RentalRepository._with_slots(query).first()
        return organization_to_record(organization) if organization else None

    @staticmethod
    def get_organizations(db: Session) -> list[RentalOrganization]:
        """All organizations (fields loaded, used for organization search)"""
        query = db.query(Organization).order_by(Organization.name.asc())
        return [organization_to_record(org) for org in RentalRepository._with_slots(query).all()]
