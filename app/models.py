import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a string primary key (ids are opaque strings across the platform)"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=generate_id)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    user_name = Column(String(255), unique=True, index=True, nullable=True)
    email = Column(String(255), index=True, nullable=True)  # Auth email, may differ from sensitive data
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    sensitive_data = relationship(
        "SensitiveUserData", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class SensitiveUserData(Base):
    __tablename__ = "sensitive_user_data"

    id = Column(String(64), primary_key=True, default=generate_id)
    user_id = Column(String(64), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="sensitive_data")


class ParentChildLink(Base):
    __tablename__ = "parent_child_links"

    id = Column(String(64), primary_key=True, default=generate_id)
    parent_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    child_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(50), default="ACTIVE", nullable=False)  # ACTIVE, PENDING, REVOKED
    created_at = Column(DateTime, server_default=func.now())


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String(64), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    website = Column(String(500), nullable=True)
    location = Column(String(500), nullable=True)  # Human readable address
    lat = Column(Float, nullable=True)
    long = Column(Float, nullable=True)
    sports = Column(JSON, default=list, nullable=True)  # e.g. ["Volleyball", "Pickleball"]
    owner_id = Column(String(64), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    fields = relationship(
        "Field", back_populates="organization", cascade="all, delete-orphan", order_by="Field.field_number"
    )
    events = relationship("Event", back_populates="organization")


class Field(Base):
    __tablename__ = "fields"

    id = Column(String(64), primary_key=True, default=generate_id)
    organization_id = Column(String(64), ForeignKey("organizations.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=True)  # Surface type, upper-case (GRASS, SAND, INDOOR...)
    field_number = Column(Integer, default=1, nullable=False)
    location = Column(String(500), nullable=True)
    lat = Column(Float, nullable=True)
    long = Column(Float, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    organization = relationship("Organization", back_populates="fields")
    rental_slots = relationship(
        "TimeSlot", back_populates="field", cascade="all, delete-orphan", order_by="TimeSlot.start_date"
    )


class TimeSlot(Base):
    __tablename__ = "time_slots"

    id = Column(String(64), primary_key=True, default=generate_id)
    field_id = Column(String(64), ForeignKey("fields.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=True)  # 0 = Monday ... 6 = Sunday
    start_time_minutes = Column(Integer, nullable=True)  # Minutes since midnight
    end_time_minutes = Column(Integer, nullable=True)
    start_date = Column(DateTime, nullable=True)  # Wall-clock, no timezone
    end_date = Column(DateTime, nullable=True)
    repeating = Column(Boolean, default=False, nullable=False)
    price = Column(Integer, nullable=True)  # Cents
    created_at = Column(DateTime, server_default=func.now())

    field = relationship("Field", back_populates="rental_slots")


class Event(Base):
    __tablename__ = "events"

    id = Column(String(64), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    organization_id = Column(String(64), ForeignKey("organizations.id"), nullable=True, index=True)
    start = Column(DateTime, nullable=True)
    end = Column(DateTime, nullable=True)
    required_template_ids = Column(JSON, default=list, nullable=True)  # TemplateDocument ids
    created_at = Column(DateTime, server_default=func.now())

    organization = relationship("Organization", back_populates="events")


class EventRegistration(Base):
    __tablename__ = "event_registrations"

    id = Column(String(64), primary_key=True, default=generate_id)
    event_id = Column(String(64), ForeignKey("events.id"), nullable=False, index=True)
    registrant_id = Column(String(64), nullable=False, index=True)  # User or team id
    registrant_type = Column(String(20), nullable=False)  # SELF, CHILD, TEAM
    parent_id = Column(String(64), nullable=True)  # Guardian who registered a child
    status = Column(String(30), default="ACTIVE", nullable=False)  # ACTIVE, PENDINGCONSENT, CANCELLED
    consent_status = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class TemplateDocument(Base):
    __tablename__ = "template_documents"

    id = Column(String(64), primary_key=True, default=generate_id)
    organization_id = Column(String(64), ForeignKey("organizations.id"), nullable=True)
    title = Column(String(255), nullable=False)
    type = Column(String(20), default="PDF", nullable=False)  # PDF, TEXT
    required_signer_type = Column(String(50), default="PARTICIPANT", nullable=False)
    sign_once = Column(Boolean, default=False, nullable=False)  # One signature covers every event
    created_at = Column(DateTime, server_default=func.now())


class SignedDocument(Base):
    __tablename__ = "signed_documents"

    id = Column(String(64), primary_key=True, default=generate_id)
    signed_document_id = Column(String(255), nullable=False)  # Provider document id
    template_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)  # Who signed
    host_id = Column(String(64), nullable=True, index=True)  # Child the signature is for
    organization_id = Column(String(64), nullable=True)
    event_id = Column(String(64), nullable=True, index=True)
    document_name = Column(String(255), nullable=True)
    status = Column(String(30), nullable=False)  # SIGNED, COMPLETED, PENDING
    signed_at = Column(String(64), nullable=True)  # ISO timestamp
    signer_email = Column(String(255), nullable=True)
    signer_role = Column(String(30), nullable=True)  # participant, parent_guardian, child
    ip_address = Column(String(64), nullable=True)
    request_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
