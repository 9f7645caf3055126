import os
from datetime import datetime, timezone

# Must be set before the app modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_SECRET"] = "test-secret"
os.environ["DISCOVER_TIMEZONE"] = "UTC"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from app.database import Base, SessionLocal, engine, get_db  # noqa: E402
from app.domain.rentals.records import RentalField, RentalOrganization, TimeSlot  # noqa: E402
from app.domain.rentals.router import get_reference_time  # noqa: E402
from app.main import app  # noqa: E402
from app import models  # noqa: E402

REFERENCE = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)  # Monday noon


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_reference_time] = lambda: REFERENCE
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_token(user_id: str, is_admin: bool = False, secret: str = "test-secret") -> str:
    return jwt.encode({"userId": user_id, "isAdmin": is_admin}, secret, algorithm="HS256")


def auth_headers(user_id: str, is_admin: bool = False) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, is_admin)}"}


# ============================================================================
# RECORD BUILDERS (pure pipeline)
# ============================================================================


def weekly_slot(slot_id="slot", day_of_week=2, minutes=1080, start=datetime(2023, 12, 20), end=None, end_minutes=None):
    return TimeSlot(
        id=slot_id,
        repeating=True,
        start_date=start,
        end_date=end,
        day_of_week=day_of_week,
        start_time_minutes=minutes,
        end_time_minutes=end_minutes,
    )


def one_off_slot(slot_id="once", start=datetime(2024, 1, 2, 18), minutes=None, end_minutes=None):
    return TimeSlot(
        id=slot_id,
        repeating=False,
        start_date=start,
        start_time_minutes=minutes,
        end_time_minutes=end_minutes,
    )


def rental_org(
    org_id, name=None, lat=None, long=None, sports=(), fields=(), description=None, location=None, website=None
):
    return RentalOrganization(
        id=org_id,
        name=name or org_id,
        description=description,
        location=location,
        website=website,
        lat=lat,
        long=long,
        sports=tuple(sports),
        fields=tuple(fields),
    )


def rental_field(field_id, slots, name=None, field_type="GRASS", number=1):
    return RentalField(
        id=field_id,
        name=name or field_id,
        type=field_type,
        field_number=number,
        rental_slots=tuple(slots),
    )


# ============================================================================
# DATABASE SEEDING
# ============================================================================


def seed_user(db, user_id, email=None, sensitive_email=None):
    user = models.User(id=user_id, first_name=user_id.title(), email=email)
    db.add(user)
    if sensitive_email is not None:
        db.add(models.SensitiveUserData(user_id=user_id, email=sensitive_email))
    db.commit()
    return user


def seed_link(db, parent_id, child_id, status="ACTIVE"):
    link = models.ParentChildLink(parent_id=parent_id, child_id=child_id, status=status)
    db.add(link)
    db.commit()
    return link


def seed_template(db, template_id, signer_type="PARENT_GUARDIAN", sign_once=False, doc_type="PDF"):
    template = models.TemplateDocument(
        id=template_id,
        title=template_id,
        type=doc_type,
        required_signer_type=signer_type,
        sign_once=sign_once,
    )
    db.add(template)
    db.commit()
    return template


def seed_event(db, event_id, template_ids=(), organization_id=None):
    event = models.Event(
        id=event_id,
        name=event_id,
        organization_id=organization_id,
        required_template_ids=list(template_ids),
    )
    db.add(event)
    db.commit()
    return event


def seed_registration(db, event_id, child_id, parent_id="parent", status="PENDINGCONSENT"):
    registration = models.EventRegistration(
        event_id=event_id,
        registrant_id=child_id,
        registrant_type="CHILD",
        parent_id=parent_id,
        status=status,
    )
    db.add(registration)
    db.commit()
    return registration


def seed_signature(db, template_id, user_id, signer_role, host_id, event_id=None, status="SIGNED"):
    signature = models.SignedDocument(
        signed_document_id=f"doc-{template_id}-{user_id}",
        template_id=template_id,
        user_id=user_id,
        host_id=host_id,
        event_id=event_id,
        status=status,
        signer_role=signer_role,
    )
    db.add(signature)
    db.commit()
    return signature
