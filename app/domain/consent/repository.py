"""Consent repository - Database operations for registration consent"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...models import Event, EventRegistration, SensitiveUserData, SignedDocument, TemplateDocument

SYNCABLE_REGISTRATION_STATUSES = ("PENDINGCONSENT", "ACTIVE")


class ConsentRepository:
    """Repository for consent status queries"""

    @staticmethod
    def get_latest_child_registration(
        db: Session, event_id: str, child_user_id: str, parent_user_id: Optional[str] = None
    ) -> Optional[EventRegistration]:
        query = db.query(EventRegistration).filter(
            EventRegistration.event_id == event_id,
            EventRegistration.registrant_id == child_user_id,
            EventRegistration.registrant_type == "CHILD",
            EventRegistration.status.in_(SYNCABLE_REGISTRATION_STATUSES),
        )
        if parent_user_id:
            query = query.filter(EventRegistration.parent_id == parent_user_id)
        return query.order_by(EventRegistration.updated_at.desc(), EventRegistration.created_at.desc()).first()

    @staticmethod
    def get_child_registrations(db: Session, child_user_id: str) -> list[EventRegistration]:
        """Every syncable registration of a child, across events"""
        return (
            db.query(EventRegistration)
            .filter(
                EventRegistration.registrant_id == child_user_id,
                EventRegistration.registrant_type == "CHILD",
                EventRegistration.status.in_(SYNCABLE_REGISTRATION_STATUSES),
            )
            .order_by(EventRegistration.updated_at.desc())
            .all()
        )

    @staticmethod
    def get_event(db: Session, event_id: str) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def get_templates(db: Session, template_ids: Iterable[str]) -> list[TemplateDocument]:
        ids = list(template_ids)
        if not ids:
            return []
        return db.query(TemplateDocument).filter(TemplateDocument.id.in_(ids)).all()

    @staticmethod
    def get_signed_documents(
        db: Session, template_ids: Iterable[str], user_id: str, signer_role: str, host_id: str
    ) -> list[SignedDocument]:
        ids = list(template_ids)
        if not ids:
            return []
        return (
            db.query(SignedDocument)
            .filter(
                SignedDocument.template_id.in_(ids),
                SignedDocument.user_id == user_id,
                SignedDocument.signer_role == signer_role,
                SignedDocument.host_id == host_id,
            )
            .all()
        )

    @staticmethod
    def get_sensitive_email(db: Session, user_id: str) -> Optional[str]:
        row = db.query(SensitiveUserData).filter(SensitiveUserData.user_id == user_id).first()
        return row.email if row else None

    @staticmethod
    def update_registration_consent(
        db: Session, registration: EventRegistration, status: str, consent_status: str
    ) -> EventRegistration:
        registration.status = status
        registration.consent_status = consent_status
        db.commit()
        db.refresh(registration)
        return registration
