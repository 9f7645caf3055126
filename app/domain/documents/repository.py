"""Document repository - Database operations for signed documents"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Event, ParentChildLink, SensitiveUserData, SignedDocument, TemplateDocument, User


class DocumentRepository:
    """Repository for signed document database operations"""

    @staticmethod
    def has_active_link(db: Session, parent_id: str, child_id: str) -> bool:
        link = (
            db.query(ParentChildLink.id)
            .filter(
                ParentChildLink.parent_id == parent_id,
                ParentChildLink.child_id == child_id,
                ParentChildLink.status == "ACTIVE",
            )
            .first()
        )
        return link is not None

    @staticmethod
    def get_user_emails(db: Session, user_id: str) -> tuple[Optional[str], Optional[str]]:
        """(sensitive data email, auth email) for a user"""
        sensitive = db.query(SensitiveUserData.email).filter(SensitiveUserData.user_id == user_id).first()
        auth = db.query(User.email).filter(User.id == user_id).first()
        return (sensitive[0] if sensitive else None, auth[0] if auth else None)

    @staticmethod
    def get_event(db: Session, event_id: str) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def get_template(db: Session, template_id: str) -> Optional[TemplateDocument]:
        return db.query(TemplateDocument).filter(TemplateDocument.id == template_id).first()

    @staticmethod
    def find_signature(
        db: Session,
        template_id: str,
        user_id: str,
        signer_role: str,
        host_id: Optional[str],
        event_id: Optional[str] = None,
    ) -> Optional[SignedDocument]:
        """Latest signature row for the same template, signer and child (and event when given)"""
        query = db.query(SignedDocument).filter(
            SignedDocument.template_id == template_id,
            SignedDocument.user_id == user_id,
            SignedDocument.signer_role == signer_role,
            SignedDocument.host_id == host_id,
        )
        if event_id:
            query = query.filter(SignedDocument.event_id == event_id)
        return query.order_by(SignedDocument.updated_at.desc()).first()

    @staticmethod
    def create_signature(db: Session, **signature_data) -> SignedDocument:
        signature = SignedDocument(**signature_data)
        db.add(signature)
        db.commit()
        db.refresh(signature)
        return signature

    @staticmethod
    def update_signature(db: Session, signature: SignedDocument, **updates) -> SignedDocument:
        for key, value in updates.items():
            setattr(signature, key, value)
        db.commit()
        db.refresh(signature)
        return signature
