"""Document service - Business logic for recording signatures"""

import logging
from datetime import datetime, timezone
from typing import Mapping, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import SessionContext
from ..consent.service import ConsentService
from ..consent.signer_types import normalize_signer_context, normalize_text
from .repository import DocumentRepository
from .schemas import RecordSignatureRequest

logger = logging.getLogger(__name__)

CHILD_ACCOUNT_REQUIRED = "Child signatures must be completed by the child account."
SHARED_EMAIL_REQUIRED = (
    "Child signatures must be completed by the child account unless parent and child share the same email."
)


def normalize_email(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    return normalized or None


def resolve_signer_context(provided: Optional[str], user_id: str, child_user_id: Optional[str]) -> str:
    """Explicit context wins; otherwise infer it from who is signing for whom"""
    if normalize_text(provided):
        return normalize_signer_context(provided, "participant")
    if child_user_id and user_id == child_user_id:
        return "child"
    if child_user_id:
        return "parent_guardian"
    return "participant"


def resolve_ip_address(headers: Mapping[str, str]) -> str:
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        candidate = forwarded.split(",")[0].strip()
        if candidate:
            return candidate

    for header in ("x-real-ip", "cf-connecting-ip"):
        value = headers.get(header)
        if value:
            return value.strip()

    return "127.0.0.1"


class DocumentService:
    """Service layer for signed documents"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DocumentRepository()
        self.consent = ConsentService(db)

    def resolve_user_email(self, user_id: str) -> Optional[str]:
        sensitive_email, auth_email = self.repo.get_user_emails(self.db, user_id)
        return normalize_email(sensitive_email) or normalize_email(auth_email)

    def authorize_signer(
        self, session: SessionContext, user_id: str, child_user_id: Optional[str], signer_context: str
    ) -> None:
        """Raise 403 unless the session may sign as user_id in this context"""
        if session.is_admin:
            return

        if signer_context == "child" and user_id != session.user_id:
            raise HTTPException(status_code=403, detail=CHILD_ACCOUNT_REQUIRED)

        if user_id != session.user_id and not self.repo.has_active_link(self.db, session.user_id, user_id):
            logger.warning(f"⚠️ User {session.user_id} tried to sign as unlinked user {user_id}")
            raise HTTPException(status_code=403, detail="Forbidden")

        if (
            signer_context == "parent_guardian"
            and child_user_id
            and not self.repo.has_active_link(self.db, session.user_id, child_user_id)
        ):
            logger.warning(f"⚠️ User {session.user_id} tried to sign for unlinked child {child_user_id}")
            raise HTTPException(status_code=403, detail="Forbidden")

        if signer_context == "child":
            resolved_child_id = child_user_id or user_id
            if session.user_id == resolved_child_id:
                return
            if not self.repo.has_active_link(self.db, session.user_id, resolved_child_id):
                raise HTTPException(status_code=403, detail=CHILD_ACCOUNT_REQUIRED)
            parent_email = self.resolve_user_email(session.user_id)
            child_email = self.resolve_user_email(resolved_child_id)
            if not parent_email or not child_email or parent_email != child_email:
                raise HTTPException(status_code=403, detail=SHARED_EMAIL_REQUIRED)

    def record_signature(
        self,
        data: RecordSignatureRequest,
        session: SessionContext,
        ip_address: str,
        request_id: Optional[str] = None,
    ) -> None:
        """Upsert the signed document row, then bring consent status up to date"""
        user_id = data.userId or session.user_id
        event_id = data.eventId
        child_user_id = data.childUserId
        signer_context = resolve_signer_context(data.signerContext, user_id, child_user_id)

        self.authorize_signer(session, user_id, child_user_id, signer_context)

        event = self.repo.get_event(self.db, event_id) if event_id else None
        event_organization_id = event.organization_id if event else None
        scoped_child_id = child_user_id or (user_id if signer_context == "child" else None)
        signed_at = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

        existing = self.repo.find_signature(
            self.db, data.templateId, user_id, signer_context, scoped_child_id, event_id
        )
        if existing:
            self.repo.update_signature(
                self.db,
                existing,
                signed_document_id=data.documentId,
                status="SIGNED",
                signed_at=signed_at,
                signer_email=data.signer_email,
                signer_role=signer_context,
                host_id=scoped_child_id,
                organization_id=existing.organization_id or event_organization_id,
                event_id=event_id,
                ip_address=ip_address,
                request_id=request_id,
            )
            logger.info(f"✅ Updated signature {existing.id} for template {data.templateId}")
        else:
            signature = self.repo.create_signature(
                self.db,
                signed_document_id=data.documentId,
                template_id=data.templateId,
                user_id=user_id,
                document_name="Text Waiver" if data.type == "TEXT" else "Signed Document",
                host_id=scoped_child_id,
                organization_id=event_organization_id,
                event_id=event_id,
                status="SIGNED",
                signed_at=signed_at,
                signer_email=data.signer_email,
                signer_role=signer_context,
                ip_address=ip_address,
                request_id=request_id,
            )
            logger.info(f"✅ Recorded {signer_context} signature {signature.id} for template {data.templateId}")

        template = self.repo.get_template(self.db, data.templateId)
        if scoped_child_id and template and template.sign_once:
            synced = self.consent.sync_child_registrations(scoped_child_id)
            logger.info(f"📊 Sign-once template {template.id}: synced {synced} registrations for child {scoped_child_id}")
        elif event_id and scoped_child_id:
            self.consent.sync_child_registration_consent_status(event_id, scoped_child_id)
