"""Consent service - keeps child registrations in step with their signed documents

A child registration stays PENDINGCONSENT until every required template has
been signed by the people it asks for (the guardian, the child, or both).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ...models import EventRegistration, SignedDocument, TemplateDocument
from .repository import ConsentRepository
from .signer_types import normalize_required_signer_type, normalize_text, requires_child, requires_parent

logger = logging.getLogger(__name__)

SIGNED_STATUSES = {"signed", "completed"}

# Consent statuses written to the registration
CONSENT_COMPLETED = "completed"
CONSENT_SENT = "sent"
CONSENT_CHILD_EMAIL_REQUIRED = "child_email_required"
CONSENT_GUARDIAN_APPROVAL_REQUIRED = "guardian_approval_required"
CONSENT_PARENT_SIGNED = "parentSigned"
CONSENT_CHILD_SIGNED = "childSigned"


@dataclass
class ConsentProgress:
    """Where a child registration stands against its required templates"""

    requires_parent: bool
    requires_child: bool
    parent_signed: bool
    child_signed: bool
    child_email: Optional[str]

    @property
    def complete(self) -> bool:
        return (not self.requires_parent or self.parent_signed) and (
            not self.requires_child or self.child_signed
        )

    @property
    def consent_status(self) -> str:
        if self.requires_child and not self.child_email:
            return CONSENT_CHILD_EMAIL_REQUIRED
        if self.complete:
            return CONSENT_COMPLETED
        if self.requires_child and not self.child_signed:
            if self.requires_parent:
                return CONSENT_PARENT_SIGNED if self.parent_signed else CONSENT_GUARDIAN_APPROVAL_REQUIRED
            return CONSENT_SENT
        if self.requires_parent and not self.parent_signed:
            if self.requires_child and self.child_signed:
                return CONSENT_CHILD_SIGNED
            return CONSENT_GUARDIAN_APPROVAL_REQUIRED
        return CONSENT_SENT

    @property
    def registration_status(self) -> str:
        return "ACTIVE" if self.complete else "PENDINGCONSENT"


def is_signed_status(status: Optional[str]) -> bool:
    return isinstance(status, str) and status.strip().lower() in SIGNED_STATUSES


def templates_satisfied(
    templates: list[TemplateDocument], signatures: list[SignedDocument], event_id: str
) -> bool:
    """Every template has a signed row; sign-once templates accept a signature from any event"""
    for template in templates:
        matched = any(
            signature.template_id == template.id
            and is_signed_status(signature.status)
            and (template.sign_once or signature.event_id == event_id)
            for signature in signatures
        )
        if not matched:
            return False
    return True


class ConsentService:
    """Service layer for child registration consent"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ConsentRepository()

    def sync_child_registration_consent_status(
        self, event_id: str, child_user_id: str, parent_user_id: Optional[str] = None
    ) -> Optional[EventRegistration]:
        """Recompute consent for the child's latest registration in an event.

        Returns the updated registration, or None when there was nothing to sync.
        """
        event_id = normalize_text(event_id)
        child_user_id = normalize_text(child_user_id)
        if not event_id or not child_user_id:
            return None

        registration = self.repo.get_latest_child_registration(
            self.db, event_id, child_user_id, normalize_text(parent_user_id)
        )
        if not registration or not normalize_text(registration.parent_id):
            return None

        event = self.repo.get_event(self.db, event_id)
        if not event:
            logger.warning(f"⚠️ Consent sync skipped, event {event_id} not found")
            return None

        template_ids = [t for t in (event.required_template_ids or []) if normalize_text(t)]
        templates = self.repo.get_templates(self.db, template_ids)

        parent_templates = []
        child_templates = []
        for template in templates:
            signer_type = normalize_required_signer_type(template.required_signer_type)
            if requires_parent(signer_type):
                parent_templates.append(template)
            if requires_child(signer_type):
                child_templates.append(template)

        if not parent_templates and not child_templates:
            return self.repo.update_registration_consent(self.db, registration, "ACTIVE", CONSENT_COMPLETED)

        progress = self.build_progress(event_id, registration, parent_templates, child_templates)
        logger.info(
            f"🔎 Consent for child {child_user_id} in event {event_id}: "
            f"parent={progress.parent_signed}/{progress.requires_parent} "
            f"child={progress.child_signed}/{progress.requires_child}"
        )
        updated = self.repo.update_registration_consent(
            self.db, registration, progress.registration_status, progress.consent_status
        )
        if progress.complete:
            logger.info(f"✅ Consent completed for registration {registration.id}")
        return updated

    def build_progress(
        self,
        event_id: str,
        registration: EventRegistration,
        parent_templates: list[TemplateDocument],
        child_templates: list[TemplateDocument],
    ) -> ConsentProgress:
        child_user_id = registration.registrant_id
        parent_signatures = self.repo.get_signed_documents(
            self.db,
            [t.id for t in parent_templates],
            user_id=registration.parent_id,
            signer_role="parent_guardian",
            host_id=child_user_id,
        )
        child_signatures = self.repo.get_signed_documents(
            self.db,
            [t.id for t in child_templates],
            user_id=child_user_id,
            signer_role="child",
            host_id=child_user_id,
        )
        child_email = None
        if child_templates:
            child_email = normalize_text(self.repo.get_sensitive_email(self.db, child_user_id))

        return ConsentProgress(
            requires_parent=bool(parent_templates),
            requires_child=bool(child_templates),
            parent_signed=templates_satisfied(parent_templates, parent_signatures, event_id),
            child_signed=templates_satisfied(child_templates, child_signatures, event_id),
            child_email=child_email,
        )

    def sync_child_registrations(self, child_user_id: str) -> int:
        """Sync every registration of a child, once per (event, guardian); used after sign-once signatures"""
        seen = set()
        synced = 0
        for registration in self.repo.get_child_registrations(self.db, child_user_id):
            key = (registration.event_id, registration.parent_id)
            if key in seen:
                continue
            seen.add(key)
            if self.sync_child_registration_consent_status(
                registration.event_id, child_user_id, registration.parent_id
            ):
                synced += 1
        return synced


def sync_child_registration_consent_status(
    db: Session, event_id: str, child_user_id: str, parent_user_id: Optional[str] = None
) -> Optional[EventRegistration]:
    return ConsentService(db).sync_child_registration_consent_status(event_id, child_user_id, parent_user_id)
