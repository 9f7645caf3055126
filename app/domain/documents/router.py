"""Document router - FastAPI endpoints for signed documents"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...auth import SessionContext, require_session
from ...database import get_db
from .schemas import RecordSignatureRequest, RecordSignatureResponse
from .service import DocumentService, resolve_ip_address

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Documents"])


def get_document_service(db: Session = Depends(get_db)) -> DocumentService:
    """Dependency injection for DocumentService"""
    return DocumentService(db)


@router.post("/record-signature", response_model=RecordSignatureResponse)
async def record_signature(
    data: RecordSignatureRequest,
    request: Request,
    session: SessionContext = Depends(require_session),
    service: DocumentService = Depends(get_document_service),
):
    """Record a completed signature and refresh the consent status it affects"""
    logger.info(f"📥 Recording signature for template {data.templateId} (session user {session.user_id})")
    service.record_signature(
        data,
        session,
        ip_address=resolve_ip_address(request.headers),
        request_id=request.headers.get("x-request-id"),
    )
    return RecordSignatureResponse(ok=True)
