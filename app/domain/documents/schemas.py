"""Document domain schemas - Pydantic models for signature recording"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class RecordSignatureRequest(BaseModel):
    """Signature completed in the signing provider, reported back by the client"""

    model_config = ConfigDict(extra="allow")

    templateId: str
    documentId: str
    eventId: Optional[str] = None
    userId: Optional[str] = None
    childUserId: Optional[str] = None
    signerContext: Optional[str] = None
    user: Optional[dict[str, Any]] = None
    type: Optional[str] = None

    @field_validator("eventId", "userId", "childUserId", "signerContext", "type")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @property
    def signer_email(self) -> Optional[str]:
        email = (self.user or {}).get("email")
        if isinstance(email, str) and email.strip():
            return email.strip()
        return None


class RecordSignatureResponse(BaseModel):
    ok: bool = True
