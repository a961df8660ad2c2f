"""
Pydantic schemas for the audit trail.

Each audit action carries its own detail variant. The `action` literal is the
discriminator, so a stored payload always parses back to exactly one type.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter


class _Detail(BaseModel):
    class Config:
        frozen = True
        extra = "forbid"


class TokenIssuedDetail(_Detail):
    action: Literal["TOKEN_ISSUED"] = "TOKEN_ISSUED"
    subject_fields: List[str] = Field(..., description="Claim names present in the credential (no values)")
    proof_type: str


class TokenRevokedDetail(_Detail):
    action: Literal["TOKEN_REVOKED"] = "TOKEN_REVOKED"
    reason: Optional[str] = None


class TokenVerifiedDetail(_Detail):
    action: Literal["TOKEN_VERIFIED"] = "TOKEN_VERIFIED"
    valid: bool
    signature_valid: bool
    status: str


class ConsentRequestedDetail(_Detail):
    action: Literal["CONSENT_REQUESTED"] = "CONSENT_REQUESTED"
    requester: str
    fields: List[str]
    purpose: Optional[str] = None


class ConsentApprovedDetail(_Detail):
    action: Literal["CONSENT_APPROVED"] = "CONSENT_APPROVED"
    requester: str
    fields: List[str]
    expires_at: Optional[datetime] = None


class ConsentRejectedDetail(_Detail):
    action: Literal["CONSENT_REJECTED"] = "CONSENT_REJECTED"
    requester: str
    reason: Optional[str] = None


class ConsentRevokedDetail(_Detail):
    action: Literal["CONSENT_REVOKED"] = "CONSENT_REVOKED"
    requester: str
    batch: bool = False


AuditDetail = Annotated[
    Union[
        TokenIssuedDetail,
        TokenRevokedDetail,
        TokenVerifiedDetail,
        ConsentRequestedDetail,
        ConsentApprovedDetail,
        ConsentRejectedDetail,
        ConsentRevokedDetail,
    ],
    Field(discriminator="action"),
]

audit_detail_adapter: TypeAdapter = TypeAdapter(AuditDetail)


def parse_audit_detail(payload: dict):
    """Parse a stored detail payload back into its variant."""
    return audit_detail_adapter.validate_python(payload)


class AuditEntryResponse(BaseModel):
    """Schema for audit entry response."""
    id: UUID
    sequence: int
    action: str
    subject_type: str
    subject_id: UUID
    owner_id: Optional[UUID] = None
    actor_id: str
    detail: AuditDetail
    occurred_at: datetime

    class Config:
        from_attributes = True


class AuditPageResponse(BaseModel):
    """Schema for a page of audit entries (newest first)."""
    entries: List[AuditEntryResponse]
    next_cursor: Optional[str] = None


class AuditSummaryResponse(BaseModel):
    """Per-action counts for an owner."""
    total: int
    by_action: dict
