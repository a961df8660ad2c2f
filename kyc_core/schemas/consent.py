"""
Pydantic schemas for Consent API.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ConsentCreate(BaseModel):
    """Schema for a requester asking a user to share fields."""
    owner_id: UUID = Field(..., description="User whose data is requested")
    requester_name: Optional[str] = Field(None, description="Display name of the requester")
    requested_fields: List[str] = Field(..., description="Field names, e.g. name, pan, aadhaar")
    purpose: Optional[str] = None


class ConsentApproveRequest(BaseModel):
    """Schema for approving a consent request."""
    consent_id: UUID
    expires_at: Optional[datetime] = Field(None, description="Expiry; omit for no expiry")


class ConsentRejectRequest(BaseModel):
    """Schema for rejecting a consent request."""
    consent_id: UUID
    reason: Optional[str] = None


class ConsentRevokeRequest(BaseModel):
    """Schema for revoking an approved consent."""
    consent_id: UUID


class ConsentResponse(BaseModel):
    """Schema for consent request response."""
    id: UUID
    owner_id: UUID
    requester_id: str
    requester_name: str
    requested_fields: List[str]
    purpose: Optional[str] = None
    status: str
    created_at: datetime
    approved_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    class Config:
        from_attributes = True


class ConsentLiveResponse(BaseModel):
    """Access check: whether the consent grants disclosure right now."""
    consent_id: UUID
    live: bool
    status: str


class FieldStatus(BaseModel):
    """Per-field fulfillment status for the consent detail screen."""
    field: str
    kind: str
    satisfied: bool


class FulfillmentResponse(BaseModel):
    """Schema for evaluating a consent against current evidence."""
    consent_id: UUID
    complete: bool
    satisfied: List[str]
    missing_documents: List[str]
    missing_data: List[str]
    fields: List[FieldStatus]


class RevocationOutcomeResponse(BaseModel):
    """Per-consent result of revoke-all."""
    consent_id: UUID
    revoked: bool
    error: Optional[str] = None


class RevokeAllResponse(BaseModel):
    """Schema for a batch revocation."""
    revoked: int
    failed: int
    outcomes: List[RevocationOutcomeResponse]
