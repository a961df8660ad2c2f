"""
Pydantic schemas for KYC Token API.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TokenIssueRequest(BaseModel):
    """
    Schema for issuing a token.

    Claims are validated by the service so that failures report the
    first failing field in a fixed order.
    """
    name: Optional[str] = None
    pan: Optional[str] = None
    dob: Optional[str] = Field(None, description="ISO date, YYYY-MM-DD")
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class TokenRevokeRequest(BaseModel):
    """Schema for revoking a token."""
    token_id: UUID
    reason: Optional[str] = None


class TokenResponse(BaseModel):
    """Schema for token response."""
    id: UUID
    owner_id: UUID
    status: str
    issued_at: datetime
    revoked_at: Optional[datetime] = None
    revocation_reason: Optional[str] = None
    subject: Dict[str, Any]
    proof: Dict[str, Any]

    class Config:
        from_attributes = True


class TokenVerificationResponse(BaseModel):
    """Schema for a relying party's token check."""
    token_id: UUID
    valid: bool
    signature_valid: bool
    status: str


class KYCStatusResponse(BaseModel):
    """Derived KYC status for the current user."""
    owner_id: UUID
    state: str
    documents_required: List[str]
    documents_uploaded: List[str]
    documents_verified: List[str]
    can_issue_token: bool
    has_active_token: bool
    active_token_id: Optional[UUID] = None
