"""
Pydantic schemas for Evidence Document API.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DocumentUpload(BaseModel):
    """Schema for recording an uploaded document."""
    category: str = Field(..., description="Document category, e.g. aadhaar_front")
    storage_ref: str = Field(..., description="Opaque handle returned by the blob store")


class VerificationCallback(BaseModel):
    """Schema for the external issuer's verification outcome."""
    issuer: str = Field(..., description="Issuing authority that checked the document")
    verified: bool
    score: int = Field(..., description="Trust score, 0-100")


class DocumentResponse(BaseModel):
    """Schema for evidence document response."""
    id: UUID
    owner_id: UUID
    category: str
    raw_category: str
    storage_ref: str
    status: str
    issuer: Optional[str] = None
    verified_at: Optional[datetime] = None
    trust_score: int
    is_current: bool
    superseded_at: Optional[datetime] = None
    superseded_by_id: Optional[UUID] = None
    uploaded_at: datetime

    class Config:
        from_attributes = True
