"""
Pydantic schemas for User API.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from kyc_core.domain.registration import RegistrationStep


class UserCreate(BaseModel):
    """Schema for registering a user."""
    display_name: str = Field(..., description="Name shown to requesters")
    email: str = Field(..., description="Unique contact email")
    phone: Optional[str] = Field(None, description="Indian mobile number (10 digits)")


class UserUpdate(BaseModel):
    """Schema for updating a user's profile. Omitted fields are unchanged."""
    display_name: Optional[str] = None
    phone: Optional[str] = None


class UserResponse(BaseModel):
    """Schema for user response."""
    id: UUID
    display_name: str
    email: str
    phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== Onboarding wizard =====

class RegistrationStateSchema(BaseModel):
    """Wizard position and collected details. The client echoes it back on each step."""
    step: RegistrationStep = RegistrationStep.DETAILS
    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[UUID] = None
    aadhaar_last4: Optional[str] = None


class SubmitDetailsBody(BaseModel):
    event: Literal["submit_details"] = "submit_details"
    display_name: str
    email: str
    phone: str


class MobileVerifiedBody(BaseModel):
    """Sent once the external OTP check passed; X-Actor-Id carries the new user id."""
    event: Literal["mobile_verified"] = "mobile_verified"


class SubmitAadhaarBody(BaseModel):
    event: Literal["submit_aadhaar"] = "submit_aadhaar"
    aadhaar_number: str


class AadhaarVerifiedBody(BaseModel):
    event: Literal["aadhaar_verified"] = "aadhaar_verified"


RegistrationEventBody = Annotated[
    Union[SubmitDetailsBody, MobileVerifiedBody, SubmitAadhaarBody, AadhaarVerifiedBody],
    Field(discriminator="event"),
]


class RegistrationAdvanceRequest(BaseModel):
    """One wizard step: the current state plus the event to apply."""
    state: RegistrationStateSchema = Field(default_factory=RegistrationStateSchema)
    event: RegistrationEventBody


class RegistrationResponse(BaseModel):
    """Next wizard state; user is set on the step that creates it."""
    state: RegistrationStateSchema
    user: Optional[UserResponse] = None
