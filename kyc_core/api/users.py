"""
Users API Router.

Registration and profile management for identity owners.
"""

from dataclasses import asdict
from typing import Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from kyc_core.api.dependencies import ACTOR_HEADER, get_current_user_id
from kyc_core.database import get_db
from kyc_core.domain.registration import (
    AadhaarVerified,
    MobileVerified,
    RegistrationEvent,
    RegistrationState,
    SubmitAadhaar,
    SubmitDetails,
)
from kyc_core.errors import NotFound
from kyc_core.models import User
from kyc_core.schemas.user import (
    AadhaarVerifiedBody,
    MobileVerifiedBody,
    RegistrationAdvanceRequest,
    RegistrationResponse,
    RegistrationStateSchema,
    SubmitAadhaarBody,
    SubmitDetailsBody,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from kyc_core.services import UserRegistry

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=201)
def register_user(request: UserCreate, db: Session = Depends(get_db)):
    """Register a new user. The returned id is the caller's actor id from now on."""
    user = UserRegistry(db).register(
        display_name=request.display_name,
        email=request.email,
        phone=request.phone,
    )
    return _user_to_response(user)


@router.post("/registration", response_model=RegistrationResponse)
def advance_registration(
    request: RegistrationAdvanceRequest,
    x_actor_id: Optional[str] = Header(None, alias=ACTOR_HEADER),
    db: Session = Depends(get_db)
):
    """
    Move the onboarding wizard one step.

    No wizard state is kept server-side; the client sends back the state
    from the previous response. From mobile_verified on, the caller must
    be the user the upstream OTP check authenticated.
    """
    state = RegistrationState(**request.state.model_dump())
    event = _to_event(request.event, state, x_actor_id)
    state, user = UserRegistry(db).advance_registration(state, event)
    return RegistrationResponse(
        state=RegistrationStateSchema(**asdict(state)),
        user=_user_to_response(user) if user is not None else None,
    )


@router.get("/me", response_model=UserResponse)
def get_me(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get the caller's profile."""
    user = UserRegistry(db).get(user_id)
    if user is None:
        raise NotFound("user", user_id)
    return _user_to_response(user)


@router.patch("/me", response_model=UserResponse)
def update_me(
    request: UserUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update the caller's display name or phone."""
    user = UserRegistry(db).update_profile(
        user_id,
        display_name=request.display_name,
        phone=request.phone,
    )
    return _user_to_response(user)


# Helper functions

def _to_event(
    body: Union[SubmitDetailsBody, MobileVerifiedBody, SubmitAadhaarBody, AadhaarVerifiedBody],
    state: RegistrationState,
    x_actor_id: Optional[str]
) -> RegistrationEvent:
    if isinstance(body, SubmitDetailsBody):
        return SubmitDetails(display_name=body.display_name, email=body.email, phone=body.phone)

    actor_id = get_current_user_id(x_actor_id)
    if isinstance(body, MobileVerifiedBody):
        return MobileVerified(user_id=actor_id)
    if actor_id != state.user_id:
        raise NotFound("user", actor_id)
    if isinstance(body, SubmitAadhaarBody):
        return SubmitAadhaar(aadhaar_number=body.aadhaar_number)
    return AadhaarVerified()


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        display_name=user.display_name,
        email=user.email,
        phone=user.phone,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
