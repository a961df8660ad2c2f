"""
Registration flow state machine.

The onboarding wizard is an explicit, immutable state value passed through
function calls. Every transition is checked against the current step;
nothing is kept in module or global state.

    DETAILS -> MOBILE_OTP -> AADHAAR -> OTP -> COMPLETE

OTP delivery and checking are external. Events carry their already-known
outcome (e.g. MobileVerified is only sent once the OTP was accepted).
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union
from uuid import UUID

from kyc_core.errors import InvalidState, ValidationError
from kyc_core.validation import is_valid_aadhaar, is_valid_mobile


class RegistrationStep(str, Enum):
    """Wizard steps in order."""
    DETAILS = "details"
    MOBILE_OTP = "mobile_otp"
    AADHAAR = "aadhaar"
    OTP = "otp"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SubmitDetails:
    display_name: str
    email: str
    phone: str


@dataclass(frozen=True)
class MobileVerified:
    user_id: UUID


@dataclass(frozen=True)
class SubmitAadhaar:
    aadhaar_number: str


@dataclass(frozen=True)
class AadhaarVerified:
    pass


RegistrationEvent = Union[SubmitDetails, MobileVerified, SubmitAadhaar, AadhaarVerified]


@dataclass(frozen=True)
class RegistrationState:
    """
    Current wizard position plus what has been collected so far.

    Only the last four Aadhaar digits are retained.
    """
    step: RegistrationStep = RegistrationStep.DETAILS
    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[UUID] = None
    aadhaar_last4: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.step == RegistrationStep.COMPLETE


# Which event each step accepts
_ACCEPTS = {
    RegistrationStep.DETAILS: SubmitDetails,
    RegistrationStep.MOBILE_OTP: MobileVerified,
    RegistrationStep.AADHAAR: SubmitAadhaar,
    RegistrationStep.OTP: AadhaarVerified,
}


def _digits(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())


def advance(state: RegistrationState, event: RegistrationEvent) -> RegistrationState:
    """
    Apply an event to the wizard state and return the next state.

    Raises:
        InvalidState: If the current step does not accept this event
        ValidationError: If the event payload is malformed
    """
    expected = _ACCEPTS.get(state.step)
    if expected is None or not isinstance(event, expected):
        raise InvalidState("registration", state.user_id, state.step.value, type(event).__name__)

    if isinstance(event, SubmitDetails):
        name = (event.display_name or "").strip()
        email = (event.email or "").strip().lower()
        phone = _digits(event.phone or "")
        if not name:
            raise ValidationError("display_name")
        if "@" not in email:
            raise ValidationError("email")
        if not is_valid_mobile(phone):
            raise ValidationError("phone")
        return replace(state, step=RegistrationStep.MOBILE_OTP,
                       display_name=name, email=email, phone=phone)

    if isinstance(event, MobileVerified):
        return replace(state, step=RegistrationStep.AADHAAR, user_id=event.user_id)

    if isinstance(event, SubmitAadhaar):
        number = _digits(event.aadhaar_number or "")
        if not is_valid_aadhaar(number):
            raise ValidationError("aadhaar_number")
        return replace(state, step=RegistrationStep.OTP, aadhaar_last4=number[-4:])

    return replace(state, step=RegistrationStep.COMPLETE)
