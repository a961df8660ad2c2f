"""
Registration Flow Tests

The wizard state is an immutable value; each step accepts one event.
"""

import pytest
from uuid import uuid4

from kyc_core.domain.registration import (
    AadhaarVerified,
    MobileVerified,
    RegistrationState,
    RegistrationStep,
    SubmitAadhaar,
    SubmitDetails,
    advance,
)
from kyc_core.errors import InvalidState, ValidationError


DETAILS = SubmitDetails(display_name=" Asha Rao ", email="Asha@Example.com", phone="98765 43210")


def test_happy_path():
    user_id = uuid4()
    state = RegistrationState()

    state = advance(state, DETAILS)
    assert state.step == RegistrationStep.MOBILE_OTP
    assert state.display_name == "Asha Rao"
    assert state.email == "asha@example.com"
    assert state.phone == "9876543210"

    state = advance(state, MobileVerified(user_id=user_id))
    assert state.step == RegistrationStep.AADHAAR
    assert state.user_id == user_id

    state = advance(state, SubmitAadhaar(aadhaar_number="1234 5678 9012"))
    assert state.step == RegistrationStep.OTP
    assert state.aadhaar_last4 == "9012"

    state = advance(state, AadhaarVerified())
    assert state.is_complete


def test_states_are_not_mutated():
    initial = RegistrationState()

    advance(initial, DETAILS)

    assert initial.step == RegistrationStep.DETAILS
    assert initial.email is None


def test_out_of_order_event():
    with pytest.raises(InvalidState) as exc_info:
        advance(RegistrationState(), SubmitAadhaar(aadhaar_number="123456789012"))

    assert exc_info.value.current == "details"
    assert exc_info.value.operation == "SubmitAadhaar"


def test_complete_accepts_nothing():
    state = RegistrationState(step=RegistrationStep.COMPLETE)

    with pytest.raises(InvalidState):
        advance(state, AadhaarVerified())


@pytest.mark.parametrize("event,field", [
    (SubmitDetails(display_name=" ", email="asha@example.com", phone="9876543210"), "display_name"),
    (SubmitDetails(display_name="Asha", email="asha.example.com", phone="9876543210"), "email"),
    (SubmitDetails(display_name="Asha", email="asha@example.com", phone="1234567890"), "phone"),
])
def test_invalid_details(event, field):
    with pytest.raises(ValidationError) as exc_info:
        advance(RegistrationState(), event)

    assert exc_info.value.field == field


@pytest.mark.parametrize("number", ["12345678901", "1234567890123", "abcd efgh ijkl"])
def test_invalid_aadhaar(number):
    state = RegistrationState(step=RegistrationStep.AADHAAR, user_id=uuid4())

    with pytest.raises(ValidationError) as exc_info:
        advance(state, SubmitAadhaar(aadhaar_number=number))

    assert exc_info.value.field == "aadhaar_number"
