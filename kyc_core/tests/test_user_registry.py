"""
User Registry and KYC Status Tests
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
)
from kyc_core.errors import InvalidState, NotFound, ValidationError
from kyc_core.services import (
    EvidenceRegistry, KYCStatusService, TokenLifecycleManager, UserRegistry, VerificationState
)


class TestUserRegistry:
    """Test registration and profile updates."""

    def test_register_normalizes(self, db_session):
        user = UserRegistry(db_session).register(" Asha Rao ", " Asha@Example.COM ", "98765-43210")

        assert user.display_name == "Asha Rao"
        assert user.email == "asha@example.com"
        assert user.phone == "9876543210"

    def test_duplicate_email(self, db_session, user):
        with pytest.raises(ValidationError) as exc_info:
            UserRegistry(db_session).register("Another Asha", "ASHA@example.com")

        assert exc_info.value.field == "email"

    @pytest.mark.parametrize("name,email,phone,field", [
        ("", "a@example.com", None, "display_name"),
        ("Asha", "not-an-email", None, "email"),
        ("Asha", "a@example.com", "12345", "phone"),
    ])
    def test_invalid_registration(self, db_session, name, email, phone, field):
        with pytest.raises(ValidationError) as exc_info:
            UserRegistry(db_session).register(name, email, phone)

        assert exc_info.value.field == field

    def test_update_profile(self, db_session, user):
        updated = UserRegistry(db_session).update_profile(user.id, display_name="Asha R.", phone="")

        assert updated.display_name == "Asha R."
        assert updated.phone is None
        assert updated.email == "asha@example.com"

    def test_update_unknown_user(self, db_session):
        with pytest.raises(NotFound):
            UserRegistry(db_session).update_profile(uuid4(), display_name="x")

    def test_get_by_email(self, db_session, user):
        assert UserRegistry(db_session).get_by_email("ASHA@example.com").id == user.id


class TestRegistrationWizard:
    """The onboarding wizard creates the user at the mobile step."""

    DETAILS = SubmitDetails(display_name=" Vikram Shah ", email="Vikram@Example.com", phone="98123 45678")

    def test_full_walk(self, db_session):
        registry = UserRegistry(db_session)
        user_id = uuid4()

        state, user = registry.advance_registration(RegistrationState(), self.DETAILS)
        assert state.step == RegistrationStep.MOBILE_OTP
        assert user is None
        assert registry.get_by_email("vikram@example.com") is None

        state, user = registry.advance_registration(state, MobileVerified(user_id=user_id))
        assert state.step == RegistrationStep.AADHAAR
        assert user.id == user_id
        assert user.display_name == "Vikram Shah"
        assert user.phone == "9812345678"

        state, _ = registry.advance_registration(state, SubmitAadhaar(aadhaar_number="1234 5678 9012"))
        state, user = registry.advance_registration(state, AadhaarVerified())
        assert state.is_complete
        assert state.aadhaar_last4 == "9012"
        assert user is None

    def test_taken_email_is_refused_up_front(self, db_session, user):
        with pytest.raises(ValidationError) as exc_info:
            UserRegistry(db_session).advance_registration(
                RegistrationState(),
                SubmitDetails(display_name="Asha", email="ASHA@example.com", phone="9876543210"),
            )

        assert exc_info.value.field == "email"

    def test_tampered_details_are_rechecked(self, db_session):
        state = RegistrationState(
            step=RegistrationStep.MOBILE_OTP, display_name="Vikram", email="no-at-sign", phone="9812345678"
        )

        with pytest.raises(ValidationError) as exc_info:
            UserRegistry(db_session).advance_registration(state, MobileVerified(user_id=uuid4()))

        assert exc_info.value.field == "email"
        assert UserRegistry(db_session).get_by_email("no-at-sign") is None

    def test_existing_user_id_is_refused(self, db_session, user):
        registry = UserRegistry(db_session)
        state, _ = registry.advance_registration(RegistrationState(), self.DETAILS)

        with pytest.raises(ValidationError) as exc_info:
            registry.advance_registration(state, MobileVerified(user_id=user.id))

        assert exc_info.value.field == "user_id"

    def test_out_of_order_event(self, db_session):
        with pytest.raises(InvalidState):
            UserRegistry(db_session).advance_registration(RegistrationState(), MobileVerified(user_id=uuid4()))


class TestKYCStatus:
    """Derived verification status."""

    def test_not_started(self, db_session, user):
        status = KYCStatusService(db_session).status_for(user.id)

        assert status.state == VerificationState.NOT_STARTED
        assert status.documents_required == ["aadhaar_front", "aadhaar_back", "pan_card", "selfie"]
        assert status.can_issue_token is False

    def test_uploaded_but_unverified(self, db_session, user, full_documents):
        status = KYCStatusService(db_session).status_for(user.id)

        assert status.state == VerificationState.DOCUMENTS_UPLOADED
        assert sorted(status.documents_uploaded) == sorted(status.documents_required)
        assert status.documents_verified == []
        assert status.can_issue_token is False

    def test_all_required_verified(self, db_session, user, full_documents):
        registry = EvidenceRegistry(db_session)
        for document in full_documents:
            registry.record_verification(document.id, issuer="UIDAI", score=90, verified=True)

        status = KYCStatusService(db_session).status_for(user.id)

        assert status.state == VerificationState.DOCUMENTS_VERIFIED
        assert status.can_issue_token is True

    def test_rejected_document_blocks_issuance(self, db_session, user, full_documents):
        registry = EvidenceRegistry(db_session)
        for document in full_documents:
            registry.record_verification(
                document.id, issuer="UIDAI", score=20,
                verified=document.raw_category != "selfie"
            )

        status = KYCStatusService(db_session).status_for(user.id)

        assert status.can_issue_token is False
        assert "selfie" not in status.documents_verified

    def test_tokenized(self, db_session, user, active_token):
        status = KYCStatusService(db_session).status_for(user.id)

        assert status.state == VerificationState.TOKENIZED
        assert status.has_active_token is True
        assert status.active_token_id == active_token.id

    def test_custom_required_documents(self, db_session, user, upload):
        document, = upload(user, "passport")
        EvidenceRegistry(db_session).record_verification(document.id, "MEA", 95, True)

        status = KYCStatusService(db_session, required_documents=["Passport"]).status_for(user.id)

        assert status.can_issue_token is True

    def test_revoked_token_drops_tokenized(self, db_session, user, active_token):
        TokenLifecycleManager(db_session).revoke(active_token.id, actor_id=str(user.id))

        status = KYCStatusService(db_session).status_for(user.id)

        assert status.state == VerificationState.NOT_STARTED
        assert status.has_active_token is False
