"""
Token Lifecycle Tests

Issue -> ACTIVE -> REVOKED; every transition leaves one audit entry.
"""

import pytest
from uuid import uuid4

from kyc_core.config import settings
from kyc_core.domain.signing import verify_proof
from kyc_core.errors import AlreadyRevoked, NotFound, ValidationError
from kyc_core.models import AuditAction, AuditLogEntry, CredentialStatus
from kyc_core.services import AuditTrail, TokenLifecycleManager


def _actions(db_session, subject_id):
    page = AuditTrail(db_session).list_for(subject_id=subject_id)
    return [e.action for e in page.entries]


class TestIssue:
    """Test token issuance."""

    def test_issue_normalizes_claims(self, db_session, user, asha_subject):
        token = TokenLifecycleManager(db_session).issue(user.id, asha_subject)

        assert token.status == CredentialStatus.ACTIVE
        assert token.subject == {
            "name": "Asha Rao",
            "pan": "ABCDE1234F",
            "dob": "1992-03-04",
            "phone": "9876543210",
        }
        assert token.proof["type"] == settings.credential_proof_type
        assert len(token.proof["signature"]) == 64

    def test_issue_emits_audit_entry(self, db_session, user, asha_subject):
        token = TokenLifecycleManager(db_session).issue(user.id, asha_subject)

        entries = AuditTrail(db_session).list_for(subject_id=token.id).entries
        assert len(entries) == 1
        assert entries[0].action == AuditAction.TOKEN_ISSUED
        assert entries[0].actor_id == str(user.id)
        assert entries[0].owner_id == user.id
        assert entries[0].detail["subject_fields"] == ["dob", "name", "pan", "phone"]

    def test_proof_survives_round_trip(self, db_session, user, asha_subject):
        token = TokenLifecycleManager(db_session).issue(user.id, asha_subject)
        db_session.expire_all()

        assert verify_proof(
            token.id, token.owner_id, token.issued_at, token.subject, token.proof,
            key=settings.credential_signing_key,
        )

    def test_issue_does_not_revoke_earlier_tokens(self, db_session, user, asha_subject):
        manager = TokenLifecycleManager(db_session)
        first = manager.issue(user.id, asha_subject)
        second = manager.issue(user.id, asha_subject)

        assert first.status == CredentialStatus.ACTIVE
        assert second.status == CredentialStatus.ACTIVE
        assert manager.get_active(user.id).id == second.id
        assert [t.id for t in manager.list_for_owner(user.id)] == [second.id, first.id]

    @pytest.mark.parametrize("overrides,field", [
        ({"name": "  "}, "name"),
        ({"pan": "ABCD1234F"}, "pan"),
        ({"pan": "12345ABCDE"}, "pan"),
        ({"dob": "04/03/1992"}, "dob"),
        ({"dob": None}, "dob"),
        ({"phone": "5876543210"}, "phone"),
        ({"phone": "98765"}, "phone"),
    ])
    def test_invalid_claims(self, db_session, user, asha_subject, overrides, field):
        asha_subject.update(overrides)

        with pytest.raises(ValidationError) as exc_info:
            TokenLifecycleManager(db_session).issue(user.id, asha_subject)

        assert exc_info.value.field == field
        assert db_session.query(AuditLogEntry).count() == 0

    def test_validation_is_fail_fast_in_order(self, db_session, user):
        with pytest.raises(ValidationError) as exc_info:
            TokenLifecycleManager(db_session).issue(
                user.id, {"name": "", "pan": "bad", "dob": "bad", "phone": "bad"}
            )

        assert exc_info.value.field == "name"

    def test_phone_is_optional(self, db_session, user, asha_subject):
        del asha_subject["phone"]

        token = TokenLifecycleManager(db_session).issue(user.id, asha_subject)

        assert "phone" not in token.subject

    def test_unknown_owner(self, db_session, asha_subject):
        with pytest.raises(NotFound):
            TokenLifecycleManager(db_session).issue(uuid4(), asha_subject)


class TestRevoke:
    """Test token revocation."""

    def test_revoke(self, db_session, user, active_token):
        token = TokenLifecycleManager(db_session).revoke(
            active_token.id, actor_id=str(user.id), reason="lost phone"
        )

        assert token.status == CredentialStatus.REVOKED
        assert token.revoked_at is not None
        assert token.revocation_reason == "lost phone"
        assert _actions(db_session, active_token.id) == [
            AuditAction.TOKEN_REVOKED, AuditAction.TOKEN_ISSUED
        ]

    def test_second_revoke_fails_without_audit(self, db_session, user, active_token):
        manager = TokenLifecycleManager(db_session)
        manager.revoke(active_token.id, actor_id=str(user.id))

        with pytest.raises(AlreadyRevoked):
            manager.revoke(active_token.id, actor_id=str(user.id))

        assert _actions(db_session, active_token.id).count(AuditAction.TOKEN_REVOKED) == 1

    def test_revoked_token_is_not_active(self, db_session, user, active_token):
        manager = TokenLifecycleManager(db_session)
        manager.revoke(active_token.id, actor_id=str(user.id))

        assert manager.get_active(user.id) is None

    def test_unknown_token(self, db_session, user):
        with pytest.raises(NotFound):
            TokenLifecycleManager(db_session).revoke(uuid4(), actor_id=str(user.id))


class TestVerify:
    """Test relying-party verification."""

    def test_active_token_is_valid(self, db_session, active_token):
        result = TokenLifecycleManager(db_session).verify(active_token.id, verifier_id="bank-42")

        assert result.valid is True
        assert result.signature_valid is True
        assert result.status == CredentialStatus.ACTIVE

        entries = AuditTrail(db_session).list_for(subject_id=active_token.id).entries
        assert entries[0].action == AuditAction.TOKEN_VERIFIED
        assert entries[0].actor_id == "bank-42"
        assert entries[0].detail["valid"] is True

    def test_revoked_token_reported_invalid(self, db_session, user, active_token):
        manager = TokenLifecycleManager(db_session)
        manager.revoke(active_token.id, actor_id=str(user.id))

        result = manager.verify(active_token.id, verifier_id="bank-42")

        assert result.valid is False
        assert result.signature_valid is True
        assert result.status == CredentialStatus.REVOKED

    def test_tampered_subject_fails_signature(self, db_session, active_token):
        active_token.subject = dict(active_token.subject, name="Someone Else")
        db_session.commit()

        result = TokenLifecycleManager(db_session).verify(active_token.id, verifier_id="bank-42")

        assert result.signature_valid is False
        assert result.valid is False

    def test_unknown_token(self, db_session):
        with pytest.raises(NotFound):
            TokenLifecycleManager(db_session).verify(uuid4(), verifier_id="bank-42")
