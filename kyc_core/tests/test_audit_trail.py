"""
Audit Trail Tests

Append-only, newest first, restartable pagination, atomic with the
transition it records.
"""

import pytest
from datetime import datetime, timedelta
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, OperationalError

from kyc_core.config import settings
from kyc_core.errors import ConflictError, StorageUnavailable, ValidationError
from kyc_core.models import AuditAction, AuditLogEntry, AuditSubjectType, ConsentStatus
from kyc_core.schemas.audit import (
    ConsentApprovedDetail, ConsentRevokedDetail, TokenIssuedDetail, TokenRevokedDetail,
    parse_audit_detail,
)
from kyc_core.services import AuditCursor, AuditTrail, ConsentLifecycleManager


FIXED_NOW = datetime(2026, 3, 4, 10, 30, 0)


class FrozenDatetime(datetime):
    @classmethod
    def utcnow(cls):
        return FIXED_NOW


def _append_revocations(db_session, subject_id, count, owner_id=None):
    trail = AuditTrail(db_session)
    entries = []
    for i in range(count):
        entries.append(trail.append(
            subject_id=subject_id,
            action=AuditAction.TOKEN_REVOKED,
            actor_id="tester",
            detail=TokenRevokedDetail(reason=f"r{i}"),
            owner_id=owner_id,
        ))
    db_session.commit()
    return entries


class TestAppend:
    """Test appending entries."""

    def test_append_sets_subject_type(self, db_session):
        subject_id = uuid4()
        trail = AuditTrail(db_session)

        token_entry = trail.append(
            subject_id, AuditAction.TOKEN_ISSUED, "tester",
            TokenIssuedDetail(subject_fields=["name"], proof_type="HmacSha256Signature2024"),
        )
        consent_entry = trail.append(
            subject_id, AuditAction.CONSENT_REVOKED, "tester",
            ConsentRevokedDetail(requester="hdfc-bank"),
        )
        db_session.commit()

        assert token_entry.subject_type == AuditSubjectType.TOKEN
        assert consent_entry.subject_type == AuditSubjectType.CONSENT
        assert consent_entry.sequence > token_entry.sequence

    def test_detail_must_match_action(self, db_session):
        with pytest.raises(ValueError):
            AuditTrail(db_session).append(
                uuid4(), AuditAction.TOKEN_ISSUED, "tester", TokenRevokedDetail(reason="x")
            )

        assert db_session.query(AuditLogEntry).count() == 0

    def test_detail_round_trips_through_storage(self, db_session):
        subject_id = uuid4()
        expires_at = datetime(2027, 1, 1, 12, 0, 0)
        AuditTrail(db_session).append(
            subject_id, AuditAction.CONSENT_APPROVED, "tester",
            ConsentApprovedDetail(requester="hdfc-bank", fields=["name"], expires_at=expires_at),
        )
        db_session.commit()
        db_session.expire_all()

        stored = db_session.query(AuditLogEntry).filter_by(subject_id=subject_id).one()
        detail = parse_audit_detail(stored.detail)

        assert isinstance(detail, ConsentApprovedDetail)
        assert detail.expires_at == expires_at

    def test_detail_variants_reject_unknown_keys(self):
        with pytest.raises(PydanticValidationError):
            parse_audit_detail({"action": "TOKEN_REVOKED", "reason": None, "pan": "ABCDE1234F"})


class TestListFor:
    """Test ordering and pagination."""

    def test_newest_first(self, db_session):
        subject_id = uuid4()
        entries = _append_revocations(db_session, subject_id, 3)

        page = AuditTrail(db_session).list_for(subject_id=subject_id)

        assert [e.id for e in page.entries] == [e.id for e in reversed(entries)]
        assert page.next_cursor is None

    def test_ties_broken_by_sequence(self, db_session, monkeypatch):
        monkeypatch.setattr("kyc_core.services.audit_trail.datetime", FrozenDatetime)
        subject_id = uuid4()
        entries = _append_revocations(db_session, subject_id, 4)

        page = AuditTrail(db_session).list_for(subject_id=subject_id)

        assert all(e.occurred_at == FIXED_NOW for e in page.entries)
        assert [e.sequence for e in page.entries] == sorted((e.sequence for e in entries), reverse=True)

    def test_pagination_is_restartable(self, db_session, monkeypatch):
        monkeypatch.setattr("kyc_core.services.audit_trail.datetime", FrozenDatetime)
        subject_id = uuid4()
        _append_revocations(db_session, subject_id, 5)
        trail = AuditTrail(db_session)

        first = trail.list_for(subject_id=subject_id, limit=2)
        second = trail.list_for(subject_id=subject_id, limit=2, cursor=first.next_cursor)
        third = trail.list_for(
            subject_id=subject_id, limit=2,
            cursor=AuditCursor.decode(second.next_cursor.encode())
        )

        assert len(first.entries) == 2
        assert len(second.entries) == 2
        assert len(third.entries) == 1
        assert third.next_cursor is None

        sequences = [e.sequence for page in (first, second, third) for e in page.entries]
        assert sequences == sorted(sequences, reverse=True)
        assert len(set(sequences)) == 5

    def test_limit_is_clamped(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "audit_page_size_max", 3)
        subject_id = uuid4()
        _append_revocations(db_session, subject_id, 5)

        page = AuditTrail(db_session).list_for(subject_id=subject_id, limit=10_000)

        assert len(page.entries) == 3
        assert page.next_cursor is not None

    def test_filter_by_owner_and_action(self, db_session, user, other_user):
        _append_revocations(db_session, uuid4(), 2, owner_id=user.id)
        _append_revocations(db_session, uuid4(), 1, owner_id=other_user.id)
        trail = AuditTrail(db_session)

        assert len(trail.list_for(owner_id=user.id).entries) == 2
        assert trail.list_for(owner_id=user.id, actions=[AuditAction.TOKEN_ISSUED]).entries == []

    def test_time_window(self, db_session):
        subject_id = uuid4()
        _append_revocations(db_session, subject_id, 2)
        trail = AuditTrail(db_session)
        future = datetime.utcnow() + timedelta(hours=1)

        assert trail.list_for(subject_id=subject_id, since=future).entries == []
        assert len(trail.list_for(subject_id=subject_id, until=future).entries) == 2

    def test_requires_exactly_one_scope(self, db_session):
        trail = AuditTrail(db_session)

        with pytest.raises(ValidationError):
            trail.list_for()
        with pytest.raises(ValidationError):
            trail.list_for(subject_id=uuid4(), owner_id=uuid4())

    def test_bad_cursor(self):
        with pytest.raises(ValidationError) as exc_info:
            AuditCursor.decode("garbage")

        assert exc_info.value.field == "cursor"


class TestSummary:
    """Test per-action counts."""

    def test_summary_counts_every_action(self, db_session, user):
        _append_revocations(db_session, uuid4(), 2, owner_id=user.id)

        summary = AuditTrail(db_session).summary(user.id)

        assert summary["TOKEN_REVOKED"] == 2
        assert summary["CONSENT_APPROVED"] == 0
        assert set(summary) == {a.value for a in AuditAction}


class TestAtomicity:
    """A transition and its audit entry commit together or not at all."""

    def test_audit_failure_rolls_back_transition(self, db_session, user, upload, monkeypatch):
        upload(user, "selfie")
        manager = ConsentLifecycleManager(db_session)
        consent = manager.create_request(user.id, "hdfc-bank", "HDFC Bank", ["selfie"])

        def failing_append(self, *args, **kwargs):
            raise StorageUnavailable("Audit store unavailable")

        monkeypatch.setattr(AuditTrail, "append", failing_append)

        with pytest.raises(StorageUnavailable):
            manager.approve(consent.id, actor_id=str(user.id))

        monkeypatch.undo()
        db_session.expire_all()
        assert manager.get(consent.id).status == ConsentStatus.PENDING
        assert db_session.query(AuditLogEntry).filter_by(
            subject_id=consent.id, action=AuditAction.CONSENT_APPROVED
        ).count() == 0

    def test_storage_failure_on_append(self, db_session, monkeypatch):
        def failing_flush(*args, **kwargs):
            raise OperationalError("INSERT INTO audit_log", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "flush", failing_flush)

        with pytest.raises(StorageUnavailable):
            AuditTrail(db_session).append(
                uuid4(), AuditAction.TOKEN_REVOKED, "tester", TokenRevokedDetail(reason="x")
            )

    def test_constraint_violation_on_append_is_a_conflict(self, db_session, user, upload, monkeypatch):
        upload(user, "selfie")
        manager = ConsentLifecycleManager(db_session)
        consent = manager.create_request(user.id, "hdfc-bank", "HDFC Bank", ["selfie"])

        def failing_flush(*args, **kwargs):
            raise IntegrityError("INSERT INTO audit_log", {}, Exception("UNIQUE constraint failed"))

        monkeypatch.setattr(db_session, "flush", failing_flush)

        with pytest.raises(ConflictError):
            manager.approve(consent.id, actor_id=str(user.id))

        monkeypatch.undo()
        db_session.expire_all()
        assert manager.get(consent.id).status == ConsentStatus.PENDING
