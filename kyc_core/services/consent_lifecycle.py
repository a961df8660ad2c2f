"""
Consent Lifecycle Service.

Owns consent state transitions:

    PENDING -> APPROVED -> {REVOKED, EXPIRED}
    PENDING -> REJECTED

Approval is gated by the fulfillment resolver: no approval without evidence.
Expiry is evaluated lazily on read; there is no background scheduler.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import or_
from sqlalchemy.orm import Session

from kyc_core.domain.fulfillment import FulfillmentResult, resolve
from kyc_core.errors import (
    ConflictError, IncompleteEvidence, InvalidState, KYCCoreError, NotFound, ValidationError
)
from kyc_core.logging import get_logger
from kyc_core.models import AuditAction, ConsentRequest, ConsentStatus, User
from kyc_core.schemas.audit import (
    ConsentApprovedDetail, ConsentRejectedDetail, ConsentRequestedDetail, ConsentRevokedDetail
)
from kyc_core.services.audit_trail import AuditTrail
from kyc_core.services.evidence_registry import EvidenceRegistry
from kyc_core.services.token_lifecycle import TokenLifecycleManager
from kyc_core.services.unit_of_work import unit_of_work

logger = get_logger(__name__)


def as_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC; convert aware values."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class RevocationOutcome:
    """Per-consent result of a batch revocation."""
    consent_id: UUID
    revoked: bool
    error: Optional[KYCCoreError] = None

    @property
    def error_code(self) -> Optional[str]:
        return self.error.code if self.error is not None else None


class ConsentLifecycleManager:
    """
    Consent lifecycle service.

    Safety invariants:
    - approve() never changes state while any requested field is missing
    - Each transition and its audit entry form one unit of work
    - Terminal states admit no further transitions
    """

    def __init__(
        self,
        db: Session,
        audit: Optional[AuditTrail] = None,
        evidence: Optional[EvidenceRegistry] = None,
        tokens: Optional[TokenLifecycleManager] = None
    ):
        """
        Initialize consent lifecycle manager.

        Args:
            db: SQLAlchemy database session
            audit: Audit trail sharing the same session
            evidence: Evidence registry sharing the same session
            tokens: Token lifecycle manager sharing the same session
        """
        self.db = db
        self.audit = audit or AuditTrail(db)
        self.evidence = evidence or EvidenceRegistry(db)
        self.tokens = tokens or TokenLifecycleManager(db, audit=self.audit)

    # ===== Creation (requester side) =====

    def create_request(
        self,
        owner_id: UUID,
        requester_id: str,
        requester_name: str,
        requested_fields: Sequence[str],
        purpose: Optional[str] = None
    ) -> ConsentRequest:
        """
        Store a new PENDING consent request.

        Raises:
            ValidationError: If requester or field list is malformed
            NotFound: If the grantor does not exist
        """
        requester_id = (requester_id or "").strip()
        if not requester_id:
            raise ValidationError("requester_id")
        requester_name = (requester_name or "").strip() or requester_id

        fields = [f.strip() for f in (requested_fields or []) if isinstance(f, str)]
        if not fields or len(fields) != len(requested_fields) or any(not f for f in fields):
            raise ValidationError("requested_fields")

        if self.db.get(User, owner_id) is None:
            raise NotFound("user", owner_id)

        consent = ConsentRequest(
            id=uuid4(),
            owner_id=owner_id,
            requester_id=requester_id,
            requester_name=requester_name,
            requested_fields=fields,
            purpose=purpose.strip() if purpose else None,
            status=ConsentStatus.PENDING,
            created_at=datetime.utcnow(),
        )

        with unit_of_work(self.db, "consent", consent.id):
            self.db.add(consent)
            self.audit.append(
                subject_id=consent.id,
                action=AuditAction.CONSENT_REQUESTED,
                actor_id=requester_id,
                detail=ConsentRequestedDetail(
                    requester=requester_id,
                    fields=fields,
                    purpose=consent.purpose,
                ),
                owner_id=owner_id,
            )

        logger.consent_requested(consent_id=consent.id, owner_id=owner_id, requester_id=requester_id)
        return consent

    # ===== Grantor transitions =====

    def evaluate(self, consent_id: UUID, actor_id: str) -> FulfillmentResult:
        """Resolve the request against the grantor's current evidence (read-only)."""
        consent = self._load_owned(consent_id, actor_id)
        return self._resolve(consent)

    def approve(
        self,
        consent_id: UUID,
        actor_id: str,
        expires_at: Optional[datetime] = None
    ) -> ConsentRequest:
        """
        Approve a PENDING request if the grantor's evidence satisfies it.

        Args:
            consent_id: Consent request to approve
            actor_id: Authenticated grantor
            expires_at: Expiry (None = never expires)

        Returns:
            The APPROVED ConsentRequest

        Raises:
            NotFound: Missing, or not owned by the actor
            InvalidState: Not PENDING
            ValidationError: expires_at is not in the future
            IncompleteEvidence: Some requested field is missing (no state change)
            ConflictError: A concurrent transition committed first
        """
        consent = self._load_owned(consent_id, actor_id)
        if consent.status != ConsentStatus.PENDING:
            raise InvalidState("consent", consent_id, consent.status.value, "approve")

        expires_at = as_utc_naive(expires_at)
        if expires_at is not None and expires_at <= datetime.utcnow():
            raise ValidationError("expires_at")

        result = self._resolve(consent)
        if not result.is_complete:
            logger.consent_approval_blocked(
                consent_id=consent_id,
                missing_documents=result.missing_documents,
                missing_data=result.missing_data
            )
            raise IncompleteEvidence(result.missing_documents, result.missing_data)

        with unit_of_work(self.db, "consent", consent_id):
            consent.approve(decided_by=actor_id, expires_at=expires_at)
            self.audit.append(
                subject_id=consent_id,
                action=AuditAction.CONSENT_APPROVED,
                actor_id=actor_id,
                detail=ConsentApprovedDetail(
                    requester=consent.requester_id,
                    fields=list(consent.requested_fields),
                    expires_at=expires_at,
                ),
                owner_id=consent.owner_id,
            )

        logger.consent_approved(consent_id=consent_id, actor_id=actor_id, expires_at=expires_at)
        return consent

    def reject(self, consent_id: UUID, actor_id: str, reason: Optional[str] = None) -> ConsentRequest:
        """
        Reject a PENDING request.

        Raises:
            NotFound, InvalidState, ConflictError
        """
        consent = self._load_owned(consent_id, actor_id)
        if consent.status != ConsentStatus.PENDING:
            raise InvalidState("consent", consent_id, consent.status.value, "reject")

        with unit_of_work(self.db, "consent", consent_id):
            consent.reject(decided_by=actor_id, reason=reason)
            self.audit.append(
                subject_id=consent_id,
                action=AuditAction.CONSENT_REJECTED,
                actor_id=actor_id,
                detail=ConsentRejectedDetail(requester=consent.requester_id, reason=reason),
                owner_id=consent.owner_id,
            )

        logger.consent_rejected(consent_id=consent_id, actor_id=actor_id)
        return consent

    def revoke(self, consent_id: UUID, actor_id: str) -> ConsentRequest:
        """
        Revoke an APPROVED, unexpired consent.

        Repeated calls fail with InvalidState; they are not ignored.

        Raises:
            NotFound, InvalidState, ConflictError
        """
        consent = self._load_owned(consent_id, actor_id)
        return self._revoke(consent, actor_id, batch=False)

    def revoke_all(self, owner_id: UUID, actor_id: str) -> List[RevocationOutcome]:
        """
        Best-effort revocation of every live APPROVED consent of the owner.

        Each consent is revoked in its own unit of work. A failure is
        recorded in its outcome and does not stop the batch.
        """
        if str(owner_id) != str(actor_id):
            raise NotFound("user", owner_id)

        now = datetime.utcnow()
        consent_ids = [
            row.id for row in (
                self.db.query(ConsentRequest.id)
                .filter(
                    ConsentRequest.owner_id == owner_id,
                    ConsentRequest.status == ConsentStatus.APPROVED,
                    or_(ConsentRequest.expires_at.is_(None), ConsentRequest.expires_at >= now)
                )
                .order_by(ConsentRequest.created_at)
                .all()
            )
        ]

        outcomes: List[RevocationOutcome] = []
        for consent_id in consent_ids:
            try:
                consent = self._load_owned(consent_id, actor_id)
                self._revoke(consent, actor_id, batch=True)
            except KYCCoreError as e:
                outcomes.append(RevocationOutcome(consent_id=consent_id, revoked=False, error=e))
            else:
                outcomes.append(RevocationOutcome(consent_id=consent_id, revoked=True))

        failed = sum(1 for o in outcomes if not o.revoked)
        logger.consent_batch_revoked(owner_id=owner_id, succeeded=len(outcomes) - failed, failed=failed)
        return outcomes

    # ===== Access control =====

    def check_live(self, consent_id: UUID, now: Optional[datetime] = None) -> bool:
        """
        Whether the consent currently grants access.

        APPROVED past its expiry is treated exactly like EXPIRED. The expiry
        is written back only once the real clock has passed it; a caller
        supplied `now` is answered without touching storage.

        Raises:
            NotFound: If the consent does not exist
        """
        consent = self.get(consent_id)
        if consent is None:
            raise NotFound("consent", consent_id)

        clock = datetime.utcnow()
        now = as_utc_naive(now) or clock
        if consent.status != ConsentStatus.APPROVED:
            return False
        if consent.is_past_expiry(now):
            if consent.is_past_expiry(clock):
                self._write_back_expiry(consent)
            return False
        return True

    # ===== Queries =====

    def get(self, consent_id: UUID) -> Optional[ConsentRequest]:
        """Get consent request by ID."""
        return self.db.query(ConsentRequest).filter(ConsentRequest.id == consent_id).first()

    def pending_for(self, owner_id: UUID) -> List[ConsentRequest]:
        """PENDING requests for an owner, newest first."""
        return self._by_status(owner_id, ConsentStatus.PENDING)

    def approved_for(self, owner_id: UUID, now: Optional[datetime] = None) -> List[ConsentRequest]:
        """
        Live APPROVED consents for an owner at `now`.

        Consents the real clock has already lapsed are written back as EXPIRED.
        """
        clock = datetime.utcnow()
        now = as_utc_naive(now) or clock
        live = []
        for consent in self._by_status(owner_id, ConsentStatus.APPROVED):
            if consent.is_past_expiry(clock):
                self._write_back_expiry(consent)
            elif consent.is_past_expiry(now):
                continue
            else:
                live.append(consent)
        return live

    # ===== Internals =====

    def _by_status(self, owner_id: UUID, status: ConsentStatus) -> List[ConsentRequest]:
        return (
            self.db.query(ConsentRequest)
            .filter(ConsentRequest.owner_id == owner_id, ConsentRequest.status == status)
            .order_by(ConsentRequest.created_at.desc())
            .all()
        )

    def _load_owned(self, consent_id: UUID, actor_id: str) -> ConsentRequest:
        consent = self.get(consent_id)
        # Foreign consents are reported as missing, not forbidden
        if consent is None or str(consent.owner_id) != str(actor_id):
            raise NotFound("consent", consent_id)
        return consent

    def _resolve(self, consent: ConsentRequest) -> FulfillmentResult:
        return resolve(
            consent.requested_fields,
            self.evidence.list_current(consent.owner_id),
            self.tokens.get_active(consent.owner_id),
        )

    def _revoke(self, consent: ConsentRequest, actor_id: str, batch: bool) -> ConsentRequest:
        if consent.status != ConsentStatus.APPROVED:
            raise InvalidState("consent", consent.id, consent.status.value, "revoke")
        if consent.is_past_expiry(datetime.utcnow()):
            self._write_back_expiry(consent)
            raise InvalidState("consent", consent.id, ConsentStatus.EXPIRED.value, "revoke")

        consent_id = consent.id
        with unit_of_work(self.db, "consent", consent_id):
            consent.revoke(decided_by=actor_id)
            self.audit.append(
                subject_id=consent_id,
                action=AuditAction.CONSENT_REVOKED,
                actor_id=actor_id,
                detail=ConsentRevokedDetail(requester=consent.requester_id, batch=batch),
                owner_id=consent.owner_id,
            )

        logger.consent_revoked(consent_id=consent_id, actor_id=actor_id)
        return consent

    def _write_back_expiry(self, consent: ConsentRequest) -> None:
        consent_id = consent.id
        expires_at = consent.expires_at
        try:
            with unit_of_work(self.db, "consent", consent_id):
                consent.expire()
        except ConflictError:
            # Another session moved the consent on; it is not live either way
            return
        logger.consent_expired(consent_id=consent_id, expires_at=expires_at)
