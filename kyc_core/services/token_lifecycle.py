"""
Token Lifecycle Service.

Issues, reads, verifies and revokes identity credentials ("KYC tokens").

State machine per token: NONE -> ACTIVE (issue) -> REVOKED (revoke, terminal).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from kyc_core.config import settings
from kyc_core.domain.signing import build_proof, verify_proof
from kyc_core.errors import AlreadyRevoked, NotFound, ValidationError
from kyc_core.logging import get_logger
from kyc_core.models import AuditAction, Credential, CredentialStatus, User
from kyc_core.schemas.audit import TokenIssuedDetail, TokenRevokedDetail, TokenVerifiedDetail
from kyc_core.services.audit_trail import AuditTrail
from kyc_core.services.unit_of_work import unit_of_work
from kyc_core.validation import get_subject_validator

logger = get_logger(__name__)


@dataclass(frozen=True)
class TokenVerification:
    """Result of a relying party checking a token."""
    token_id: UUID
    valid: bool
    signature_valid: bool
    status: CredentialStatus


class TokenLifecycleManager:
    """
    Credential lifecycle service.

    Issuance never revokes earlier credentials; several may be ACTIVE.
    Revocation is one-way and not idempotent: a second revoke is an error.
    """

    def __init__(self, db: Session, audit: Optional[AuditTrail] = None):
        """
        Initialize token lifecycle manager.

        Args:
            db: SQLAlchemy database session
            audit: Audit trail sharing the same session
        """
        self.db = db
        self.audit = audit or AuditTrail(db)
        self.validator = get_subject_validator()

    def issue(self, owner_id: UUID, subject: Dict[str, Any]) -> Credential:
        """
        Issue a new ACTIVE credential.

        Validation is fail-fast in the order name, pan, dob, phone.

        Args:
            owner_id: Credential owner
            subject: Raw claims (name, pan, dob, address?, phone?, email?)

        Returns:
            The issued Credential

        Raises:
            ValidationError: On the first failing claim
            NotFound: If the owner does not exist

        Example:
            >>> manager = TokenLifecycleManager(db)
            >>> token = manager.issue(user.id, {
            ...     "name": "Asha Rao", "pan": "ABCDE1234F", "dob": "1992-03-04"
            ... })
            >>> token.status
            <CredentialStatus.ACTIVE: 'active'>
        """
        try:
            claims = self.validator.validate(subject or {})
        except ValidationError as e:
            logger.token_validation_failed(owner_id=owner_id, field=e.field)
            raise

        if self.db.get(User, owner_id) is None:
            raise NotFound("user", owner_id)

        credential_id = uuid4()
        issued_at = datetime.utcnow()
        proof = build_proof(
            credential_id,
            owner_id,
            issued_at,
            claims,
            key=settings.credential_signing_key,
            proof_type=settings.credential_proof_type,
        )

        credential = Credential(
            id=credential_id,
            owner_id=owner_id,
            status=CredentialStatus.ACTIVE,
            issued_at=issued_at,
            subject=claims,
            proof=proof,
        )

        with unit_of_work(self.db, "token", credential_id):
            self.db.add(credential)
            self.audit.append(
                subject_id=credential_id,
                action=AuditAction.TOKEN_ISSUED,
                actor_id=str(owner_id),
                detail=TokenIssuedDetail(
                    subject_fields=sorted(claims.keys()),
                    proof_type=proof["type"],
                ),
                owner_id=owner_id,
            )

        logger.token_issued(token_id=credential_id, owner_id=owner_id)
        return credential

    def revoke(self, token_id: UUID, actor_id: str, reason: Optional[str] = None) -> Credential:
        """
        Revoke an ACTIVE credential.

        Raises:
            NotFound: If the token does not exist
            AlreadyRevoked: If the token is already REVOKED
            ConflictError: If a concurrent revoke committed first
        """
        credential = self.get(token_id)
        if credential is None:
            raise NotFound("token", token_id)
        if credential.status == CredentialStatus.REVOKED:
            raise AlreadyRevoked(token_id)

        with unit_of_work(self.db, "token", token_id):
            credential.revoke(revoked_by=actor_id, reason=reason)
            self.audit.append(
                subject_id=token_id,
                action=AuditAction.TOKEN_REVOKED,
                actor_id=actor_id,
                detail=TokenRevokedDetail(reason=reason),
                owner_id=credential.owner_id,
            )

        logger.token_revoked(token_id=token_id, actor_id=actor_id)
        return credential

    def verify(self, token_id: UUID, verifier_id: str) -> TokenVerification:
        """
        Check a token's proof and status on behalf of a relying party.

        A revoked or tampered token is reported as invalid, not raised.

        Raises:
            NotFound: If the token does not exist
        """
        credential = self.get(token_id)
        if credential is None:
            raise NotFound("token", token_id)

        signature_valid = verify_proof(
            credential.id,
            credential.owner_id,
            credential.issued_at,
            credential.subject,
            credential.proof,
            key=settings.credential_signing_key,
        )
        result = TokenVerification(
            token_id=credential.id,
            valid=signature_valid and credential.is_active,
            signature_valid=signature_valid,
            status=credential.status,
        )

        with unit_of_work(self.db, "token", token_id):
            self.audit.append(
                subject_id=token_id,
                action=AuditAction.TOKEN_VERIFIED,
                actor_id=verifier_id,
                detail=TokenVerifiedDetail(
                    valid=result.valid,
                    signature_valid=signature_valid,
                    status=credential.status.value,
                ),
                owner_id=credential.owner_id,
            )

        logger.token_verified(token_id=token_id, verifier_id=verifier_id, valid=result.valid)
        return result

    def get_active(self, owner_id: UUID) -> Optional[Credential]:
        """Most recently issued ACTIVE credential for the owner, or None."""
        return (
            self.db.query(Credential)
            .filter(
                Credential.owner_id == owner_id,
                Credential.status == CredentialStatus.ACTIVE
            )
            .order_by(Credential.issued_at.desc())
            .first()
        )

    def get(self, token_id: UUID) -> Optional[Credential]:
        """Get credential by ID."""
        return self.db.query(Credential).filter(Credential.id == token_id).first()

    def list_for_owner(self, owner_id: UUID) -> List[Credential]:
        """All credentials for an owner, newest first."""
        return (
            self.db.query(Credential)
            .filter(Credential.owner_id == owner_id)
            .order_by(Credential.issued_at.desc())
            .all()
        )
