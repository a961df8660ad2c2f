"""
AuditLogEntry model.

Audit entries provide an append-only trail of every lifecycle transition.
"""

from datetime import datetime
from enum import Enum as PyEnum
from uuid import uuid4

from sqlalchemy import Column, Integer, String, DateTime, Index, JSON, Uuid, Enum as SQLEnum

from kyc_core.database import Base


class AuditAction(str, PyEnum):
    """
    Fixed action taxonomy.

    Extend only by adding values; never repurpose an existing one.
    """
    TOKEN_ISSUED = "TOKEN_ISSUED"
    TOKEN_REVOKED = "TOKEN_REVOKED"
    CONSENT_REQUESTED = "CONSENT_REQUESTED"
    CONSENT_APPROVED = "CONSENT_APPROVED"
    CONSENT_REJECTED = "CONSENT_REJECTED"
    CONSENT_REVOKED = "CONSENT_REVOKED"
    TOKEN_VERIFIED = "TOKEN_VERIFIED"


class AuditSubjectType(str, PyEnum):
    """Kind of entity an audit entry refers to."""
    TOKEN = "token"
    CONSENT = "consent"


class AuditLogEntry(Base):
    """
    AuditLogEntry: Append-only trail of state changes.

    Audit entries are NEVER modified or deleted.
    Ordering is by occurred_at; ties are broken by insertion sequence.
    """
    __tablename__ = "audit_log"

    # Insertion sequence (tie-breaker for identical timestamps)
    sequence = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(Uuid, nullable=False, unique=True, default=uuid4)

    action = Column(
        SQLEnum(AuditAction, name="audit_action",
                values_callable=lambda x: [e.value for e in x]),
        nullable=False
    )

    # References to domain objects
    subject_type = Column(
        SQLEnum(AuditSubjectType, name="audit_subject_type",
                values_callable=lambda x: [e.value for e in x]),
        nullable=False
    )
    subject_id = Column(Uuid, nullable=False)
    owner_id = Column(Uuid, nullable=True)

    # Tagged-union payload (see kyc_core.schemas.audit)
    detail = Column(JSON, nullable=False)

    # Provenance
    actor_id = Column(String(255), nullable=False)
    occurred_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_audit_log_subject", "subject_id", "occurred_at", "sequence"),
        Index("idx_audit_log_owner", "owner_id", "occurred_at", "sequence"),
        Index("idx_audit_log_occurred", "occurred_at"),
    )

    def __repr__(self):
        return f"<AuditLogEntry(seq={self.sequence}, action='{self.action.value}', subject={self.subject_id})>"
