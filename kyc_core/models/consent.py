"""
ConsentRequest model.

A requester's ask to access named fields of a user's evidence/credential.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    Column, String, DateTime, Integer, Text, ForeignKey, Index, JSON, Uuid, Enum as SQLEnum
)
from sqlalchemy.orm import relationship

from kyc_core.database import Base


class ConsentStatus(str, PyEnum):
    """
    Consent lifecycle.

    PENDING -> APPROVED -> {REVOKED, EXPIRED}
    PENDING -> REJECTED
    REJECTED, REVOKED and EXPIRED are terminal.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVOKED = "revoked"
    EXPIRED = "expired"


TERMINAL_CONSENT_STATUSES = frozenset(
    {ConsentStatus.REJECTED, ConsentStatus.REVOKED, ConsentStatus.EXPIRED}
)


class ConsentRequest(Base):
    """
    ConsentRequest: Revocable, expirable grant of disclosure.

    Safety invariants:
    - requested_fields is fixed at creation and never mutated
    - Every transition is logged to the audit trail in the same unit of work
    - Terminal rows are retained for audit, never deleted
    """
    __tablename__ = "consent_requests"

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    # Requester (external party)
    requester_id = Column(String(255), nullable=False)
    requester_name = Column(String(255), nullable=False)

    # Ordered, non-empty list of field tokens
    requested_fields = Column(JSON, nullable=False)
    purpose = Column(Text, nullable=True)

    status = Column(
        SQLEnum(ConsentStatus, name="consent_status",
                values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=ConsentStatus.PENDING
    )

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    approved_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)  # NULL = never expires

    # Decision information (filled on approve/reject/revoke)
    decided_at = Column(DateTime, nullable=True)
    decided_by = Column(String(255), nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    # Optimistic concurrency
    version = Column(Integer, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="consent_requests")

    __table_args__ = (
        Index("idx_consent_requests_owner_status", "owner_id", "status"),
        Index("idx_consent_requests_requester", "requester_id"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<ConsentRequest(id={self.id}, requester='{self.requester_id}', status='{self.status.value}')>"

    def is_past_expiry(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def approve(self, decided_by: str, expires_at: Optional[datetime] = None):
        """Mark this consent as approved."""
        now = datetime.utcnow()
        self.status = ConsentStatus.APPROVED
        self.approved_at = now
        self.expires_at = expires_at
        self.decided_at = now
        self.decided_by = decided_by

    def reject(self, decided_by: str, reason: Optional[str] = None):
        """Mark this consent as rejected."""
        self.status = ConsentStatus.REJECTED
        self.decided_at = datetime.utcnow()
        self.decided_by = decided_by
        if reason:
            self.rejection_reason = reason

    def revoke(self, decided_by: str):
        """Mark this consent as revoked."""
        self.status = ConsentStatus.REVOKED
        self.decided_at = datetime.utcnow()
        self.decided_by = decided_by

    def expire(self):
        """Write back a lazily-detected expiry."""
        self.status = ConsentStatus.EXPIRED
