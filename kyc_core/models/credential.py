"""
Credential model.

A signed snapshot of identity attributes ("KYC token").
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    Column, String, DateTime, Integer, ForeignKey, Index, JSON, Uuid, Enum as SQLEnum
)
from sqlalchemy.orm import relationship

from kyc_core.database import Base


class CredentialStatus(str, PyEnum):
    """Credential lifecycle: ACTIVE -> REVOKED (terminal)."""
    ACTIVE = "active"
    REVOKED = "revoked"


class Credential(Base):
    """
    Credential: Issued identity token.

    Several credentials may be ACTIVE for one owner; "the active token"
    is the most recently issued ACTIVE one. Revocation is one-way.
    """
    __tablename__ = "credentials"

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    status = Column(
        SQLEnum(CredentialStatus, name="credential_status",
                values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=CredentialStatus.ACTIVE
    )

    issued_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    revoked_at = Column(DateTime, nullable=True)
    revoked_by = Column(String(255), nullable=True)
    revocation_reason = Column(String(500), nullable=True)

    # Subject claims: name, pan, dob, address?, phone?, email?
    subject = Column(JSON, nullable=False)

    # Opaque proof blob: {"type", "created", "signature"}
    proof = Column(JSON, nullable=False)

    # Optimistic concurrency
    version = Column(Integer, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="credentials")

    __table_args__ = (
        Index("idx_credentials_owner_status", "owner_id", "status", "issued_at"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Credential(id={self.id}, owner_id={self.owner_id}, status='{self.status.value}')>"

    @property
    def is_active(self) -> bool:
        return self.status == CredentialStatus.ACTIVE

    def revoke(self, revoked_by: str, reason: Optional[str] = None):
        """Mark this credential as revoked."""
        self.status = CredentialStatus.REVOKED
        self.revoked_at = datetime.utcnow()
        self.revoked_by = revoked_by
        if reason:
            self.revocation_reason = reason
