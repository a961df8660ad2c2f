"""
EvidenceDocument model.

One uploaded proof artifact per row. A new upload for the same category
supersedes the previous document; superseded rows are kept, never erased.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean, Column, String, DateTime, Integer, ForeignKey, Index, Uuid, Enum as SQLEnum
)
from sqlalchemy.orm import relationship

from kyc_core.database import Base


class DocumentCategory(str, PyEnum):
    """Closed enumeration of evidence categories."""
    AADHAAR_FRONT = "aadhaar_front"
    AADHAAR_BACK = "aadhaar_back"
    PAN_CARD = "pan_card"
    PASSPORT = "passport"
    DRIVING_LICENSE = "driving_license"
    VOTER_ID = "voter_id"
    SELFIE = "selfie"
    OTHER = "other"  # Catch-all: stored, never matched by the alias table

    @classmethod
    def normalize(cls, raw: str) -> "DocumentCategory":
        """Map a submitted category name to the enum, falling back to OTHER."""
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.OTHER


class DocumentStatus(str, PyEnum):
    """Verification status of a document."""
    UPLOADED = "uploaded"
    VERIFIED = "verified"
    REJECTED = "rejected"


class EvidenceDocument(Base):
    """
    EvidenceDocument: Uploaded proof artifact.

    Invariants:
    - At most one current document per (owner, raw_category)
    - storage_ref is an opaque handle; the core never interprets it
    - Only the verification callback mutates status/issuer/score
    """
    __tablename__ = "evidence_documents"

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    category = Column(
        SQLEnum(DocumentCategory, name="document_category",
                values_callable=lambda x: [e.value for e in x]),
        nullable=False
    )
    # Lower-cased category as submitted (differs from category only for OTHER)
    raw_category = Column(String(100), nullable=False)

    storage_ref = Column(String(1024), nullable=False)

    status = Column(
        SQLEnum(DocumentStatus, name="document_status",
                values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=DocumentStatus.UPLOADED
    )
    issuer = Column(String(255), nullable=True)
    verified_at = Column(DateTime, nullable=True)
    trust_score = Column(Integer, nullable=False, default=0)

    # Supersession
    is_current = Column(Boolean, nullable=False, default=True)
    superseded_at = Column(DateTime, nullable=True)
    superseded_by_id = Column(Uuid, nullable=True)

    uploaded_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Optimistic concurrency
    version = Column(Integer, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="documents")

    __table_args__ = (
        Index(
            "uq_evidence_documents_current",
            "owner_id", "raw_category",
            unique=True,
            postgresql_where=(is_current == True),  # noqa: E712
            sqlite_where=(is_current == True),  # noqa: E712
        ),
        Index("idx_evidence_documents_owner", "owner_id", "uploaded_at"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<EvidenceDocument(id={self.id}, category='{self.raw_category}', status='{self.status.value}')>"

    def supersede(self, replacement_id, when: Optional[datetime] = None):
        """Mark this document as replaced by a newer upload."""
        self.is_current = False
        self.superseded_at = when or datetime.utcnow()
        self.superseded_by_id = replacement_id
