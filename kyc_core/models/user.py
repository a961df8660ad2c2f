"""
User model.

The identity owner. Verification status is derived from documents and
credentials (see KYCStatusService) and is never stored here.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship

from kyc_core.database import Base


class User(Base):
    """
    User: Owner of evidence documents, credentials and consent grants.

    Users are never hard-deleted within the core.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid4)
    display_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(20), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    documents = relationship("EvidenceDocument", back_populates="owner")
    credentials = relationship("Credential", back_populates="owner")
    consent_requests = relationship("ConsentRequest", back_populates="owner")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
