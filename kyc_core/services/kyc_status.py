"""
KYC Status Service.

Derives a user's overall verification status from their current documents
and credentials. Nothing here is stored.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from kyc_core.config import settings
from kyc_core.models import DocumentStatus
from kyc_core.services.evidence_registry import EvidenceRegistry
from kyc_core.services.token_lifecycle import TokenLifecycleManager


class VerificationState(str, Enum):
    """Overall, derived verification state of a user."""
    NOT_STARTED = "not_started"
    DOCUMENTS_UPLOADED = "documents_uploaded"
    DOCUMENTS_VERIFIED = "documents_verified"
    TOKENIZED = "tokenized"


@dataclass
class KYCStatus:
    owner_id: UUID
    state: VerificationState
    documents_required: List[str] = field(default_factory=list)
    documents_uploaded: List[str] = field(default_factory=list)
    documents_verified: List[str] = field(default_factory=list)
    can_issue_token: bool = False
    has_active_token: bool = False
    active_token_id: Optional[UUID] = None


class KYCStatusService:
    """Read-only summary of a user's KYC progress."""

    def __init__(self, db: Session, required_documents: Optional[List[str]] = None):
        self.db = db
        self.evidence = EvidenceRegistry(db)
        self.tokens = TokenLifecycleManager(db)
        self.required_documents = [
            d.strip().lower() for d in (required_documents or settings.required_documents)
        ]

    def status_for(self, owner_id: UUID) -> KYCStatus:
        documents = self.evidence.list_current(owner_id)
        uploaded = [d.raw_category for d in documents]
        verified = [d.raw_category for d in documents if d.status == DocumentStatus.VERIFIED]
        active = self.tokens.get_active(owner_id)

        can_issue = all(required in verified for required in self.required_documents)

        if active is not None:
            state = VerificationState.TOKENIZED
        elif can_issue:
            state = VerificationState.DOCUMENTS_VERIFIED
        elif uploaded:
            state = VerificationState.DOCUMENTS_UPLOADED
        else:
            state = VerificationState.NOT_STARTED

        return KYCStatus(
            owner_id=owner_id,
            state=state,
            documents_required=list(self.required_documents),
            documents_uploaded=uploaded,
            documents_verified=verified,
            can_issue_token=can_issue,
            has_active_token=active is not None,
            active_token_id=active.id if active is not None else None,
        )
