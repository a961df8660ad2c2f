"""
Evidence Registry Service.

Records uploaded documents and their verification outcome per user.
A new upload for a category supersedes the current one; nothing is erased.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from kyc_core.errors import InvalidCategory, NotFound, ValidationError
from kyc_core.logging import get_logger
from kyc_core.models import DocumentCategory, DocumentStatus, EvidenceDocument, User
from kyc_core.services.unit_of_work import unit_of_work

logger = get_logger(__name__)

MIN_TRUST_SCORE = 0
MAX_TRUST_SCORE = 100


class EvidenceRegistry:
    """
    Evidence document registry.

    Verification results arrive asynchronously from the external issuer
    through record_verification(); this service never calls the issuer.
    """

    def __init__(self, db: Session):
        """
        Initialize evidence registry.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def record_upload(self, owner_id: UUID, category: str, storage_ref: str) -> EvidenceDocument:
        """
        Record an upload, superseding the current document of that category.

        Unknown categories are accepted and stored as OTHER with their raw
        name; they never match the field alias table.

        Args:
            owner_id: Owner of the document
            category: Submitted category name (case-insensitive)
            storage_ref: Opaque storage handle

        Returns:
            The new current EvidenceDocument (status uploaded, trust score 0)

        Raises:
            InvalidCategory: If category is empty
            ValidationError: If storage_ref is empty
            NotFound: If the owner does not exist
            ConflictError: If a concurrent upload for the same category won
        """
        raw_category = (category or "").strip().lower()
        if not raw_category:
            raise InvalidCategory(category)
        if not storage_ref or not storage_ref.strip():
            raise ValidationError("storage_ref")
        if self.db.get(User, owner_id) is None:
            raise NotFound("user", owner_id)

        document = EvidenceDocument(
            id=uuid4(),
            owner_id=owner_id,
            category=DocumentCategory.normalize(raw_category),
            raw_category=raw_category,
            storage_ref=storage_ref.strip(),
            status=DocumentStatus.UPLOADED,
            trust_score=0,
            is_current=True,
            uploaded_at=datetime.utcnow(),
        )

        with unit_of_work(self.db, "evidence_document", document.id):
            previous = self._current(owner_id, raw_category)
            if previous is not None:
                previous.supersede(document.id, when=document.uploaded_at)
                # Retire the old row before the new one claims the current slot
                self.db.flush()
            self.db.add(document)

        logger.document_uploaded(
            document_id=document.id,
            owner_id=owner_id,
            category=raw_category,
            superseded_id=previous.id if previous is not None else None
        )
        return document

    def record_verification(
        self,
        document_id: UUID,
        issuer: str,
        score: int,
        verified: bool,
        actor_id: Optional[str] = None
    ) -> EvidenceDocument:
        """
        Record the issuer's verification outcome. Last write wins.

        actor_id is the authenticated caller that delivered the outcome.

        Raises:
            NotFound: If the document does not exist
            ValidationError: If issuer is blank or score is outside 0..100
        """
        if not issuer or not issuer.strip():
            raise ValidationError("issuer")
        if isinstance(score, bool) or not isinstance(score, int) or not MIN_TRUST_SCORE <= score <= MAX_TRUST_SCORE:
            raise ValidationError("score")

        document = self.get(document_id)
        if document is None:
            raise NotFound("evidence_document", document_id)

        with unit_of_work(self.db, "evidence_document", document_id):
            document.status = DocumentStatus.VERIFIED if verified else DocumentStatus.REJECTED
            document.issuer = issuer.strip()
            document.trust_score = score
            document.verified_at = datetime.utcnow()

        logger.document_verification_recorded(
            document_id=document_id,
            issuer=document.issuer,
            verified=verified,
            score=score,
            actor_id=actor_id
        )
        return document

    def list_current(self, owner_id: UUID) -> List[EvidenceDocument]:
        """Current (non-superseded) documents, one per category."""
        return (
            self.db.query(EvidenceDocument)
            .filter(
                EvidenceDocument.owner_id == owner_id,
                EvidenceDocument.is_current.is_(True)
            )
            .order_by(EvidenceDocument.raw_category)
            .all()
        )

    def history(self, owner_id: UUID, category: str) -> List[EvidenceDocument]:
        """All documents ever uploaded for a category, newest first."""
        return (
            self.db.query(EvidenceDocument)
            .filter(
                EvidenceDocument.owner_id == owner_id,
                EvidenceDocument.raw_category == (category or "").strip().lower()
            )
            .order_by(EvidenceDocument.uploaded_at.desc())
            .all()
        )

    def get(self, document_id: UUID) -> Optional[EvidenceDocument]:
        """Get document by ID."""
        return self.db.query(EvidenceDocument).filter(EvidenceDocument.id == document_id).first()

    def _current(self, owner_id: UUID, raw_category: str) -> Optional[EvidenceDocument]:
        return (
            self.db.query(EvidenceDocument)
            .filter(
                EvidenceDocument.owner_id == owner_id,
                EvidenceDocument.raw_category == raw_category,
                EvidenceDocument.is_current.is_(True)
            )
            .first()
        )
