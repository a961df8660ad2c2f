"""
Audit Trail Service.

Append-only ledger of every lifecycle transition, keyed by the affected
token or consent id. Read-only to consumers.
"""

import base64
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from kyc_core.config import settings
from kyc_core.errors import StorageUnavailable, ValidationError
from kyc_core.logging import get_logger
from kyc_core.models import AuditAction, AuditLogEntry, AuditSubjectType

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuditCursor:
    """Position after which the next (older) page starts."""
    occurred_at: datetime
    sequence: int

    def encode(self) -> str:
        raw = f"{self.occurred_at.isoformat()}|{self.sequence}"
        return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")

    @classmethod
    def decode(cls, token: str) -> "AuditCursor":
        try:
            raw = base64.urlsafe_b64decode(token.encode("ascii")).decode("utf-8")
            occurred_at, sequence = raw.split("|", 1)
            return cls(datetime.fromisoformat(occurred_at), int(sequence))
        except (ValueError, UnicodeError):
            raise ValidationError("cursor")


@dataclass
class AuditPage:
    """A page of audit entries, newest first."""
    entries: List[AuditLogEntry]
    next_cursor: Optional[AuditCursor] = None


def subject_type_for(action: AuditAction) -> AuditSubjectType:
    """TOKEN_* actions refer to credentials, CONSENT_* to consent requests."""
    if action.value.startswith("TOKEN_"):
        return AuditSubjectType.TOKEN
    return AuditSubjectType.CONSENT


class AuditTrail:
    """
    Audit trail logger.

    CRITICAL: Entries are IMMUTABLE.
    - append() only adds rows to the caller's unit of work
    - No UPDATE or DELETE paths exist
    """

    def __init__(self, db: Session):
        """
        Initialize audit trail.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def append(
        self,
        subject_id: UUID,
        action: AuditAction,
        actor_id: str,
        detail,
        owner_id: Optional[UUID] = None
    ) -> AuditLogEntry:
        """
        Append an entry to the current unit of work.

        The caller commits; if the commit fails the transition it records
        is rolled back with it.

        Args:
            subject_id: Token or consent id
            action: Audit action
            actor_id: Authenticated actor that caused the transition
            detail: Detail variant matching the action
            owner_id: Owner of the subject (for owner-scoped listing)

        Returns:
            The pending AuditLogEntry (flushed, not committed)

        Raises:
            ValueError: If the detail variant does not match the action
            StorageUnavailable: If the store rejects the write
        """
        action = AuditAction(action)
        if getattr(detail, "action", None) != action.value:
            raise ValueError(
                f"Detail {type(detail).__name__} does not match action {action.value}"
            )

        entry = AuditLogEntry(
            action=action,
            subject_type=subject_type_for(action),
            subject_id=subject_id,
            owner_id=owner_id,
            detail=detail.model_dump(mode="json"),
            actor_id=actor_id,
            occurred_at=datetime.utcnow(),
        )
        self.db.add(entry)

        try:
            self.db.flush()
        except DBAPIError as e:
            # Constraint violations are conflicts; the unit of work maps them
            if isinstance(e, IntegrityError):
                raise
            logger.storage_failed("audit append", str(e.orig) if e.orig else str(e))
            raise StorageUnavailable("Audit store unavailable") from e

        return entry

    def list_for(
        self,
        subject_id: Optional[UUID] = None,
        owner_id: Optional[UUID] = None,
        actions: Optional[Iterable[AuditAction]] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        cursor: Optional[AuditCursor] = None,
        limit: Optional[int] = None
    ) -> AuditPage:
        """
        List entries for a subject or an owner, newest first.

        Pages are restartable: pass the returned next_cursor to continue.
        The page size is clamped, so a listing is never unbounded.

        Raises:
            ValidationError: If neither or both of subject_id/owner_id are given
        """
        if (subject_id is None) == (owner_id is None):
            raise ValidationError("subject_id", "Exactly one of subject_id or owner_id is required")

        if limit is None:
            limit = settings.audit_page_size_default
        limit = max(1, min(limit, settings.audit_page_size_max))

        query = self.db.query(AuditLogEntry)
        if subject_id is not None:
            query = query.filter(AuditLogEntry.subject_id == subject_id)
        else:
            query = query.filter(AuditLogEntry.owner_id == owner_id)

        if actions:
            query = query.filter(AuditLogEntry.action.in_([AuditAction(a) for a in actions]))
        if since is not None:
            query = query.filter(AuditLogEntry.occurred_at >= since)
        if until is not None:
            query = query.filter(AuditLogEntry.occurred_at <= until)
        if cursor is not None:
            query = query.filter(
                or_(
                    AuditLogEntry.occurred_at < cursor.occurred_at,
                    and_(
                        AuditLogEntry.occurred_at == cursor.occurred_at,
                        AuditLogEntry.sequence < cursor.sequence,
                    ),
                )
            )

        rows = (
            query
            .order_by(AuditLogEntry.occurred_at.desc(), AuditLogEntry.sequence.desc())
            .limit(limit + 1)
            .all()
        )

        entries = rows[:limit]
        next_cursor = None
        if len(rows) > limit:
            last = entries[-1]
            next_cursor = AuditCursor(last.occurred_at, last.sequence)

        return AuditPage(entries=entries, next_cursor=next_cursor)

    def summary(self, owner_id: UUID) -> Dict[str, int]:
        """Count entries per action for an owner."""
        rows = (
            self.db.query(AuditLogEntry.action, func.count(AuditLogEntry.sequence))
            .filter(AuditLogEntry.owner_id == owner_id)
            .group_by(AuditLogEntry.action)
            .all()
        )
        counts = {action.value: 0 for action in AuditAction}
        for action, count in rows:
            counts[AuditAction(action).value] = count
        return counts
