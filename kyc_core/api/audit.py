"""
Audit API Router.

Read-only access to the caller's audit trail.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kyc_core.api.dependencies import get_current_user_id
from kyc_core.database import get_db
from kyc_core.errors import NotFound, ValidationError
from kyc_core.models import AuditAction, AuditLogEntry, ConsentRequest, Credential
from kyc_core.schemas.audit import AuditEntryResponse, AuditPageResponse, AuditSummaryResponse
from kyc_core.services import AuditCursor, AuditTrail
from kyc_core.services.consent_lifecycle import as_utc_naive

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/logs", response_model=AuditPageResponse)
def list_audit_logs(
    subject_id: Optional[UUID] = Query(None, description="Restrict to one token or consent"),
    action: Optional[List[str]] = Query(None, description="Filter by action (repeatable)"),
    since: Optional[datetime] = Query(None),
    until: Optional[datetime] = Query(None),
    cursor: Optional[str] = Query(None, description="next_cursor from the previous page"),
    limit: Optional[int] = Query(None, ge=1),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    List audit entries, newest first.

    Without subject_id, lists everything recorded against the caller.
    """
    actions = None
    if action:
        try:
            actions = [AuditAction(a.upper()) for a in action]
        except ValueError:
            raise ValidationError("action")

    if subject_id is not None:
        _check_subject_owner(db, subject_id, user_id)

    page = AuditTrail(db).list_for(
        subject_id=subject_id,
        owner_id=None if subject_id is not None else user_id,
        actions=actions,
        since=as_utc_naive(since),
        until=as_utc_naive(until),
        cursor=AuditCursor.decode(cursor) if cursor else None,
        limit=limit,
    )
    return AuditPageResponse(
        entries=[_entry_to_response(e) for e in page.entries],
        next_cursor=page.next_cursor.encode() if page.next_cursor else None,
    )


@router.get("/logs/summary", response_model=AuditSummaryResponse)
def audit_summary(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Count of the caller's audit entries per action."""
    counts = AuditTrail(db).summary(user_id)
    return AuditSummaryResponse(total=sum(counts.values()), by_action=counts)


# Helper functions

def _check_subject_owner(db: Session, subject_id: UUID, user_id: UUID) -> None:
    for model in (Credential, ConsentRequest):
        subject = db.get(model, subject_id)
        if subject is not None:
            if subject.owner_id != user_id:
                break
            return
    raise NotFound("audit subject", subject_id)


def _entry_to_response(entry: AuditLogEntry) -> AuditEntryResponse:
    return AuditEntryResponse(
        id=entry.id,
        sequence=entry.sequence,
        action=entry.action.value,
        subject_type=entry.subject_type.value,
        subject_id=entry.subject_id,
        owner_id=entry.owner_id,
        actor_id=entry.actor_id,
        detail=entry.detail,
        occurred_at=entry.occurred_at,
    )
