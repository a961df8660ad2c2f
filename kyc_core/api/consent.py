"""
Consent API Router.

Requesters create consent requests; grantors evaluate, approve, reject
and revoke them. Approval is refused while evidence is incomplete.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kyc_core.api.dependencies import get_actor_id, get_current_user_id
from kyc_core.database import get_db
from kyc_core.domain.fulfillment import classify_field
from kyc_core.errors import NotFound
from kyc_core.models import ConsentRequest
from kyc_core.schemas.consent import (
    ConsentApproveRequest,
    ConsentCreate,
    ConsentLiveResponse,
    ConsentRejectRequest,
    ConsentResponse,
    ConsentRevokeRequest,
    FieldStatus,
    FulfillmentResponse,
    RevocationOutcomeResponse,
    RevokeAllResponse,
)
from kyc_core.services import ConsentLifecycleManager

router = APIRouter(prefix="/consent", tags=["consent"])


@router.post("", response_model=ConsentResponse, status_code=201)
def create_consent_request(
    request: ConsentCreate,
    requester_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db)
):
    """Ask a user to share the listed fields. The caller is the requester."""
    consent = ConsentLifecycleManager(db).create_request(
        owner_id=request.owner_id,
        requester_id=requester_id,
        requester_name=request.requester_name,
        requested_fields=request.requested_fields,
        purpose=request.purpose,
    )
    return _consent_to_response(consent)


@router.get("/pending", response_model=List[ConsentResponse])
def list_pending(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Requests awaiting the caller's decision, newest first."""
    consents = ConsentLifecycleManager(db).pending_for(user_id)
    return [_consent_to_response(c) for c in consents]


@router.get("/approved", response_model=List[ConsentResponse])
def list_approved(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Consents the caller has granted that are still live."""
    consents = ConsentLifecycleManager(db).approved_for(user_id)
    return [_consent_to_response(c) for c in consents]


@router.post("/approve", response_model=ConsentResponse)
def approve_consent(
    request: ConsentApproveRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Approve a pending request.

    Responds 409 with missing_documents and missing_data when the
    caller's evidence does not cover every requested field.
    """
    consent = ConsentLifecycleManager(db).approve(
        request.consent_id,
        actor_id=str(user_id),
        expires_at=request.expires_at,
    )
    return _consent_to_response(consent)


@router.post("/reject", response_model=ConsentResponse)
def reject_consent(
    request: ConsentRejectRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Reject a pending request."""
    consent = ConsentLifecycleManager(db).reject(
        request.consent_id,
        actor_id=str(user_id),
        reason=request.reason,
    )
    return _consent_to_response(consent)


@router.post("/revoke", response_model=ConsentResponse)
def revoke_consent(
    request: ConsentRevokeRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Withdraw an approved consent."""
    consent = ConsentLifecycleManager(db).revoke(request.consent_id, actor_id=str(user_id))
    return _consent_to_response(consent)


@router.post("/revoke-all", response_model=RevokeAllResponse)
def revoke_all_consents(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Withdraw every live consent of the caller.

    Best effort: one failure does not stop the others.
    """
    outcomes = ConsentLifecycleManager(db).revoke_all(user_id, actor_id=str(user_id))
    revoked = sum(1 for o in outcomes if o.revoked)
    return RevokeAllResponse(
        revoked=revoked,
        failed=len(outcomes) - revoked,
        outcomes=[
            RevocationOutcomeResponse(
                consent_id=o.consent_id,
                revoked=o.revoked,
                error=o.error_code,
            )
            for o in outcomes
        ],
    )


@router.get("/{consent_id}", response_model=ConsentResponse)
def get_consent(
    consent_id: UUID,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db)
):
    """
    Get a consent request. Visible to its grantor and its requester only.

    A lapsed approval is reported as expired.
    """
    manager = ConsentLifecycleManager(db)
    consent = _load_visible(manager, consent_id, actor_id)
    manager.check_live(consent_id)
    return _consent_to_response(consent)


@router.get("/{consent_id}/live", response_model=ConsentLiveResponse)
def check_consent_live(
    consent_id: UUID,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db)
):
    """Access check for the requester before disclosing any field."""
    manager = ConsentLifecycleManager(db)
    consent = _load_visible(manager, consent_id, actor_id)
    live = manager.check_live(consent_id)
    return ConsentLiveResponse(consent_id=consent_id, live=live, status=consent.status.value)


@router.get("/{consent_id}/fulfillment", response_model=FulfillmentResponse)
def get_fulfillment(
    consent_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Per-field status of a request against the caller's current evidence."""
    manager = ConsentLifecycleManager(db)
    result = manager.evaluate(consent_id, actor_id=str(user_id))
    consent = manager.get(consent_id)

    satisfied = set(result.satisfied)
    fields = []
    seen = set()
    for field in consent.requested_fields:
        if field in seen:
            continue
        seen.add(field)
        fields.append(FieldStatus(
            field=field,
            kind=classify_field(field).value,
            satisfied=field in satisfied,
        ))

    return FulfillmentResponse(
        consent_id=consent_id,
        complete=result.is_complete,
        satisfied=list(result.satisfied),
        missing_documents=list(result.missing_documents),
        missing_data=list(result.missing_data),
        fields=fields,
    )


# Helper functions

def _load_visible(manager: ConsentLifecycleManager, consent_id: UUID, actor_id: str) -> ConsentRequest:
    consent = manager.get(consent_id)
    if consent is None or actor_id not in (str(consent.owner_id), consent.requester_id):
        raise NotFound("consent", consent_id)
    return consent


def _consent_to_response(consent: ConsentRequest) -> ConsentResponse:
    return ConsentResponse(
        id=consent.id,
        owner_id=consent.owner_id,
        requester_id=consent.requester_id,
        requester_name=consent.requester_name,
        requested_fields=list(consent.requested_fields),
        purpose=consent.purpose,
        status=consent.status.value,
        created_at=consent.created_at,
        approved_at=consent.approved_at,
        expires_at=consent.expires_at,
        decided_at=consent.decided_at,
        rejection_reason=consent.rejection_reason,
    )
