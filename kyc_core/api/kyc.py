"""
KYC API Router.

Handles token issuance, listing, verification and revocation, plus the
caller's derived KYC status.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kyc_core.api.dependencies import get_actor_id, get_current_user_id
from kyc_core.database import get_db
from kyc_core.errors import NotFound
from kyc_core.models import Credential
from kyc_core.schemas.credential import (
    KYCStatusResponse,
    TokenIssueRequest,
    TokenResponse,
    TokenRevokeRequest,
    TokenVerificationResponse,
)
from kyc_core.services import KYCStatusService, TokenLifecycleManager

router = APIRouter(prefix="/kyc", tags=["kyc"])


@router.post("/issue", response_model=TokenResponse, status_code=201)
def issue_token(
    request: TokenIssueRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Issue a signed KYC token for the caller.

    Earlier tokens stay active; revoke them explicitly if needed.
    """
    subject = request.model_dump(exclude_none=True)
    credential = TokenLifecycleManager(db).issue(user_id, subject)
    return _token_to_response(credential)


@router.get("/tokens", response_model=List[TokenResponse])
def list_tokens(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """List the caller's tokens, newest first."""
    tokens = TokenLifecycleManager(db).list_for_owner(user_id)
    return [_token_to_response(t) for t in tokens]


@router.get("/token/{token_id}", response_model=TokenResponse)
def get_token(
    token_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get one of the caller's tokens."""
    credential = _load_owned_token(db, token_id, user_id)
    return _token_to_response(credential)


@router.post("/token/{token_id}/verify", response_model=TokenVerificationResponse)
def verify_token(
    token_id: UUID,
    verifier_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db)
):
    """
    Check a shared token on behalf of a relying party.

    A revoked or tampered token yields valid=false rather than an error.
    """
    result = TokenLifecycleManager(db).verify(token_id, verifier_id)
    return TokenVerificationResponse(
        token_id=result.token_id,
        valid=result.valid,
        signature_valid=result.signature_valid,
        status=result.status.value,
    )


@router.post("/revoke", response_model=TokenResponse)
def revoke_token(
    request: TokenRevokeRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Revoke one of the caller's tokens. Revoking twice is an error."""
    _load_owned_token(db, request.token_id, user_id)
    credential = TokenLifecycleManager(db).revoke(
        request.token_id,
        actor_id=str(user_id),
        reason=request.reason,
    )
    return _token_to_response(credential)


@router.get("/status", response_model=KYCStatusResponse)
def get_kyc_status(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Derived verification status shown on the dashboard."""
    status = KYCStatusService(db).status_for(user_id)
    return KYCStatusResponse(
        owner_id=status.owner_id,
        state=status.state.value,
        documents_required=status.documents_required,
        documents_uploaded=status.documents_uploaded,
        documents_verified=status.documents_verified,
        can_issue_token=status.can_issue_token,
        has_active_token=status.has_active_token,
        active_token_id=status.active_token_id,
    )


# Helper functions

def _load_owned_token(db: Session, token_id: UUID, user_id: UUID) -> Credential:
    credential = TokenLifecycleManager(db).get(token_id)
    if credential is None or credential.owner_id != user_id:
        raise NotFound("token", token_id)
    return credential


def _token_to_response(credential: Credential) -> TokenResponse:
    return TokenResponse(
        id=credential.id,
        owner_id=credential.owner_id,
        status=credential.status.value,
        issued_at=credential.issued_at,
        revoked_at=credential.revoked_at,
        revocation_reason=credential.revocation_reason,
        subject=credential.subject,
        proof=credential.proof,
    )
