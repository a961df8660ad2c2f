"""
Documents API Router.

Handles evidence uploads, listing, and the issuer verification callback.
File bytes live in the blob store; only the storage reference comes here.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kyc_core.api.dependencies import get_actor_id, get_current_user_id
from kyc_core.database import get_db
from kyc_core.models import EvidenceDocument
from kyc_core.schemas.evidence import DocumentResponse, DocumentUpload, VerificationCallback
from kyc_core.services import EvidenceRegistry

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("/upload", response_model=DocumentResponse, status_code=201)
def upload_document(
    request: DocumentUpload,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Record an uploaded document for the caller.

    Replaces the caller's current document of the same category; the
    previous one is kept as history.
    """
    document = EvidenceRegistry(db).record_upload(
        owner_id=user_id,
        category=request.category,
        storage_ref=request.storage_ref,
    )
    return _document_to_response(document)


@router.get("/list", response_model=List[DocumentResponse])
def list_documents(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """List the caller's current documents, one per category."""
    documents = EvidenceRegistry(db).list_current(user_id)
    return [_document_to_response(d) for d in documents]


@router.get("/history", response_model=List[DocumentResponse])
def document_history(
    category: str = Query(..., description="Document category"),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """All uploads of one category for the caller, newest first."""
    documents = EvidenceRegistry(db).history(user_id, category)
    return [_document_to_response(d) for d in documents]


@router.post("/{document_id}/verification", response_model=DocumentResponse)
def record_verification(
    document_id: UUID,
    request: VerificationCallback,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db)
):
    """
    Issuer callback with a verification outcome.

    The caller is the authenticated issuer gateway, not the document owner.

    Last write wins if the issuer reports more than once.
    """
    document = EvidenceRegistry(db).record_verification(
        document_id,
        issuer=request.issuer,
        score=request.score,
        verified=request.verified,
        actor_id=actor_id,
    )
    return _document_to_response(document)


# Helper functions

def _document_to_response(document: EvidenceDocument) -> DocumentResponse:
    return DocumentResponse(
        id=document.id,
        owner_id=document.owner_id,
        category=document.category.value,
        raw_category=document.raw_category,
        storage_ref=document.storage_ref,
        status=document.status.value,
        issuer=document.issuer,
        verified_at=document.verified_at,
        trust_score=document.trust_score,
        is_current=document.is_current,
        superseded_at=document.superseded_at,
        superseded_by_id=document.superseded_by_id,
        uploaded_at=document.uploaded_at,
    )
