"""
API Dependencies - Actor identity and error translation.

Authentication happens upstream; the gateway forwards the authenticated
principal in the X-Actor-Id header and the API trusts it.
"""

from typing import Dict, Optional, Type
from uuid import UUID

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from kyc_core.errors import (
    AlreadyRevoked,
    ConflictError,
    IncompleteEvidence,
    InvalidState,
    KYCCoreError,
    NotFound,
    StorageUnavailable,
    ValidationError,
)
ACTOR_HEADER = "X-Actor-Id"

# Looked up along the exception's MRO
ERROR_STATUS_CODES: Dict[Type[KYCCoreError], int] = {
    ValidationError: 422,
    InvalidState: 409,
    IncompleteEvidence: 409,
    NotFound: 404,
    AlreadyRevoked: 409,
    ConflictError: 409,
    StorageUnavailable: 503,
}


def get_actor_id(x_actor_id: Optional[str] = Header(None, alias=ACTOR_HEADER)) -> str:
    """
    FastAPI dependency for the authenticated actor (user id or requester id).

    Usage:
        @router.post("/consent")
        def create(actor_id: str = Depends(get_actor_id)):
            ...
    """
    if x_actor_id is None or not x_actor_id.strip():
        raise HTTPException(status_code=401, detail=f"Missing {ACTOR_HEADER} header")
    return x_actor_id.strip()


def get_current_user_id(x_actor_id: Optional[str] = Header(None, alias=ACTOR_HEADER)) -> UUID:
    """FastAPI dependency for endpoints acting on the caller's own data."""
    actor_id = get_actor_id(x_actor_id)
    try:
        return UUID(actor_id)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"{ACTOR_HEADER} is not a user id")


def status_code_for(error: KYCCoreError) -> int:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


def error_body(error: KYCCoreError) -> dict:
    """Machine-readable error body; the client owns the wording."""
    body = {"error": error.code, "message": str(error)}
    if isinstance(error, ValidationError):
        body["field"] = error.field
    if isinstance(error, IncompleteEvidence):
        body["missing_documents"] = list(error.missing_documents)
        body["missing_data"] = list(error.missing_data)
    if isinstance(error, InvalidState):
        body["current_state"] = error.current
    return body


async def kyc_error_handler(request: Request, exc: KYCCoreError) -> JSONResponse:
    return JSONResponse(status_code=status_code_for(exc), content=error_body(exc))


def register_error_handlers(app: FastAPI) -> None:
    """Translate core errors to HTTP responses."""
    app.add_exception_handler(KYCCoreError, kyc_error_handler)
