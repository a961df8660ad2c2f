"""
Deterministic credential proofs.

Pure functions for producing and checking the signature embedded in a
credential's proof blob.

CRITICAL: These functions must be deterministic.
Same claims and key MUST produce the same signature every time.
"""

import hashlib
import hmac
import json
from datetime import datetime
from typing import Any, Dict
from uuid import UUID


def canonical_claims(
    credential_id: UUID,
    owner_id: UUID,
    issued_at: datetime,
    subject: Dict[str, Any]
) -> str:
    """
    Build the canonical JSON string that is signed.

    Keys are sorted and separators fixed so that logically equal claims
    serialize identically.
    """
    canonical = {
        "id": str(credential_id),
        "owner_id": str(owner_id),
        "issued_at": issued_at.isoformat(),
        "credential_subject": subject,
    }
    return json.dumps(canonical, sort_keys=True, separators=(',', ':'))


def sign_claims(claims: str, key: str) -> str:
    """
    Compute the HMAC-SHA256 signature of canonical claims.

    Returns:
        64-character hex digest
    """
    return hmac.new(key.encode('utf-8'), claims.encode('utf-8'), hashlib.sha256).hexdigest()


def build_proof(
    credential_id: UUID,
    owner_id: UUID,
    issued_at: datetime,
    subject: Dict[str, Any],
    key: str,
    proof_type: str
) -> Dict[str, str]:
    """Create the opaque proof blob stored with a credential."""
    claims = canonical_claims(credential_id, owner_id, issued_at, subject)
    return {
        "type": proof_type,
        "created": issued_at.isoformat(),
        "signature": sign_claims(claims, key),
    }


def verify_proof(
    credential_id: UUID,
    owner_id: UUID,
    issued_at: datetime,
    subject: Dict[str, Any],
    proof: Dict[str, Any],
    key: str
) -> bool:
    """Recompute the signature and compare in constant time."""
    signature = (proof or {}).get("signature")
    if not isinstance(signature, str):
        return False
    expected = sign_claims(canonical_claims(credential_id, owner_id, issued_at, subject), key)
    return hmac.compare_digest(expected, signature)
