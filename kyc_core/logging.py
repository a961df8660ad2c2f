"""
Structured Logging Module for KYC Vault.

Provides JSON-formatted structured logging for observability.
Key events: document upload and verification, token issuance and revocation,
consent transitions, concurrency conflicts and storage failures.
"""

import logging
import json
import sys
from datetime import datetime
from typing import Any, Optional, Sequence
from uuid import UUID

from kyc_core.config import settings


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    All logs are emitted as single-line JSON objects for easy parsing
    by log aggregation tools.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        # Add exception info if present
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class StructuredLogger:
    """
    Structured logger wrapper with domain-specific methods.

    Never log subject data (names, PAN, DOB); identifiers only.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(
        self,
        level: int,
        message: str,
        **kwargs: Any
    ) -> None:
        """Internal log method with extra fields."""
        extra = {"extra_fields": kwargs}
        self.logger.log(level, message, extra=extra)

    # ===== Evidence Events =====

    def document_uploaded(
        self,
        document_id: UUID,
        owner_id: UUID,
        category: str,
        superseded_id: Optional[UUID] = None
    ) -> None:
        """Log evidence document upload."""
        self._log(
            logging.INFO,
            f"Document uploaded: {category}" + (" (supersedes previous)" if superseded_id else ""),
            event="document.uploaded",
            document_id=str(document_id),
            owner_id=str(owner_id),
            category=category,
            superseded_id=str(superseded_id) if superseded_id else None
        )

    def document_verification_recorded(
        self,
        document_id: UUID,
        issuer: str,
        verified: bool,
        score: int,
        actor_id: Optional[str] = None
    ) -> None:
        """Log verification callback result."""
        self._log(
            logging.INFO if verified else logging.WARNING,
            f"Document {'verified' if verified else 'rejected'} by {issuer}",
            event="document.verification_recorded",
            document_id=str(document_id),
            issuer=issuer,
            verified=verified,
            score=score,
            actor_id=actor_id
        )

    # ===== Token Events =====

    def token_issued(self, token_id: UUID, owner_id: UUID) -> None:
        """Log credential issued."""
        self._log(
            logging.INFO,
            f"Token issued for owner {owner_id}",
            event="token.issued",
            token_id=str(token_id),
            owner_id=str(owner_id)
        )

    def token_validation_failed(self, owner_id: UUID, field: str) -> None:
        """Log credential subject validation failure (field name only)."""
        self._log(
            logging.WARNING,
            f"Token issuance rejected: invalid '{field}'",
            event="token.validation_failed",
            owner_id=str(owner_id),
            field=field
        )

    def token_revoked(self, token_id: UUID, actor_id: str) -> None:
        """Log credential revoked."""
        self._log(
            logging.INFO,
            f"Token revoked by {actor_id}",
            event="token.revoked",
            token_id=str(token_id),
            actor_id=actor_id
        )

    def token_verified(self, token_id: UUID, verifier_id: str, valid: bool) -> None:
        """Log credential verification by a relying party."""
        self._log(
            logging.INFO if valid else logging.WARNING,
            f"Token verification {'passed' if valid else 'failed'}",
            event="token.verified",
            token_id=str(token_id),
            verifier_id=verifier_id,
            valid=valid
        )

    # ===== Consent Events =====

    def consent_requested(self, consent_id: UUID, owner_id: UUID, requester_id: str) -> None:
        """Log consent request created."""
        self._log(
            logging.INFO,
            f"Consent requested by {requester_id}",
            event="consent.requested",
            consent_id=str(consent_id),
            owner_id=str(owner_id),
            requester_id=requester_id
        )

    def consent_approved(
        self,
        consent_id: UUID,
        actor_id: str,
        expires_at: Optional[datetime] = None
    ) -> None:
        """Log consent approved."""
        self._log(
            logging.INFO,
            f"Consent approved by {actor_id}",
            event="consent.approved",
            consent_id=str(consent_id),
            actor_id=actor_id,
            expires_at=expires_at.isoformat() if expires_at else None
        )

    def consent_approval_blocked(
        self,
        consent_id: UUID,
        missing_documents: Sequence[str],
        missing_data: Sequence[str]
    ) -> None:
        """Log approval refused for incomplete evidence."""
        self._log(
            logging.INFO,
            f"Consent approval blocked: {len(missing_documents)} documents, "
            f"{len(missing_data)} data fields missing",
            event="consent.approval_blocked",
            consent_id=str(consent_id),
            missing_documents=list(missing_documents),
            missing_data=list(missing_data)
        )

    def consent_rejected(self, consent_id: UUID, actor_id: str) -> None:
        """Log consent rejected."""
        self._log(
            logging.INFO,
            f"Consent rejected by {actor_id}",
            event="consent.rejected",
            consent_id=str(consent_id),
            actor_id=actor_id
        )

    def consent_revoked(self, consent_id: UUID, actor_id: str) -> None:
        """Log consent revoked."""
        self._log(
            logging.INFO,
            f"Consent revoked by {actor_id}",
            event="consent.revoked",
            consent_id=str(consent_id),
            actor_id=actor_id
        )

    def consent_expired(self, consent_id: UUID, expires_at: datetime) -> None:
        """Log lazy expiry write-back."""
        self._log(
            logging.INFO,
            f"Consent expired at {expires_at.isoformat()}",
            event="consent.expired",
            consent_id=str(consent_id),
            expires_at=expires_at.isoformat()
        )

    def consent_batch_revoked(self, owner_id: UUID, succeeded: int, failed: int) -> None:
        """Log batch revocation outcome."""
        self._log(
            logging.WARNING if failed else logging.INFO,
            f"Batch revoke completed: {succeeded} revoked, {failed} failed",
            event="consent.batch_revoked",
            owner_id=str(owner_id),
            succeeded=succeeded,
            failed=failed
        )

    # ===== Infrastructure Events =====

    def concurrency_conflict(self, entity: str, entity_id: UUID) -> None:
        """Log optimistic-lock conflict."""
        self._log(
            logging.WARNING,
            f"Concurrent update detected on {entity} {entity_id}",
            event="storage.conflict",
            entity=entity,
            entity_id=str(entity_id)
        )

    def storage_failed(self, operation: str, error: str) -> None:
        """Log storage failure (unit of work rolled back)."""
        self._log(
            logging.ERROR,
            f"Storage failure during {operation}: {error}",
            event="storage.failed",
            operation=operation,
            error=error
        )


def setup_logging() -> None:
    """
    Configure application-wide logging.

    Should be called once at application startup.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))

    # Remove existing handlers
    root_logger.handlers = []

    # Add JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    # Set levels for noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        StructuredLogger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.token_issued(token_id, owner_id)
    """
    return StructuredLogger(name)
