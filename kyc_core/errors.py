"""
Error taxonomy for the KYC vault core.

Every error is returned to the immediate caller. None of them carry
user-facing copy; the presentation layer owns translation.
"""

from typing import Iterable, Optional, Tuple


class KYCCoreError(Exception):
    """Base class for all vault errors."""

    code = "kyc_error"


class ValidationError(KYCCoreError, ValueError):
    """Malformed input. Local, never retried automatically."""

    code = "validation_error"

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Invalid value for '{field}'")


class InvalidCategory(ValidationError):
    """Document category is empty or cannot be normalized."""

    code = "invalid_category"

    def __init__(self, category: Optional[str]):
        self.category = category
        super().__init__("category", f"Invalid document category: {category!r}")


class InvalidState(KYCCoreError):
    """Operation attempted from a state that disallows it."""

    code = "invalid_state"

    def __init__(self, entity: str, entity_id, current: str, operation: str):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.operation = operation
        super().__init__(f"Cannot {operation} {entity} {entity_id} in state '{current}'")


class IncompleteEvidence(KYCCoreError):
    """
    Approval precondition not met.

    This is the designed outcome of an unmet contract, not a system fault.
    """

    code = "incomplete_evidence"

    def __init__(self, missing_documents: Iterable[str], missing_data: Iterable[str]):
        self.missing_documents: Tuple[str, ...] = tuple(missing_documents)
        self.missing_data: Tuple[str, ...] = tuple(missing_data)
        super().__init__(
            f"Missing documents: {list(self.missing_documents)}; "
            f"missing data: {list(self.missing_data)}"
        )


class NotFound(KYCCoreError):
    """Entity does not exist (or is not visible to the actor)."""

    code = "not_found"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class AlreadyRevoked(KYCCoreError):
    """Credential was already revoked. Repeated revocation is reported, not ignored."""

    code = "already_revoked"

    def __init__(self, token_id):
        self.token_id = token_id
        super().__init__(f"Token {token_id} is already revoked")


class ConflictError(KYCCoreError):
    """Concurrent mutation of the same entity. Safe to retry."""

    code = "conflict"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"Concurrent update of {entity} {entity_id}")


class StorageUnavailable(KYCCoreError):
    """Underlying store failed. Fatal for the operation, never retried here."""

    code = "storage_unavailable"
