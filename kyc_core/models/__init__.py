"""
SQLAlchemy ORM models for KYC Vault.

Import all models here to ensure they're registered with Base.metadata.
This is required for Alembic autogenerate to work correctly.
"""

from kyc_core.models.user import User
from kyc_core.models.evidence import EvidenceDocument, DocumentCategory, DocumentStatus
from kyc_core.models.credential import Credential, CredentialStatus
from kyc_core.models.consent import ConsentRequest, ConsentStatus, TERMINAL_CONSENT_STATUSES
from kyc_core.models.audit import AuditLogEntry, AuditAction, AuditSubjectType

__all__ = [
    # User
    "User",
    # Evidence
    "EvidenceDocument",
    "DocumentCategory",
    "DocumentStatus",
    # Credential
    "Credential",
    "CredentialStatus",
    # Consent
    "ConsentRequest",
    "ConsentStatus",
    "TERMINAL_CONSENT_STATUSES",
    # Audit
    "AuditLogEntry",
    "AuditAction",
    "AuditSubjectType",
]
