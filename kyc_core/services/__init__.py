"""
Core services for the KYC vault.

These services implement the business logic layer:
- EvidenceRegistry: Uploaded documents and their verification outcome
- TokenLifecycleManager: Credential issuance, verification and revocation
- ConsentLifecycleManager: Consent transitions gated by fulfillment (CRITICAL)
- AuditTrail: Append-only ledger of every transition
- UserRegistry / KYCStatusService: Users and their derived KYC status
"""

from kyc_core.services.audit_trail import AuditTrail, AuditCursor, AuditPage
from kyc_core.services.evidence_registry import EvidenceRegistry
from kyc_core.services.token_lifecycle import TokenLifecycleManager, TokenVerification
from kyc_core.services.consent_lifecycle import ConsentLifecycleManager, RevocationOutcome
from kyc_core.services.user_registry import UserRegistry
from kyc_core.services.kyc_status import KYCStatusService, KYCStatus, VerificationState

__all__ = [
    "AuditTrail",
    "AuditCursor",
    "AuditPage",
    "EvidenceRegistry",
    "TokenLifecycleManager",
    "TokenVerification",
    "ConsentLifecycleManager",
    "RevocationOutcome",
    "UserRegistry",
    "KYCStatusService",
    "KYCStatus",
    "VerificationState",
]
