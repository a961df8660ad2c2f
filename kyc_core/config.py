"""
Configuration management for KYC Vault.
Uses pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite:///./kyc_vault.db"

    # API
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:8081"]

    # Logging
    log_level: str = "INFO"

    # Application
    app_name: str = "KYC Vault"

    # Credentials
    credential_signing_key: str = "dev-credential-signing-key"
    credential_proof_type: str = "HmacSha256Signature2024"

    # Documents every user must have verified before a token can be issued
    required_documents: List[str] = ["aadhaar_front", "aadhaar_back", "pan_card", "selfie"]

    # Audit trail pagination
    audit_page_size_default: int = 50
    audit_page_size_max: int = 200

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
