"""
Validation module for KYC Vault.

Provides input rules for credential subjects, mobile numbers and Aadhaar numbers.
"""

from .subject_validator import (
    SubjectValidator,
    get_subject_validator,
    is_valid_aadhaar,
    is_valid_mobile,
    normalize_pan,
    parse_dob,
)

__all__ = [
    "SubjectValidator",
    "get_subject_validator",
    "is_valid_aadhaar",
    "is_valid_mobile",
    "normalize_pan",
    "parse_dob",
]
