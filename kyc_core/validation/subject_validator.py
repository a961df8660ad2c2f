"""
Subject Validator - Validates credential subject claims before issuance.

Rules run in a fixed order and stop at the first failure (fail-fast):
name, pan, dob, phone. The caller gets the failing field name only;
no user-facing text is produced here.
"""

import re
from datetime import date
from typing import Any, Dict, Optional

from kyc_core.errors import ValidationError

# 5 letters + 4 digits + 1 letter (checked after upper-casing)
PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")

# 10-digit mobile number, leading digit 6-9
MOBILE_PATTERN = re.compile(r"^[6-9][0-9]{9}$")

AADHAAR_PATTERN = re.compile(r"^[0-9]{12}$")

OPTIONAL_CLAIMS = ("address", "phone", "email")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_pan(value: Any) -> Optional[str]:
    cleaned = _clean(value)
    return cleaned.upper() if cleaned else None


def is_valid_mobile(value: Optional[str]) -> bool:
    return bool(value) and bool(MOBILE_PATTERN.match(value))


def is_valid_aadhaar(value: Optional[str]) -> bool:
    return bool(value) and bool(AADHAAR_PATTERN.match(value))


def parse_dob(value: Any) -> Optional[date]:
    """Parse an ISO date (YYYY-MM-DD); None if absent or unparseable."""
    if isinstance(value, date):
        return value
    cleaned = _clean(value)
    if not cleaned:
        return None
    try:
        return date.fromisoformat(cleaned)
    except ValueError:
        return None


class SubjectValidator:
    """Validates and normalizes credential subject claims."""

    def validate(self, subject: Dict[str, Any]) -> Dict[str, str]:
        """
        Validate subject claims and return the normalized claims.

        Args:
            subject: Raw claims (name, pan, dob, address?, phone?, email?)

        Returns:
            Normalized claims dict with blank optional claims dropped

        Raises:
            ValidationError: On the first failing rule, with its field name
        """
        name = _clean(subject.get("name"))
        if not name:
            raise ValidationError("name")

        pan = normalize_pan(subject.get("pan"))
        if not pan or not PAN_PATTERN.match(pan):
            raise ValidationError("pan")

        dob = parse_dob(subject.get("dob"))
        if dob is None:
            raise ValidationError("dob")

        phone = _clean(subject.get("phone"))
        if phone is not None and not is_valid_mobile(phone):
            raise ValidationError("phone")

        claims = {"name": name, "pan": pan, "dob": dob.isoformat()}
        for key in OPTIONAL_CLAIMS:
            value = _clean(subject.get(key))
            if value is not None:
                claims[key] = value
        return claims


# Singleton instance
_validator: Optional[SubjectValidator] = None


def get_subject_validator() -> SubjectValidator:
    """Get or create the singleton SubjectValidator instance."""
    global _validator
    if _validator is None:
        _validator = SubjectValidator()
    return _validator
