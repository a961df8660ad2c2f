"""
Consent fulfillment resolution.

Decides which requested fields a user's current evidence can satisfy.

CRITICAL: resolve() is a pure function. It never touches the database and
never mutates its inputs; the same inputs always produce the same result.

Field classification is fixed and closed:
- Data fields are answered from the active credential's subject claims.
- Document fields are answered by the presence of an aliased document
  category (verification status is informational only).
- "documents" is a placeholder and is always satisfied.
- Anything else is looked up directly as a document category name.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from kyc_core.models.evidence import DocumentCategory


class FieldKind(str, Enum):
    """How a requested field is resolved."""
    DATA = "data"
    DOCUMENT = "document"
    PLACEHOLDER = "placeholder"
    DIRECT = "direct"


class DataField(str, Enum):
    """Credential subject claims that can be disclosed."""
    NAME = "name"
    DOB = "dob"
    ADDRESS = "address"
    PHONE = "phone"
    EMAIL = "email"
    PAN = "pan"


class DocumentField(str, Enum):
    """Requestable document fields with a fixed category mapping."""
    AADHAAR = "aadhaar"
    AADHAAR_CARD = "aadhaar_card"
    AADHAAR_FRONT = "aadhaar_front"
    AADHAAR_BACK = "aadhaar_back"
    PAN_CARD = "pan_card"
    SELFIE = "selfie"
    PHOTO = "photo"
    PASSPORT = "passport"
    DRIVING_LICENSE = "driving_license"
    VOTER_ID = "voter_id"


# Requested name -> subject claim. Aliases are normalized before lookup.
DATA_FIELD_ALIASES: Dict[str, DataField] = {
    "name": DataField.NAME,
    "dob": DataField.DOB,
    "date_of_birth": DataField.DOB,
    "address": DataField.ADDRESS,
    "phone": DataField.PHONE,
    "email": DataField.EMAIL,
    "pan": DataField.PAN,
}

# Document field -> acceptable categories (any one satisfies the field)
DOCUMENT_FIELD_CATEGORIES: Dict[DocumentField, FrozenSet[DocumentCategory]] = {
    DocumentField.AADHAAR: frozenset({DocumentCategory.AADHAAR_FRONT, DocumentCategory.AADHAAR_BACK}),
    DocumentField.AADHAAR_CARD: frozenset({DocumentCategory.AADHAAR_FRONT, DocumentCategory.AADHAAR_BACK}),
    DocumentField.AADHAAR_FRONT: frozenset({DocumentCategory.AADHAAR_FRONT}),
    DocumentField.AADHAAR_BACK: frozenset({DocumentCategory.AADHAAR_BACK}),
    DocumentField.PAN_CARD: frozenset({DocumentCategory.PAN_CARD}),
    DocumentField.SELFIE: frozenset({DocumentCategory.SELFIE}),
    DocumentField.PHOTO: frozenset({DocumentCategory.SELFIE}),
    DocumentField.PASSPORT: frozenset({DocumentCategory.PASSPORT}),
    DocumentField.DRIVING_LICENSE: frozenset({DocumentCategory.DRIVING_LICENSE}),
    DocumentField.VOTER_ID: frozenset({DocumentCategory.VOTER_ID}),
}

PLACEHOLDER_FIELD = "documents"


@dataclass(frozen=True)
class FulfillmentResult:
    """
    Outcome of resolving a requested field list.

    Each tuple keeps the requested casing and request order.
    """
    satisfied: Tuple[str, ...]
    missing_documents: Tuple[str, ...]
    missing_data: Tuple[str, ...]

    @property
    def is_complete(self) -> bool:
        return not self.missing_documents and not self.missing_data

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "satisfied": list(self.satisfied),
            "missing_documents": list(self.missing_documents),
            "missing_data": list(self.missing_data),
        }


def normalize_field(field: str) -> str:
    """Case-insensitive comparison key for a requested field."""
    return field.strip().lower()


def classify_field(field: str) -> FieldKind:
    """Return how a requested field is resolved."""
    key = normalize_field(field)
    if key == PLACEHOLDER_FIELD:
        return FieldKind.PLACEHOLDER
    if key in DATA_FIELD_ALIASES:
        return FieldKind.DATA
    try:
        DocumentField(key)
    except ValueError:
        return FieldKind.DIRECT
    return FieldKind.DOCUMENT


def _document_keys(current_documents: Iterable[Any]) -> FrozenSet[str]:
    """Collect the lower-cased category names of the current documents."""
    keys = set()
    for doc in current_documents:
        if isinstance(doc, str):
            keys.add(normalize_field(doc))
        else:
            keys.add(normalize_field(doc.raw_category))
    return frozenset(keys)


def _subject_of(active_credential: Any) -> Optional[Mapping[str, Any]]:
    if active_credential is None:
        return None
    if isinstance(active_credential, Mapping):
        return active_credential
    return active_credential.subject or {}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def resolve(
    requested_fields: Iterable[str],
    current_documents: Iterable[Any],
    active_credential: Any = None
) -> FulfillmentResult:
    """
    Compute which requested fields are satisfied.

    Args:
        requested_fields: Fields as requested (any casing, order preserved)
        current_documents: Current EvidenceDocuments (or raw category names)
        active_credential: The active Credential, its subject mapping, or None

    Returns:
        FulfillmentResult covering every requested field

    Example:
        >>> result = resolve(["name", "pan_card", "selfie"], [], None)
        >>> result.missing_data
        ('name',)
        >>> result.missing_documents
        ('pan_card', 'selfie')
    """
    uploaded = _document_keys(current_documents)
    subject = _subject_of(active_credential)

    satisfied: List[str] = []
    missing_documents: List[str] = []
    missing_data: List[str] = []
    seen = set()

    for field in requested_fields:
        if field in seen:
            continue
        seen.add(field)

        kind = classify_field(field)
        key = normalize_field(field)

        if kind == FieldKind.PLACEHOLDER:
            satisfied.append(field)

        elif kind == FieldKind.DATA:
            claim = DATA_FIELD_ALIASES[key].value
            if subject is not None and not _is_blank(subject.get(claim)):
                satisfied.append(field)
            else:
                missing_data.append(field)

        elif kind == FieldKind.DOCUMENT:
            categories = DOCUMENT_FIELD_CATEGORIES[DocumentField(key)]
            if any(category.value in uploaded for category in categories):
                satisfied.append(field)
            else:
                missing_documents.append(field)

        else:
            # Unrecognized field: direct category lookup by its own name
            if key in uploaded:
                satisfied.append(field)
            else:
                missing_documents.append(field)

    return FulfillmentResult(
        satisfied=tuple(satisfied),
        missing_documents=tuple(missing_documents),
        missing_data=tuple(missing_data),
    )
