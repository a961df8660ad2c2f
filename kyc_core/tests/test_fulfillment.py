"""
Fulfillment Resolver Tests

resolve() must be pure: same inputs, same result, no I/O.
"""

import pytest

from kyc_core.domain.fulfillment import FieldKind, classify_field, resolve


ASHA = {"name": "Asha Rao", "pan": "ABCDE1234F", "dob": "1992-03-04"}


class TestDataFields:
    """Data fields are answered from the active credential."""

    def test_all_data_present(self):
        result = resolve(["name", "pan", "dob"], [], ASHA)

        assert result.satisfied == ("name", "pan", "dob")
        assert result.missing_data == ()
        assert result.missing_documents == ()
        assert result.is_complete

    def test_no_credential_means_all_data_missing(self):
        result = resolve(["name", "dob"], ["aadhaar_front"], None)

        assert result.missing_data == ("name", "dob")
        assert result.satisfied == ()

    def test_blank_claim_is_missing(self):
        result = resolve(["name", "address"], [], {"name": "Asha Rao", "address": "  "})

        assert result.satisfied == ("name",)
        assert result.missing_data == ("address",)

    def test_date_of_birth_alias(self):
        result = resolve(["date_of_birth"], [], ASHA)

        assert result.satisfied == ("date_of_birth",)

    def test_pan_is_data_not_document(self):
        result = resolve(["pan"], ["pan_card"], None)

        assert result.missing_data == ("pan",)
        assert result.missing_documents == ()


class TestDocumentFields:
    """Document fields are answered by presence of an aliased category."""

    def test_aadhaar_front_alone_satisfies_aadhaar(self):
        result = resolve(["aadhaar"], ["aadhaar_front"], None)

        assert result.satisfied == ("aadhaar",)
        assert result.is_complete

    def test_aadhaar_card_alias(self):
        result = resolve(["aadhaar_card"], ["aadhaar_back"], None)

        assert result.satisfied == ("aadhaar_card",)

    def test_photo_maps_to_selfie(self):
        assert resolve(["photo"], ["selfie"], None).is_complete
        assert resolve(["photo"], ["passport"], None).missing_documents == ("photo",)

    def test_pan_card_needs_upload(self):
        result = resolve(["pan_card", "selfie"], ["selfie"], None)

        assert result.satisfied == ("selfie",)
        assert result.missing_documents == ("pan_card",)

    def test_documents_placeholder_always_satisfied(self):
        result = resolve(["documents"], [], None)

        assert result.satisfied == ("documents",)
        assert result.is_complete

    def test_unknown_field_direct_lookup(self):
        assert resolve(["gst_certificate"], ["gst_certificate"], None).is_complete
        assert resolve(["gst_certificate"], [], None).missing_documents == ("gst_certificate",)

    def test_accepts_document_objects(self, user, upload):
        documents = upload(user, "aadhaar_front")

        assert resolve(["aadhaar"], documents, None).is_complete


class TestResolverContract:
    """Ordering, casing and purity."""

    def test_mixed_request_reference_case(self):
        fields = ["name", "pan", "aadhaar", "pan_card", "selfie"]
        result = resolve(fields, ["aadhaar_front", "selfie"], ASHA)

        assert result.satisfied == ("name", "pan", "aadhaar", "selfie")
        assert result.missing_documents == ("pan_card",)
        assert result.missing_data == ()
        assert not result.is_complete

    def test_case_insensitive_with_requested_casing_kept(self):
        result = resolve(["Name", "PAN_CARD"], ["Pan_Card"], ASHA)

        assert result.satisfied == ("Name", "PAN_CARD")

    def test_order_follows_request(self):
        result = resolve(["selfie", "passport", "voter_id", "pan_card"], [], None)

        assert result.missing_documents == ("selfie", "passport", "voter_id", "pan_card")

    def test_exact_duplicates_collapse(self):
        result = resolve(["selfie", "selfie"], [], None)

        assert result.missing_documents == ("selfie",)

    def test_every_field_lands_in_exactly_one_bucket(self):
        fields = ["name", "email", "aadhaar", "documents", "utility_bill"]
        result = resolve(fields, ["aadhaar_back"], ASHA)

        buckets = result.satisfied + result.missing_documents + result.missing_data
        assert sorted(buckets) == sorted(fields)

    def test_empty_request_is_complete(self):
        assert resolve([], [], None).is_complete

    def test_deterministic_and_does_not_mutate_inputs(self):
        fields = ["name", "pan_card"]
        documents = ["pan_card"]
        subject = dict(ASHA)

        first = resolve(fields, documents, subject)
        second = resolve(fields, documents, subject)

        assert first == second
        assert fields == ["name", "pan_card"]
        assert documents == ["pan_card"]
        assert subject == ASHA

    def test_to_dict(self):
        result = resolve(["name", "selfie"], [], None)

        assert result.to_dict() == {
            "satisfied": [],
            "missing_documents": ["selfie"],
            "missing_data": ["name"],
        }


@pytest.mark.parametrize("field,kind", [
    ("name", FieldKind.DATA),
    ("DOB", FieldKind.DATA),
    ("date_of_birth", FieldKind.DATA),
    ("pan", FieldKind.DATA),
    ("pan_card", FieldKind.DOCUMENT),
    ("Aadhaar", FieldKind.DOCUMENT),
    ("photo", FieldKind.DOCUMENT),
    ("documents", FieldKind.PLACEHOLDER),
    ("bank_statement", FieldKind.DIRECT),
])
def test_classify_field(field, kind):
    assert classify_field(field) == kind
