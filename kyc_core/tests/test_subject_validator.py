"""
Subject Validator Tests
"""

import pytest
from datetime import date

from kyc_core.errors import ValidationError
from kyc_core.validation import get_subject_validator, normalize_pan, parse_dob


def test_normalizes_claims():
    claims = get_subject_validator().validate({
        "name": "  Asha Rao ",
        "pan": " abcde1234f ",
        "dob": "1992-03-04",
        "address": " 12 MG Road, Bengaluru ",
        "email": "",
    })

    assert claims == {
        "name": "Asha Rao",
        "pan": "ABCDE1234F",
        "dob": "1992-03-04",
        "address": "12 MG Road, Bengaluru",
    }


def test_dob_accepts_date_objects():
    claims = get_subject_validator().validate({
        "name": "Asha Rao", "pan": "ABCDE1234F", "dob": date(1992, 3, 4)
    })

    assert claims["dob"] == "1992-03-04"


@pytest.mark.parametrize("dob", ["1992-02-30", "1992/03/04", "", None])
def test_invalid_dob(dob):
    with pytest.raises(ValidationError) as exc_info:
        get_subject_validator().validate({"name": "Asha Rao", "pan": "ABCDE1234F", "dob": dob})

    assert exc_info.value.field == "dob"


def test_helpers():
    assert normalize_pan(" abcde1234f") == "ABCDE1234F"
    assert normalize_pan("   ") is None
    assert parse_dob("2000-01-01") == date(2000, 1, 1)
    assert parse_dob("not a date") is None


def test_singleton():
    assert get_subject_validator() is get_subject_validator()
