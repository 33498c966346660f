import pytest

from app.shared.validators import (
    validate_email,
    validate_phone,
    validate_registration_no,
    validate_time_of_day,
)


def test_registration_no_is_normalized():
    assert validate_registration_no(" bmdc123456 ") == "BMDC123456"


@pytest.mark.parametrize("value", ["", None, "BMDC12345", "BMDC1234567", "BMDC-12345", "x; DROP TA"])
def test_registration_no_rejects_malformed(value):
    with pytest.raises(ValueError):
        validate_registration_no(value)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("01711-000001", "01711000001"),
        ("(017) 11 000 001", "01711000001"),
        ("+880 1711 000001", "+8801711000001"),
    ],
)
def test_phone_is_normalized(raw, expected):
    assert validate_phone(raw) == expected


@pytest.mark.parametrize("value", ["12345", "1" * 16])
def test_phone_rejects_bad_length(value):
    with pytest.raises(ValueError):
        validate_phone(value)


def test_email_is_lowercased():
    assert validate_email(" Karim@Example.COM ") == "karim@example.com"


def test_email_rejects_garbage():
    with pytest.raises(ValueError):
        validate_email("not-an-email")


@pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", ""])
def test_time_of_day_rejects_bad_values(value):
    with pytest.raises(ValueError):
        validate_time_of_day(value)


def test_time_of_day_accepts_hh_mm():
    assert validate_time_of_day("09:30") == "09:30"
