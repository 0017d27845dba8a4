import pytest

from spooky_styles.utils import ValidationUtils


def test_normalize_email_lowercases():
    assert ValidationUtils.normalize_email("Casey.Customer@GMAIL.com") == "casey.customer@gmail.com"


def test_normalize_email_rejects_garbage():
    with pytest.raises(ValueError):
        ValidationUtils.normalize_email("casey at gmail")


@pytest.mark.parametrize("value,expected", [
    ("#8B0000", True),
    ("#8b0000", True),
    ("8B0000", False),
    ("#8B000", False),
    (None, False),
])
def test_validate_hex_color(value, expected):
    assert ValidationUtils.validate_hex_color(value) is expected


@pytest.mark.parametrize("value,expected", [
    ("guest-session-0001", True),
    ("short", False),
    ("has spaces in it", False),
    ("x" * 129, False),
])
def test_validate_session_id(value, expected):
    assert ValidationUtils.validate_session_id(value) is expected


def test_validate_price_cents_bounds():
    assert ValidationUtils.validate_price_cents(1)
    assert not ValidationUtils.validate_price_cents(0)
    assert not ValidationUtils.validate_price_cents(100_000_000)


def test_validate_uuid():
    assert ValidationUtils.validate_uuid("6f1c0e7e-4b1a-4c8e-9c59-8d6f9a6a1b2c")
    assert not ValidationUtils.validate_uuid("not-a-uuid")
