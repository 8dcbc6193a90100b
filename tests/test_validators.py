from __future__ import annotations

import pytest

from store_builder.state import ImageFile
from store_builder.validators import (
    format_phone_number,
    format_time,
    generate_subdomain,
    is_valid_time,
    validate_email,
    validate_image_file,
    validate_phone,
)


@pytest.mark.parametrize("email", ["ada@example.com", "a.b@c.io"])
def test_validate_email_accepts(email):
    assert validate_email(email)


@pytest.mark.parametrize("email", ["ada@", "ada.example.com", "ada @x.com", ""])
def test_validate_email_rejects(email):
    assert not validate_email(email)


@pytest.mark.parametrize("phone", ["08012345678", "+2348012345678", "2348012345678", "0801 234-5678"])
def test_validate_phone_accepts(phone):
    assert validate_phone(phone)


@pytest.mark.parametrize("phone", ["12345", "0801234567890123", "phone", ""])
def test_validate_phone_rejects(phone):
    assert not validate_phone(phone)


def test_format_phone_number():
    assert format_phone_number("08012345678") == "+2348012345678"
    assert format_phone_number("+2348012345678") == "+2348012345678"
    assert format_phone_number("2348012345678") == "+2348012345678"
    assert format_phone_number("8012345678") == "+2348012345678"
    assert format_phone_number("0801 234 5678") == "+2348012345678"


def test_format_phone_number_other_country():
    assert validate_phone("0244123456", country_code="233")
    assert format_phone_number("0244123456", country_code="233") == "+233244123456"


def test_generate_subdomain():
    assert generate_subdomain("Ada's Bakery") == "adas-bakery"
    assert generate_subdomain("  Hello   World  ") == "hello-world"
    assert generate_subdomain("a -- b") == "a-b"
    assert generate_subdomain("-Shop-") == "shop"
    assert generate_subdomain("!!!") == ""


def test_time_helpers():
    assert is_valid_time("07:00")
    assert is_valid_time("23:59")
    assert not is_valid_time("24:00")
    assert not is_valid_time("7:00")
    assert format_time("19:00") == "7:00 PM"
    assert format_time("00:30") == "12:30 AM"
    assert format_time("12:00") == "12:00 PM"


def test_validate_image_file():
    ok = ImageFile(filename="a.webp", content_type="image/webp", data=b"x" * 10)
    assert validate_image_file(ok) is None

    gif = ImageFile(filename="a.gif", content_type="image/gif", data=b"x")
    assert validate_image_file(gif) == "Invalid file format. Accepted formats: jpeg, jpg, png, webp"

    empty = ImageFile(filename="a.png", content_type="image/png", data=b"")
    assert validate_image_file(empty) == "Please select an image file"

    big = ImageFile(filename="a.png", content_type="image/png", data=b"x" * (5 * 1024 * 1024 + 1))
    assert validate_image_file(big) == "File size must be less than 5MB"
    assert validate_image_file(big, max_size_mb=6) is None
