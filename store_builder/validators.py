from __future__ import annotations

import re
from typing import Any

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

ACCEPTED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")


def _strip_separators(phone: str) -> str:
    return re.sub(r"[\s-]", "", phone or "")


def validate_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def validate_phone(phone: str, country_code: str = "234") -> bool:
    cc = re.escape(country_code)
    return bool(re.fullmatch(rf"(\+?{cc}|0)?[0-9]{{10,11}}", _strip_separators(phone)))


def format_phone_number(phone: str, country_code: str = "234", local_prefix: str = "0") -> str:
    cleaned = _strip_separators(phone)
    if cleaned.startswith(f"+{country_code}"):
        return cleaned
    if cleaned.startswith(country_code) and len(cleaned) > 11:
        return f"+{cleaned}"
    if local_prefix and cleaned.startswith(local_prefix):
        return f"+{country_code}{cleaned[len(local_prefix):]}"
    return f"+{country_code}{cleaned}"


def generate_subdomain(store_name: str) -> str:
    slug = (store_name or "").lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def is_valid_time(value: str) -> bool:
    return bool(_TIME_RE.match(value or ""))


def format_time(value: str) -> str:
    """Render a 24h ``HH:MM`` value as ``h:MM AM/PM``."""
    hours, minutes = value.split(":", 1)
    hour = int(hours)
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minutes} {suffix}"


def validate_image_file(image: Any, max_size_mb: int = 5) -> str | None:
    content_type = str(getattr(image, "content_type", "") or "").lower()
    if content_type not in ACCEPTED_IMAGE_TYPES:
        accepted = ", ".join(t.split("/", 1)[1] for t in ACCEPTED_IMAGE_TYPES)
        return f"Invalid file format. Accepted formats: {accepted}"
    size = len(getattr(image, "data", b"") or b"")
    if size == 0:
        return "Please select an image file"
    if size > max_size_mb * 1024 * 1024:
        return f"File size must be less than {max_size_mb}MB"
    return None
