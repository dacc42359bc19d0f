"""Contact-field validation utilities."""

import re

# Local subscriber numbers: 10 digits, leading 6-9
LOCAL_PHONE_RE = re.compile(r"^[6-9]\d{9}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def strip_country_code(phone: str, country_code: str = "+91") -> str:
    """Remove separators and a leading country-code prefix.

    Args:
        phone: Phone number as typed, e.g. "+91 98765-43210"
        country_code: Fixed prefix to strip, e.g. "+91"

    Returns:
        str: The remaining local part, e.g. "9876543210"
    """
    cleaned = re.sub(r"[\s\-\(\)]", "", phone or "")
    if country_code and cleaned.startswith(country_code):
        cleaned = cleaned[len(country_code):]
    return cleaned


def is_valid_local_phone(phone: str, country_code: str = "+91") -> bool:
    """True if the number is a 10-digit local subscriber number once the prefix is stripped."""
    return bool(LOCAL_PHONE_RE.match(strip_country_code(phone, country_code)))


def normalize_phone(phone: str, country_code: str = "+91") -> str:
    """Normalize to the stored form: country code followed by the 10 local digits."""
    return f"{country_code}{strip_country_code(phone, country_code)}"


def is_valid_email(email: str) -> bool:
    """True if the address has a local part, an @ and a dotted domain."""
    return bool(EMAIL_RE.match((email or "").strip()))
