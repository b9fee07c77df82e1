"""Reusable validators for maritime reference data.

- IMO numbers (7 digits with check digit, optional "IMO" prefix)
- UN/LOCODEs (2-letter country + 3-character location)
- ISO 3166 alpha-2 country codes
- Phone numbers and URLs on company contact cards
"""

import re

PHONE_REGEX = re.compile(r"^\+?[1-9]\d{1,14}$")  # E.164 format
URL_REGEX = re.compile(
    r"^https?://"  # http:// or https://
    r"(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,6}\.?|"  # domain
    r"localhost|"  # localhost
    r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})"  # IP
    r"(?::\d+)?"  # optional port
    r"(?:/?|[/?]\S+)$",
    re.IGNORECASE,
)
IMO_REGEX = re.compile(r"^(?:IMO\s?)?(\d{7})$", re.IGNORECASE)
UNLOCODE_REGEX = re.compile(r"^[A-Z]{2}[A-Z2-9]{3}$")
COUNTRY_CODE_REGEX = re.compile(r"^[A-Z]{2}$")


def validate_imo_number(value: str) -> str:
    """Validate an IMO ship identification number.

    The seventh digit is a check digit: the first six digits weighted
    7..2 and summed, modulo 10.

    Returns:
        The bare 7-digit number

    Raises:
        ValueError: If the format or check digit is wrong
    """
    match = IMO_REGEX.match(value.strip())
    if not match:
        raise ValueError("IMO number must be 7 digits")

    digits = match.group(1)
    checksum = sum(int(d) * w for d, w in zip(digits[:6], range(7, 1, -1)))
    if checksum % 10 != int(digits[6]):
        raise ValueError("Invalid IMO check digit")
    return digits


def validate_unlocode(value: str) -> str:
    value = value.strip().upper().replace(" ", "")
    if not UNLOCODE_REGEX.match(value):
        raise ValueError("UN/LOCODE must be 2 letters followed by 3 characters")
    return value


def validate_country_code(value: str) -> str:
    value = value.strip().upper()
    if not COUNTRY_CODE_REGEX.match(value):
        raise ValueError("Country code must be 2 letters (ISO 3166-1 alpha-2)")
    return value


def validate_phone(value: str) -> str:
    """Validate phone number (E.164 format).

    Raises:
        ValueError: If phone number is invalid
    """
    # Remove spaces and dashes
    value = value.replace(" ", "").replace("-", "")

    if not PHONE_REGEX.match(value):
        raise ValueError(
            "Invalid phone number format (use E.164: +1234567890)"
        )
    return value


def validate_url(value: str) -> str:
    value = value.strip()
    if not URL_REGEX.match(value):
        raise ValueError("Invalid URL format")
    return value
