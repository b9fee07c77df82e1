"""Parsing of free-text commercial terms.

Rates are stored as the brokers type them ("WS 85", "$12.50/mt",
"USD 25,000 PDPR"); analytics and range filters need the number.
"""

import re

_NUMBER = re.compile(r"-?\d[\d,]*(?:\.\d+)?|-?\.\d+")


def first_number(text: str | None) -> float | None:
    """Return the first number in `text`, or None if there is none."""
    if not text:
        return None
    match = _NUMBER.search(text)
    if not match:
        return None
    return float(match.group(0).replace(",", ""))


def percent_change(reference: float | None, value: float | None) -> float | None:
    """(value - reference) / reference * 100, None when undefined."""
    if reference is None or value is None or reference == 0:
        return None
    return (value - reference) / reference * 100
