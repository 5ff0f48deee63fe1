"""Summary: Phone number normalization for WhatsApp destinations.

Importance: Both messaging channels address South African numbers the same way.
Alternatives: Use the phonenumbers library for full international parsing.
"""

from __future__ import annotations

import re


SOUTH_AFRICA_COUNTRY_CODE = "27"

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(phone_number: str) -> str:
    """Summary: Convert a local or formatted number into international digits.

    Importance: Providers reject numbers with a trunk prefix or punctuation.
    Alternatives: Require callers to submit E.164 numbers only.
    """

    cleaned = _NON_DIGITS.sub("", phone_number or "")
    if len(cleaned) == 10 and cleaned.startswith("0"):
        return SOUTH_AFRICA_COUNTRY_CODE + cleaned[1:]
    if len(cleaned) == 9 and not cleaned.startswith(SOUTH_AFRICA_COUNTRY_CODE):
        return SOUTH_AFRICA_COUNTRY_CODE + cleaned
    return cleaned
