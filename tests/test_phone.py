"""Summary: Tests for phone number normalization.

Importance: Both channels reject numbers that are not in international form.
Alternatives: Rely on provider error messages.
"""

from __future__ import annotations

import pytest

from breedops.phone import normalize_phone


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("082 123 4567", "27821234567"),
        ("0821234567", "27821234567"),
        ("821234567", "27821234567"),
        ("+27 82 123 4567", "27821234567"),
        ("27821234567", "27821234567"),
        ("271234567", "271234567"),
        ("", ""),
    ],
)
def test_normalize_phone(raw: str, expected: str) -> None:
    assert normalize_phone(raw) == expected
