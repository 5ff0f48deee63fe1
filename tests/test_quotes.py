"""Summary: Tests for package pricing and quote calculations.

Importance: Prices, discounts, and timeframes are what customers see first.
Alternatives: Verify pricing by hand in the browser.
"""

from __future__ import annotations

import itertools
import re
from datetime import date, datetime

import pytest

from breedops.catalog import all_entries
from breedops.errors import ValidationError
from breedops.models import QuoteLineItem
from breedops.quotes import (
    build_quote,
    calculate_bundle,
    calculate_line_items,
    calculate_selection,
    estimate_timeframe,
    format_rand,
    generate_quote_number,
    parse_quote_request,
)


def _quote_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "customerName": "Mokoena Holdings",
        "customerEmail": "thandi@mokoena.co.za",
        "projectName": "Brand refresh",
        "contactPerson": "Thandi Mokoena",
        "items": [
            {"name": "Logo design", "description": "Premium logo", "quantity": 1, "rate": 1000},
            {"name": "Business cards", "description": "Print ready", "quantity": 2, "rate": 500},
        ],
    }
    payload.update(overrides)
    return payload


def test_single_service_has_no_discount() -> None:
    """Summary: Verify one selection is priced without a discount.

    Importance: The multi-service discount must not apply to a single service.
    Alternatives: Compare against a stored estimate snapshot.
    """

    estimate = calculate_selection(["cipc"])
    assert estimate.subtotal == 550
    assert estimate.discount == 0
    assert estimate.total == 550
    assert estimate.estimated_timeframe == "1–2 Weeks"


def test_multiple_services_get_ten_percent_discount() -> None:
    """Summary: Verify two or more selections earn the 10% discount.

    Importance: Encourages bundling and matches the website promise.
    Alternatives: Test only the total.
    """

    estimate = calculate_selection(["cipc", "tax"])
    assert estimate.subtotal == 1400
    assert estimate.discount == 140
    assert estimate.total == 1260
    assert estimate.estimated_timeframe == "2–3 Weeks"


CATALOG_IDS = [entry.id for entry in all_entries()]


@pytest.mark.parametrize("service_ids", [[]] + [[service_id] for service_id in CATALOG_IDS])
def test_selections_of_at_most_one_service_are_never_discounted(service_ids: list[str]) -> None:
    estimate = calculate_selection(service_ids)
    assert estimate.discount == 0
    assert estimate.total == estimate.subtotal


@pytest.mark.parametrize("service_ids", list(itertools.combinations(CATALOG_IDS, 2)))
def test_every_pair_gets_the_floored_discount(service_ids: tuple[str, str]) -> None:
    """Summary: Verify the discount rule for every pair of catalog services.

    Importance: The rule holds for any selection, not just the common ones.
    Alternatives: Check a handful of hand-picked pairs.
    """

    estimate = calculate_selection(service_ids)
    # floor(subtotal * 0.1), stated exactly in integers
    assert estimate.discount * 10 <= estimate.subtotal < (estimate.discount + 1) * 10
    assert estimate.total == estimate.subtotal - estimate.discount
    assert estimate.total >= 0


def test_duplicate_selections_are_ignored() -> None:
    estimate = calculate_selection(["cipc", "cipc"])
    assert [entry.id for entry in estimate.entries] == ["cipc"]
    assert estimate.discount == 0


def test_empty_selection_uses_buffer_only_timeframe() -> None:
    estimate = calculate_selection([])
    assert (estimate.subtotal, estimate.discount, estimate.total) == (0, 0, 0)
    assert estimate.estimated_timeframe == "3–5 Business Days"


def test_unknown_service_is_rejected() -> None:
    with pytest.raises(ValidationError):
        calculate_selection(["cipc", "time-machine"])


def test_long_projects_fall_into_longest_bucket() -> None:
    assert estimate_timeframe(["app", "ecommerce", "social", "website"]) == "8–12 Weeks"


def test_bundle_uses_fixed_price() -> None:
    """Summary: Verify bundles bypass the multi-service discount.

    Importance: Bundle prices are already discounted on the website.
    Alternatives: Recompute bundles from their components.
    """

    estimate = calculate_bundle("launch")
    assert estimate.total == 3950
    assert estimate.discount == 0
    assert estimate.bundle_id == "launch"
    assert estimate.estimated_timeframe == "3–4 Weeks"
    assert estimate.to_dict()["bundleId"] == "launch"


def test_unknown_bundle_is_rejected() -> None:
    with pytest.raises(ValidationError):
        calculate_bundle("galaxy")


def test_line_item_totals_round_trip() -> None:
    """Summary: Verify line item totals and the formatted total.

    Importance: The document total must match the calculated total exactly.
    Alternatives: Only assert on the rendered document.
    """

    totals = calculate_line_items(
        [
            QuoteLineItem(id="1", name="Logo", description="", quantity=1, rate=1000),
            QuoteLineItem(id="2", name="Cards", description="", quantity=2, rate=500),
        ]
    )
    assert (totals.subtotal, totals.discount, totals.total) == (2000, 200, 1800)
    assert format_rand(totals.total) == "R1,800.00"


def test_line_item_discount_is_floored() -> None:
    totals = calculate_line_items(
        [
            QuoteLineItem(id="1", name="A", description="", quantity=1, rate=1005),
            QuoteLineItem(id="2", name="B", description="", quantity=1, rate=10),
        ]
    )
    assert totals.discount == 101
    assert totals.total == 914


def test_single_line_item_has_no_discount() -> None:
    totals = calculate_line_items(
        [QuoteLineItem(id="1", name="A", description="", quantity=3, rate=250)]
    )
    assert totals.discount == 0
    assert totals.total == 750


def test_format_rand_uses_thousands_separator() -> None:
    assert format_rand(3950) == "R3,950.00"
    assert format_rand(0) == "R0.00"
    assert format_rand(1234567.5) == "R1,234,567.50"


def test_quote_number_format() -> None:
    number = generate_quote_number(datetime(2026, 3, 1))
    assert re.fullmatch(r"Q-2026-\d{4}", number)
    assert 1000 <= int(number.rsplit("-", 1)[1]) <= 9999


def test_build_quote_sets_validity_window() -> None:
    request = parse_quote_request(_quote_payload())
    quote = build_quote(request, datetime(2026, 3, 1, 9, 30))
    assert quote.issue_date == date(2026, 3, 1)
    assert quote.valid_until == date(2026, 3, 31)
    assert quote.totals.total == 1800
    assert request.payment_terms == "Net 30"


def test_parse_quote_request_requires_customer_fields() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_quote_request(_quote_payload(contactPerson="  "))
    assert "contact person" in str(excinfo.value)


def test_parse_quote_request_rejects_multi_line_email() -> None:
    with pytest.raises(ValidationError):
        parse_quote_request(_quote_payload(customerEmail="a@x.com\nBcc: b@x.com"))


def test_parse_quote_request_requires_items() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_quote_request(_quote_payload(items=[]))
    assert str(excinfo.value) == "At least one quote item is required."


@pytest.mark.parametrize(
    "item, fragment",
    [
        ({"name": "Logo", "quantity": 0, "rate": 100}, "quantity"),
        ({"name": "Logo", "quantity": 1.5, "rate": 100}, "quantity"),
        ({"name": "Logo", "quantity": 1, "rate": 0}, "rate"),
        ({"name": " ", "quantity": 1, "rate": 100}, "name is required"),
    ],
)
def test_parse_quote_request_rejects_invalid_items(item: dict[str, object], fragment: str) -> None:
    """Summary: Verify invalid line items are rejected with a clear message.

    Importance: Nothing should be rendered or sent for a bad quote.
    Alternatives: Clamp invalid values silently.
    """

    with pytest.raises(ValidationError) as excinfo:
        parse_quote_request(_quote_payload(items=[item]))
    assert fragment in str(excinfo.value)


def test_parse_quote_request_rejects_unknown_payment_terms() -> None:
    with pytest.raises(ValidationError):
        parse_quote_request(_quote_payload(paymentTerms="Net 90"))
