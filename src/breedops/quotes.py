"""Summary: Quote pricing, numbering, and request validation.

Importance: Keeps every price, discount, and timeframe rule in pure functions.
Alternatives: Compute totals in the browser and trust the submitted numbers.
"""

from __future__ import annotations

import math
import random
from datetime import date, datetime, timedelta
from decimal import ROUND_FLOOR, Decimal
from typing import Any, Iterable, Mapping

from breedops import catalog
from breedops.errors import ValidationError
from breedops.models import (
    PAYMENT_TERMS,
    CatalogEntry,
    Quote,
    QuoteLineItem,
    QuoteRequest,
    QuoteTotals,
    SelectionEstimate,
)


DISCOUNT_RATE = Decimal("0.10")
QUOTE_VALIDITY_DAYS = 30
BUSINESS_DAYS_PER_WEEK = 5

# Upper bound in weeks for each human-readable delivery window.
TIMEFRAME_BUCKETS: tuple[tuple[int, str], ...] = (
    (1, "3–5 Business Days"),
    (2, "1–2 Weeks"),
    (3, "2–3 Weeks"),
    (4, "3–4 Weeks"),
    (6, "4–6 Weeks"),
    (8, "6–8 Weeks"),
)
LONGEST_TIMEFRAME = "8–12 Weeks"


def calculate_selection(service_ids: Iterable[str]) -> SelectionEstimate:
    """Summary: Price a set of catalog selections from the package builder.

    Importance: Produces the subtotal, multi-service discount, and delivery window.
    Alternatives: Let the frontend sum prices and guess timelines.
    """

    entries = _resolve_entries(service_ids)
    subtotal = sum(entry.price for entry in entries)
    discount = subtotal // 10 if len(entries) > 1 else 0
    return SelectionEstimate(
        entries=tuple(entries),
        subtotal=subtotal,
        discount=discount,
        total=subtotal - discount,
        estimated_timeframe=estimate_timeframe(entry.id for entry in entries),
    )


def calculate_bundle(bundle_id: str) -> SelectionEstimate:
    """Summary: Price a quick-start bundle at its fixed price.

    Importance: Bundles are already discounted and skip the multi-service rule.
    Alternatives: Treat bundles as plain selections.
    """

    bundle = catalog.get_bundle(bundle_id)
    if bundle is None:
        raise ValidationError(f"Unknown bundle: {bundle_id}")
    entries = _resolve_entries(bundle.components)
    return SelectionEstimate(
        entries=tuple(entries),
        subtotal=bundle.price,
        discount=0,
        total=bundle.price,
        estimated_timeframe=estimate_timeframe(bundle.components),
        bundle_id=bundle.id,
    )


def estimate_timeframe(service_ids: Iterable[str]) -> str:
    """Summary: Convert selected services into a delivery window label.

    Importance: Sets customer expectations alongside the price.
    Alternatives: Quote a single fixed turnaround for every package.
    """

    ids = list(service_ids)
    work_days = sum(catalog.business_days_for(service_id) for service_id in ids)
    buffer_days = max(2, math.ceil(len(ids) * 0.5))
    weeks = math.ceil((work_days + buffer_days) / BUSINESS_DAYS_PER_WEEK)
    for max_weeks, label in TIMEFRAME_BUCKETS:
        if weeks <= max_weeks:
            return label
    return LONGEST_TIMEFRAME


def calculate_line_items(items: Iterable[QuoteLineItem]) -> QuoteTotals:
    """Summary: Compute totals for formal quote line items.

    Importance: Applies the same multi-item discount as the package builder.
    Alternatives: Leave discounts to manual adjustment on the document.
    """

    rows = list(items)
    subtotal = sum((Decimal(str(item.rate)) * item.quantity for item in rows), Decimal("0"))
    discount = Decimal("0")
    if len(rows) > 1:
        discount = (subtotal * DISCOUNT_RATE).to_integral_value(rounding=ROUND_FLOOR)
    return QuoteTotals(
        subtotal=float(subtotal),
        discount=float(discount),
        total=float(subtotal - discount),
    )


def format_rand(amount: float) -> str:
    """Summary: Format an amount as South African Rand.

    Importance: One currency rule for the builder, documents, and emails.
    Alternatives: Use locale-aware formatting per call site.
    """

    sign = "-" if amount < 0 else ""
    return f"{sign}R{abs(amount):,.2f}"


def generate_quote_number(now: datetime | None = None) -> str:
    """Summary: Generate a quote number in the Q-YYYY-NNNN format.

    Importance: Gives customers a short reference for follow-ups.
    Alternatives: Use sequential numbers from a database counter.
    """

    year = (now or datetime.now()).year
    return f"Q-{year}-{random.randint(1000, 9999)}"


def build_quote(request: QuoteRequest, now: datetime | None = None) -> Quote:
    """Summary: Number, date, and price a validated quote request.

    Importance: Produces the immutable input for rendering and email.
    Alternatives: Let the template compute dates and totals.
    """

    moment = now or datetime.now()
    issue_date = moment.date()
    return Quote(
        number=generate_quote_number(moment),
        issue_date=issue_date,
        valid_until=issue_date + timedelta(days=QUOTE_VALIDITY_DAYS),
        request=request,
        totals=calculate_line_items(request.items),
    )


def parse_quote_request(payload: Mapping[str, Any]) -> QuoteRequest:
    """Summary: Validate a quote form payload into a QuoteRequest.

    Importance: Rejects incomplete customers and invalid rows before any work is done.
    Alternatives: Rely on the form's client-side validation only.
    """

    customer_name = _text(payload.get("customerName"))
    customer_email = _text(payload.get("customerEmail"))
    project_name = _text(payload.get("projectName"))
    contact_person = _text(payload.get("contactPerson"))
    if not (customer_name and customer_email and project_name and contact_person):
        raise ValidationError(
            "Customer name, email, project name, and contact person are required."
        )
    if any(character.isspace() for character in customer_email):
        raise ValidationError("Customer email must be a single address.")

    raw_items = payload.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one quote item is required.")
    items = tuple(_parse_item(raw, position) for position, raw in enumerate(raw_items, start=1))

    payment_terms = _text(payload.get("paymentTerms")) or "Net 30"
    if payment_terms not in PAYMENT_TERMS:
        raise ValidationError(f"Payment terms must be one of: {', '.join(PAYMENT_TERMS)}.")

    return QuoteRequest(
        customer_name=customer_name,
        customer_email=customer_email,
        project_name=project_name,
        contact_person=contact_person,
        items=items,
        payment_terms=payment_terms,
        customer_company=_text(payload.get("customerCompany")),
        customer_address=_text(payload.get("customerAddress")),
        customer_phone=_text(payload.get("customerPhone")),
        notes=_text(payload.get("notes")),
    )


def _parse_item(raw: Any, position: int) -> QuoteLineItem:
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Invalid quote item {position}: expected an object.")
    name = _text(raw.get("name"))
    if not name:
        raise ValidationError(f"Invalid quote item {position}: name is required.")
    quantity = _number(raw.get("quantity", 1))
    if quantity is None or quantity <= 0 or quantity != int(quantity):
        raise ValidationError(
            f"Invalid quote item {position} ({name}): quantity must be a whole number above zero."
        )
    rate = _number(raw.get("rate"))
    if rate is None or rate <= 0:
        raise ValidationError(
            f"Invalid quote item {position} ({name}): rate must be greater than zero."
        )
    return QuoteLineItem(
        id=_text(raw.get("id")) or str(position),
        name=name,
        description=_text(raw.get("description")),
        quantity=int(quantity),
        rate=rate,
    )


def _resolve_entries(service_ids: Iterable[str]) -> list[CatalogEntry]:
    entries: list[CatalogEntry] = []
    seen: set[str] = set()
    for service_id in service_ids:
        if service_id in seen:
            continue
        entry = catalog.get_entry(service_id)
        if entry is None:
            raise ValidationError(f"Unknown service: {service_id}")
        seen.add(service_id)
        entries.append(entry)
    return entries


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number
