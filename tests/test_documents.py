"""Summary: Tests for quote document HTML and rendering glue.

Importance: The document is the artifact customers receive.
Alternatives: Compare rendered PDFs byte for byte.
"""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path

import pytest

from breedops.documents import (
    VAT_DISCLAIMER,
    RenderOptions,
    build_quote_html,
    load_logo_data_uri,
    render_with_timeout,
)
from breedops.errors import RenderError
from breedops.quotes import build_quote, parse_quote_request
from fakes import FakeRenderer


def _quote(**overrides: object):
    payload: dict[str, object] = {
        "customerName": "Mokoena Holdings",
        "customerEmail": "thandi@mokoena.co.za",
        "projectName": "Brand refresh",
        "contactPerson": "Thandi Mokoena",
        "notes": "Deposit of 50% required.",
        "items": [
            {"name": "Logo design", "description": "Premium logo", "quantity": 1, "rate": 1000},
            {"name": "Business cards", "description": "Print ready", "quantity": 2, "rate": 500},
        ],
    }
    payload.update(overrides)
    return build_quote(parse_quote_request(payload), datetime(2026, 3, 1))


class SlowRenderer(FakeRenderer):
    def render(self, html: str, options: RenderOptions) -> bytes:
        time.sleep(0.5)
        return b"%PDF late"


def test_quote_html_contains_totals_and_disclaimer() -> None:
    """Summary: Verify the document shows totals, dates, and the VAT disclaimer.

    Importance: The disclaimer text is a legal requirement.
    Alternatives: Check the PDF text after rendering.
    """

    quote = _quote()
    html = build_quote_html(quote)
    assert quote.number in html
    assert "01 March 2026" in html
    assert "31 March 2026" in html
    assert "R2,000.00" in html
    assert "-R200.00" in html
    assert "R1,800.00" in html
    assert VAT_DISCLAIMER in html
    assert "Deposit of 50% required." in html


def test_single_item_quote_omits_discount_row() -> None:
    quote = _quote(items=[{"name": "Logo", "quantity": 1, "rate": 1000}])
    assert "Multi-service discount" not in build_quote_html(quote)


def test_quote_html_escapes_customer_input() -> None:
    quote = _quote(customerName="<script>alert(1)</script>")
    html = build_quote_html(quote)
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_quote_html_is_deterministic() -> None:
    quote = _quote()
    assert build_quote_html(quote, "data:image/png;base64,AAAA") == build_quote_html(
        quote, "data:image/png;base64,AAAA"
    )


def test_logo_is_loaded_as_data_uri(tmp_path: Path) -> None:
    logo = tmp_path / "logo.png"
    logo.write_bytes(b"\x89PNG fake")
    uri = load_logo_data_uri(str(logo))
    assert uri is not None
    assert uri.startswith("data:image/png;base64,")
    assert load_logo_data_uri(str(tmp_path / "missing.png")) is None
    assert load_logo_data_uri("") is None


def test_render_with_timeout_returns_document() -> None:
    renderer = FakeRenderer()
    document = render_with_timeout(renderer, "<html></html>", RenderOptions(), 5)
    assert document.startswith(b"%PDF")
    assert renderer.calls[0][1] == RenderOptions(format="A4", margins="20mm")


def test_render_timeout_raises_render_error() -> None:
    with pytest.raises(RenderError) as excinfo:
        render_with_timeout(SlowRenderer(), "<html></html>", RenderOptions(), 0.05)
    assert str(excinfo.value) == "timeout"


def test_render_failure_raises_render_error() -> None:
    renderer = FakeRenderer(error=OSError("fonts missing"))
    with pytest.raises(RenderError):
        render_with_timeout(renderer, "<html></html>", RenderOptions(), 5)


def test_empty_document_is_an_error() -> None:
    with pytest.raises(RenderError):
        render_with_timeout(FakeRenderer(document=b""), "<html></html>", RenderOptions(), 5)
