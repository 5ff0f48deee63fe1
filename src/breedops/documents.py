"""Summary: Quote document HTML and PDF rendering.

Importance: Turns a priced quote into the document customers receive.
Alternatives: Generate PDFs with a drawing API instead of HTML.
"""

from __future__ import annotations

import base64
import concurrent.futures
import functools
import logging
import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, select_autoescape

from breedops.errors import RenderError
from breedops.models import Quote
from breedops.quotes import format_rand


logger = logging.getLogger(__name__)

COMPANY_NAME = "Breed Industries"
COMPANY_EMAIL = "info@thebreed.co.za"
COMPANY_PHONE = "+27 60 496 4105"
COMPANY_WEBSITE = "www.thebreed.co.za"

VAT_DISCLAIMER = (
    "Breed Industries is not a registered VAT vendor. "
    "No VAT has been charged on this quotation."
)

QUOTE_TERMS = (
    "This quotation is valid for 30 days from the issue date.",
    "Work commences once the quotation is accepted in writing and the agreed deposit is received.",
    "Timelines start once all required documents and content have been supplied.",
    "Third-party fees (CIPC, SARS, printing, hosting) are passed through at cost unless stated.",
)

QUOTE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Quote {{ quote.number }}</title>
<style>
  body { font-family: Helvetica, Arial, sans-serif; color: #1a1a1a; font-size: 11pt; }
  header { display: flex; justify-content: space-between; border-bottom: 2px solid #c9a227; }
  header img { max-height: 60px; }
  h1 { font-size: 20pt; margin: 0 0 4px 0; }
  table.items { width: 100%; border-collapse: collapse; margin-top: 16px; }
  table.items th { background: #111; color: #fff; text-align: left; padding: 6px; }
  table.items td { border-bottom: 1px solid #ddd; padding: 6px; vertical-align: top; }
  .num { text-align: right; white-space: nowrap; }
  .totals { margin-top: 12px; width: 40%; margin-left: auto; }
  .totals td { padding: 4px 6px; }
  .grand td { font-weight: bold; border-top: 2px solid #111; }
  .vat { margin-top: 16px; font-weight: bold; }
  footer { margin-top: 32px; font-size: 9pt; color: #555; border-top: 1px solid #ddd; }
</style>
</head>
<body>
<header>
  <div>
    {% if logo %}<img src="{{ logo }}" alt="{{ company.name }}">{% endif %}
    <h1>QUOTATION</h1>
    <div>{{ company.name }}</div>
  </div>
  <div>
    <div><strong>Quote #:</strong> {{ quote.number }}</div>
    <div><strong>Date:</strong> {{ quote.issue_date.strftime('%d %B %Y') }}</div>
    <div><strong>Valid until:</strong> {{ quote.valid_until.strftime('%d %B %Y') }}</div>
  </div>
</header>

<section class="customer">
  <h2>Prepared for</h2>
  <div>{{ request.customer_name }}</div>
  {% if request.customer_company %}<div>{{ request.customer_company }}</div>{% endif %}
  {% if request.customer_address %}<div>{{ request.customer_address }}</div>{% endif %}
  <div>{{ request.customer_email }}</div>
  {% if request.customer_phone %}<div>{{ request.customer_phone }}</div>{% endif %}
  <p>
    <strong>Project:</strong> {{ request.project_name }}<br>
    <strong>Contact person:</strong> {{ request.contact_person }}<br>
    <strong>Payment terms:</strong> {{ request.payment_terms }}
  </p>
</section>

<table class="items">
  <thead>
    <tr><th>Item</th><th>Description</th><th class="num">Qty</th><th class="num">Rate</th><th class="num">Amount</th></tr>
  </thead>
  <tbody>
  {% for item in request.items %}
    <tr>
      <td>{{ item.name }}</td>
      <td>{{ item.description }}</td>
      <td class="num">{{ item.quantity }}</td>
      <td class="num">{{ item.rate | rand }}</td>
      <td class="num">{{ item.amount | rand }}</td>
    </tr>
  {% endfor %}
  </tbody>
</table>

<table class="totals">
  <tr><td>Subtotal</td><td class="num">{{ quote.totals.subtotal | rand }}</td></tr>
  {% if quote.totals.discount > 0 %}
  <tr><td>Multi-service discount (10%)</td><td class="num">-{{ quote.totals.discount | rand }}</td></tr>
  {% endif %}
  <tr class="grand"><td>Total</td><td class="num">{{ quote.totals.total | rand }}</td></tr>
</table>

<p class="vat">{{ vat_disclaimer }}</p>

{% if request.notes %}
<section class="notes">
  <h2>Notes</h2>
  <p>{{ request.notes }}</p>
</section>
{% endif %}

<section class="terms">
  <h2>Terms &amp; Conditions</h2>
  <ol>
  {% for term in terms %}<li>{{ term }}</li>{% endfor %}
  </ol>
</section>

<footer>
  {{ company.name }} | {{ company.email }} | {{ company.phone }} | {{ company.website }}
</footer>
</body>
</html>
"""


_environment = Environment(autoescape=select_autoescape(default=True, default_for_string=True))
_environment.filters["rand"] = format_rand
_quote_template = _environment.from_string(QUOTE_TEMPLATE)


@dataclass(frozen=True)
class RenderOptions:
    """Page settings passed to the rendering capability."""

    format: str = "A4"
    margins: str = "20mm"


class DocumentRenderer(ABC):
    """Summary: Abstract interface for HTML-to-PDF rendering.

    Importance: Keeps the rendering engine replaceable and testable.
    Alternatives: Call a headless browser directly from the quote service.
    """

    @abstractmethod
    def render(self, html: str, options: RenderOptions) -> bytes:
        """Summary: Render HTML into a binary document.

        Importance: Produces the PDF attached to quote emails.
        Alternatives: Return a file path instead of bytes.
        """


class WeasyPrintRenderer(DocumentRenderer):
    """Summary: Renders HTML to PDF with WeasyPrint.

    Importance: Produces print-quality quotes without a browser process.
    Alternatives: Drive headless Chromium through Playwright.
    """

    def render(self, html: str, options: RenderOptions) -> bytes:
        from weasyprint import CSS, HTML

        page_css = CSS(string=f"@page {{ size: {options.format}; margin: {options.margins}; }}")
        return HTML(string=html).write_pdf(stylesheets=[page_css])


@functools.lru_cache(maxsize=None)
def load_logo_data_uri(path: str) -> str | None:
    """Summary: Read and encode the company logo once.

    Importance: Avoids re-reading the logo for every rendered quote.
    Alternatives: Reference the logo by public URL from the document.
    """

    if not path:
        return None
    logo_path = Path(path)
    if not logo_path.exists():
        logger.warning("Logo file %s not found; quotes render without a logo.", path)
        return None
    mime_type = mimetypes.guess_type(logo_path.name)[0] or "image/png"
    encoded = base64.b64encode(logo_path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def build_quote_html(quote: Quote, logo: str | None = None) -> str:
    """Summary: Build the deterministic HTML for a quote document.

    Importance: Same quote input always yields the same document content.
    Alternatives: Assemble HTML with string concatenation.
    """

    return _quote_template.render(
        quote=quote,
        request=quote.request,
        logo=logo,
        terms=QUOTE_TERMS,
        vat_disclaimer=VAT_DISCLAIMER,
        company={
            "name": COMPANY_NAME,
            "email": COMPANY_EMAIL,
            "phone": COMPANY_PHONE,
            "website": COMPANY_WEBSITE,
        },
    )


def render_with_timeout(
    renderer: DocumentRenderer,
    html: str,
    options: RenderOptions,
    timeout_seconds: float,
) -> bytes:
    """Summary: Run a renderer with an upper bound on wall-clock time.

    Importance: A hung rendering engine must fail the quote instead of blocking it.
    Alternatives: Rely on the engine's own timeouts, when it has any.
    """

    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    future = executor.submit(renderer.render, html, options)
    try:
        document = future.result(timeout=timeout_seconds)
    except concurrent.futures.TimeoutError as exc:
        raise RenderError("timeout") from exc
    except Exception as exc:
        raise RenderError(f"Failed to render quote document: {exc}") from exc
    finally:
        executor.shutdown(wait=False)
    if not document:
        raise RenderError("Renderer returned an empty document")
    return document
