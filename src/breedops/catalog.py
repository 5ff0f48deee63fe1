"""Summary: Service catalog, bundles, and delivery estimates.

Importance: Single source of prices used by the package builder and quotes.
Alternatives: Store services in JSON files outside the codebase.
"""

from __future__ import annotations

from breedops.models import Bundle, CatalogCategory, CatalogEntry


DEFAULT_BUSINESS_DAYS = 3

CATEGORIES: tuple[CatalogCategory, ...] = (
    CatalogCategory(
        id="compliance",
        name="Compliance",
        entries=(
            CatalogEntry(
                "cipc",
                "CIPC Registration",
                550,
                "Complete company registration with CIPC including name reservation and "
                "registration certificate",
            ),
            CatalogEntry(
                "tax",
                "Tax Compliance",
                850,
                "SARS tax registration, income tax number, and initial tax compliance setup",
            ),
            CatalogEntry(
                "bee",
                "BEE Certification",
                250,
                "Basic BEE verification certificate and scorecard for procurement opportunities",
            ),
            CatalogEntry(
                "coid",
                "COID Registration / Letter of Good Standing",
                850,
                "Workplace Compensation Fund registration and annual letter of good standing",
            ),
            CatalogEntry(
                "uif",
                "UIF Registration & Compliance Letter",
                650,
                "Unemployment Insurance Fund registration and compliance documentation",
            ),
            CatalogEntry(
                "annual",
                "CIPC Annual Return",
                450,
                "Annual CIPC return filing to maintain company compliance and good standing",
            ),
        ),
    ),
    CatalogCategory(
        id="branding",
        name="Branding",
        entries=(
            CatalogEntry(
                "logo-basic",
                "Basic Logo Design",
                1500,
                "Professional logo design with 2 initial concepts and 2 revisions, delivered in "
                "multiple formats",
            ),
            CatalogEntry(
                "logo-premium",
                "Premium Logo Design",
                3500,
                "Advanced logo design with 5 concepts, unlimited revisions, brand guidelines, and "
                "complete brand kit",
            ),
            CatalogEntry(
                "brand-guide",
                "Business Branding",
                2500,
                "Comprehensive brand identity guide including color palette, typography, and brand "
                "usage guidelines",
            ),
            CatalogEntry(
                "business-cards",
                "Business Cards (250)",
                800,
                "Professional business card design and printing of 250 high-quality cards with "
                "premium finish",
            ),
            CatalogEntry(
                "marketing-materials",
                "Marketing Materials",
                1200,
                "Custom marketing collateral including brochures, flyers, and promotional "
                "materials design",
            ),
        ),
    ),
    CatalogCategory(
        id="digital",
        name="Digital",
        entries=(
            CatalogEntry(
                "website",
                "Website Development",
                5000,
                "Custom responsive website development with up to 5 pages, CMS integration, and "
                "mobile optimization",
            ),
            CatalogEntry(
                "app",
                "Mobile App Development",
                15000,
                "Native mobile app development for iOS and Android with backend integration and "
                "deployment",
            ),
            CatalogEntry(
                "ecommerce",
                "E-commerce Solutions",
                8000,
                "Full e-commerce platform with product catalog, shopping cart, payment gateway, "
                "and order management",
            ),
            CatalogEntry(
                "seo",
                "SEO & Digital Marketing",
                2500,
                "Search engine optimization, keyword research, and digital marketing strategy setup",
            ),
            CatalogEntry(
                "social",
                "Social Media Management",
                3500,
                "3-month social media management including content creation, posting, and "
                "analytics reporting",
            ),
        ),
    ),
    CatalogCategory(
        id="business-profile",
        name="Business Profile & Documents",
        entries=(
            CatalogEntry(
                "profile-starter",
                "Business Profile - Starter (1-4 Pages)",
                850,
                "Best for startups, small businesses, or basic tender submissions. Simple layout, "
                "design-only, 2-3 revision rounds, print-ready PDF.",
            ),
            CatalogEntry(
                "profile-standard",
                "Business Profile - Standard (5-10 Pages)",
                2500,
                "Best for small to medium businesses. Professional formatting, digital flipbook "
                "formats, higher quality graphics.",
            ),
            CatalogEntry(
                "plan-basic",
                "Business Plan - Basic/Entry-Level",
                1190,
                "Template-based solution suitable for internal strategy or simple needs, using "
                "generic data.",
            ),
            CatalogEntry(
                "plan-comprehensive",
                "Business Plan - Standard/Comprehensive",
                3000,
                "Includes more detail, customized content, and often 3-year financial "
                "projections, ideal for funding applications.",
            ),
        ),
    ),
)

# Working days of effort per service, excluding coordination.
BUSINESS_DAYS: dict[str, int] = {
    "cipc": 5,
    "tax": 5,
    "bee": 3,
    "coid": 7,
    "uif": 5,
    "annual": 3,
    "logo-basic": 5,
    "logo-premium": 10,
    "brand-guide": 7,
    "business-cards": 5,
    "marketing-materials": 7,
    "website": 15,
    "app": 40,
    "ecommerce": 25,
    "seo": 10,
    "social": 20,
    "profile-starter": 5,
    "profile-standard": 10,
    "plan-basic": 5,
    "plan-comprehensive": 12,
}

BUNDLES: tuple[Bundle, ...] = (
    Bundle("launch", "Launch Essentials", 3950, ("cipc", "logo-basic", "business-cards")),
    Bundle("growth", "Growth Momentum", 9800, ("brand-guide", "website", "marketing-materials")),
    Bundle("empire", "Empire Ascend", 18500, ("logo-premium", "brand-guide", "ecommerce", "social")),
)


def all_entries() -> list[CatalogEntry]:
    """Summary: Return every catalog entry across categories.

    Importance: Powers lookups independent of the builder step.
    Alternatives: Search each category on every lookup.
    """

    return [entry for category in CATEGORIES for entry in category.entries]


def _build_index() -> dict[str, CatalogEntry]:
    index: dict[str, CatalogEntry] = {}
    for entry in all_entries():
        if entry.id in index:
            raise ValueError(f"Duplicate catalog id: {entry.id}")
        index[entry.id] = entry
    for bundle in BUNDLES:
        missing = [component for component in bundle.components if component not in index]
        if missing:
            raise ValueError(f"Bundle {bundle.id} references unknown services: {missing}")
    return index


_INDEX = _build_index()


def get_entry(entry_id: str) -> CatalogEntry | None:
    """Summary: Look up a catalog entry by id.

    Importance: Resolves customer selections into priced entries.
    Alternatives: Raise KeyError and let callers handle it.
    """

    return _INDEX.get(entry_id)


def get_bundle(bundle_id: str) -> Bundle | None:
    """Summary: Look up a bundle by id.

    Importance: Resolves quick-start packages into their components.
    Alternatives: Store bundles with the catalog categories.
    """

    for bundle in BUNDLES:
        if bundle.id == bundle_id:
            return bundle
    return None


def business_days_for(entry_id: str) -> int:
    """Return the effort estimate for a service, defaulting for unmapped ids."""

    return BUSINESS_DAYS.get(entry_id, DEFAULT_BUSINESS_DAYS)


def catalog_payload() -> dict[str, object]:
    """Summary: Serialize categories and bundles for API clients.

    Importance: Lets the website render the builder from server-side prices.
    Alternatives: Duplicate prices in the frontend bundle.
    """

    return {
        "categories": [
            {
                "id": category.id,
                "name": category.name,
                "entries": [
                    {
                        "id": entry.id,
                        "name": entry.name,
                        "price": entry.price,
                        "description": entry.description,
                    }
                    for entry in category.entries
                ],
            }
            for category in CATEGORIES
        ],
        "bundles": [
            {
                "id": bundle.id,
                "name": bundle.name,
                "price": bundle.price,
                "components": list(bundle.components),
            }
            for bundle in BUNDLES
        ],
    }
