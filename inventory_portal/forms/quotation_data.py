"""
Quotation data assembly: load a quotation and resolve each line item's
display fields from the live product catalog.

Line items keep their snapshotted unit price; only the product name and
product code are looked up at render time. A product that no longer exists
degrades that single line to the sentinel values.
"""

import re
import logging
from concurrent.futures import ThreadPoolExecutor

from inventory_portal.core.db import PRODUCTS, QUOTATIONS, is_valid_id

log = logging.getLogger("portal.quotation_data")

UNKNOWN_PRODUCT_NAME = "Unknown Product"
UNKNOWN_PRODUCT_CODE = "N/A"

MAX_LOOKUP_WORKERS = 8


class InvalidQuotationId(ValueError):
    """Identifier is not a syntactically valid store id."""


class QuotationNotFound(LookupError):
    """Identifier is valid but resolves to no quotation."""


def enrich_item(store, item: dict) -> dict:
    """Copy of item with productName/productId resolved from the catalog.

    The original product reference is preserved under productRef. Both
    display fields come from the same product record or both fall back
    to the sentinels.
    """
    ref = item.get("productId")
    product = store.find_one(PRODUCTS, ref) if is_valid_id(ref) else None

    enriched = dict(item)
    enriched["productRef"] = str(ref) if ref is not None else None
    if product and product.get("name") and product.get("productId"):
        enriched["productName"] = product["name"]
        enriched["productId"] = product["productId"]
    else:
        log.info("Line item references missing or incomplete product %s", ref)
        enriched["productName"] = UNKNOWN_PRODUCT_NAME
        enriched["productId"] = UNKNOWN_PRODUCT_CODE
    return enriched


def enrich_items(store, items: list) -> list:
    """Resolve every line item concurrently, preserving order."""
    if not items:
        return []
    workers = min(MAX_LOOKUP_WORKERS, len(items))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="enrich") as pool:
        return list(pool.map(lambda it: enrich_item(store, it), items))


def load_quotation(store, quotation_id: str) -> dict:
    if not is_valid_id(quotation_id):
        raise InvalidQuotationId(quotation_id)
    quotation = store.find_one(QUOTATIONS, quotation_id)
    if quotation is None:
        raise QuotationNotFound(quotation_id)
    return quotation


def assemble_quotation(store, quotation_id: str):
    """Return (quotation, enriched_items) for an id.

    Raises InvalidQuotationId before touching the store for malformed ids,
    QuotationNotFound when the id resolves to nothing.
    """
    quotation = load_quotation(store, quotation_id)
    items = enrich_items(store, quotation.get("items") or [])
    return quotation, items


# ═══════════════════════════════════════════════════════════════════════════════
# Derived fields
# ═══════════════════════════════════════════════════════════════════════════════

def quotation_number(quotation: dict) -> str:
    """Last 8 characters of the id, uppercased."""
    return str(quotation.get("_id", ""))[-8:].upper()


def quotation_filename(customer_name: str, quotation_id: str) -> str:
    """quotation-<name with whitespace runs as hyphens>-<last 6 of id, upper>.pdf"""
    name = re.sub(r"\s+", "-", customer_name or "")
    return f"quotation-{name}-{str(quotation_id)[-6:].upper()}.pdf"


def line_total(item: dict):
    return (item.get("quantity") or 0) * (item.get("price") or 0)


def items_subtotal(items: list):
    return sum(line_total(it) for it in items)
