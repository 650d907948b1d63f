"""
Quotation entry and sharing.

build_quotation_record() validates a create payload and returns the record
to insert. The total is recomputed from the line items; a client-supplied
totalAmount that disagrees is rejected rather than trusted.

The share helpers build the WhatsApp link a rider sends to the customer.
"""

import math
import re
from datetime import datetime, timezone
from urllib.parse import quote

from inventory_portal.core.db import is_valid_id, to_object_id
from inventory_portal.forms.quotation_data import items_subtotal, quotation_number
from inventory_portal.forms.quotation_html import COMPANY, format_date, format_pkr

REQUIRED_FIELDS = ("customerName", "customerPhone", "customerAddress")
TOTAL_TOLERANCE = 0.005


class QuotationValidationError(ValueError):
    pass


def _is_number(v) -> bool:
    """Finite int or float; bools and NaN/Infinity are rejected."""
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def _parse_item(n: int, raw) -> dict:
    if not isinstance(raw, dict):
        raise QuotationValidationError(f"Item {n}: must be an object")
    ref = raw.get("productId")
    if not is_valid_id(ref):
        raise QuotationValidationError(f"Item {n}: invalid productId")
    qty = raw.get("quantity")
    if not _is_number(qty) or int(qty) != qty or qty <= 0:
        raise QuotationValidationError(f"Item {n}: quantity must be a positive integer")
    price = raw.get("price")
    if not _is_number(price) or price < 0:
        raise QuotationValidationError(f"Item {n}: price must be a non-negative number")
    return {"productId": to_object_id(ref), "quantity": int(qty), "price": price}


def build_quotation_record(payload: dict, actor: dict, now: datetime = None) -> dict:
    """Validated quotation record ready for insert. Raises QuotationValidationError."""
    payload = payload or {}
    missing = [f for f in REQUIRED_FIELDS if not str(payload.get(f) or "").strip()]
    if missing:
        raise QuotationValidationError(f"Missing required fields: {', '.join(missing)}")

    raw_items = payload.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise QuotationValidationError("At least one item is required")
    items = [_parse_item(n, raw) for n, raw in enumerate(raw_items, start=1)]

    total = items_subtotal(items)
    claimed = payload.get("totalAmount")
    if claimed is not None:
        if not _is_number(claimed) or abs(claimed - total) > TOTAL_TOLERANCE:
            raise QuotationValidationError(
                f"totalAmount {claimed!r} does not match line items ({total})")

    # riders always quote for themselves; managers may assign a rider
    rider = payload.get("riderId")
    if actor.get("role") == "manager" and is_valid_id(rider):
        rider_id = to_object_id(rider)
    else:
        rider_id = to_object_id(actor["id"])

    return {
        "riderId": rider_id,
        "customerName": str(payload["customerName"]).strip(),
        "customerPhone": str(payload["customerPhone"]).strip(),
        "customerAddress": str(payload["customerAddress"]).strip(),
        "items": items,
        "totalAmount": total,
        "status": "pending",
        "createdAt": now or datetime.now(timezone.utc),
    }


# ═══════════════════════════════════════════════════════════════════════════════
# Sharing
# ═══════════════════════════════════════════════════════════════════════════════

def phone_for_whatsapp(phone: str) -> str:
    """Digits only, in 92XXXXXXXXXX form."""
    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith("92"):
        return digits
    if digits.startswith("0"):
        return "92" + digits[1:]
    return "92" + digits


def whatsapp_message(quotation: dict, quotation_url: str) -> str:
    return "\n".join([
        "*Quotation Ready*",
        "",
        f"Hello {quotation.get('customerName', '')}!",
        "",
        "Your quotation is ready for review:",
        "",
        f"*Quotation #{quotation_number(quotation)}*",
        f"*Total Amount: {format_pkr(quotation.get('totalAmount'))}*",
        f"*Date: {format_date(quotation.get('createdAt'))}*",
        f"*Items: {len(quotation.get('items') or [])} item(s)*",
        "",
        "*View & Download:*",
        quotation_url,
        "",
        "For any questions, feel free to contact us.",
        "",
        f"Thank you for choosing {COMPANY['name']}!",
    ])


def whatsapp_link(quotation: dict, quotation_url: str) -> str:
    phone = phone_for_whatsapp(quotation.get("customerPhone", ""))
    return f"https://wa.me/{phone}?text={quote(whatsapp_message(quotation, quotation_url))}"
