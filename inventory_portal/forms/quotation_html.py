"""
Quotation HTML Template
=======================
Self-contained, inline-styled HTML for a quotation. Used as the input of the
browser rendering strategies and served as-is for in-browser preview.

Sections, top to bottom:
  - branded header with quotation number and status badge
  - Bill To / Quotation Details two-column panel
  - items table (code, description, qty, unit price, line total), zebra rows
  - totals: subtotal, Tax (0%), grand total
  - six-line terms & conditions block
  - branded footer with contact details

Pure function of (quotation, enriched items): no clock reads, no I/O.
"""

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from html import escape

from inventory_portal.forms.quotation_data import line_total, quotation_number

# ═══════════════════════════════════════════════════════════════════════════════
# COMPANY INFO
# ═══════════════════════════════════════════════════════════════════════════════
COMPANY = {
    "name":     "Inventory Portal",
    "tagline":  "Professional Inventory & Quotation Management",
    "email":    "info@inventoryportal.com",
    "phone":    "+92-300-1234567",
    "website":  "www.inventoryportal.com",
    "thanks":   "Thank you for your business!",
}

TERMS = (
    "This quotation is valid for 30 days from the date of issue.",
    "Prices are subject to change without prior notice.",
    "Payment terms: 50% advance, 50% on delivery.",
    "Delivery time: 7-14 business days after order confirmation.",
    "All prices are in Pakistani Rupees (PKR).",
    "Returns are accepted within 7 days of delivery in original condition.",
)

VALIDITY_DAYS = 30
TAX_RATE_LABEL = "Tax (0%)"
CURRENCY = "PKR"


# ═══════════════════════════════════════════════════════════════════════════════
# FORMATTERS - shared with the PDF strategies
# ═══════════════════════════════════════════════════════════════════════════════

def round_amount(value) -> int:
    """Round half-up to the nearest whole rupee."""
    try:
        d = Decimal(str(value if value is not None else 0))
    except InvalidOperation:
        d = Decimal(0)
    if not d.is_finite():
        d = Decimal(0)
    return int(d.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_pkr(value) -> str:
    """2000 → 'PKR 2,000'; 1234.5 → 'PKR 1,235'."""
    return f"{CURRENCY} {round_amount(value):,}"


def _as_datetime(value):
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def format_date(value) -> str:
    dt = _as_datetime(value)
    return dt.strftime("%b %d, %Y") if dt else ""


def valid_until(created_at) -> str:
    dt = _as_datetime(created_at)
    return (dt + timedelta(days=VALIDITY_DAYS)).strftime("%b %d, %Y") if dt else ""


def quotation_totals(quotation: dict) -> dict:
    """Subtotal and grand total are the stored totalAmount; tax is always 0."""
    total = quotation.get("totalAmount") or 0
    return {
        "subtotal": format_pkr(total),
        "tax": format_pkr(0),
        "grand_total": format_pkr(total),
    }


def status_of(quotation: dict) -> str:
    return str(quotation.get("status") or "pending").lower()


# ═══════════════════════════════════════════════════════════════════════════════
# STYLES
# ═══════════════════════════════════════════════════════════════════════════════

_CSS = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body { font-family: 'Arial', sans-serif; line-height: 1.6; color: #333; background: #fff; }
.container { max-width: 800px; margin: 0 auto; padding: 40px; }
.header { text-align: center; margin-bottom: 40px; border-bottom: 3px solid #2563eb; padding-bottom: 20px; }
.company-name { font-size: 32px; font-weight: bold; color: #2563eb; margin-bottom: 10px; }
.company-tagline { font-size: 16px; color: #666; margin-bottom: 20px; }
.quotation-title { font-size: 28px; font-weight: bold; color: #1e3a8a; margin-bottom: 10px; }
.quotation-number { font-size: 16px; color: #666; background: #f3f4f6; padding: 8px 16px; border-radius: 20px; display: inline-block; }
.info-section { display: flex; justify-content: space-between; margin-bottom: 40px; gap: 40px; }
.info-block { flex: 1; }
.info-title { font-size: 18px; font-weight: bold; color: #2563eb; margin-bottom: 15px; border-bottom: 2px solid #e5e7eb; padding-bottom: 5px; }
.info-item { margin-bottom: 8px; display: flex; }
.info-label { font-weight: bold; color: #374151; min-width: 80px; }
.info-value { color: #6b7280; }
.items-section { margin-bottom: 40px; }
.items-title { font-size: 20px; font-weight: bold; color: #1e3a8a; margin-bottom: 20px; text-align: center; }
.items-table { width: 100%; border-collapse: collapse; margin-bottom: 20px; box-shadow: 0 2px 8px rgba(0,0,0,0.1); border-radius: 8px; overflow: hidden; }
.items-table th { background: linear-gradient(135deg, #2563eb, #1e3a8a); color: white; padding: 15px 12px; text-align: left; font-weight: bold; font-size: 14px; }
.items-table td { padding: 12px; border-bottom: 1px solid #e5e7eb; font-size: 14px; }
.items-table tr:nth-child(even) { background-color: #f9fafb; }
.text-right { text-align: right; }
.text-center { text-align: center; }
.total-section { margin-top: 30px; text-align: right; }
.total-row { display: flex; justify-content: flex-end; margin-bottom: 10px; font-size: 16px; }
.total-label { font-weight: bold; color: #374151; min-width: 150px; text-align: right; margin-right: 20px; }
.total-value { color: #6b7280; min-width: 120px; text-align: right; }
.grand-total { border-top: 2px solid #2563eb; padding-top: 15px; margin-top: 15px; }
.grand-total .total-label { font-size: 20px; color: #1e3a8a; }
.grand-total .total-value { font-size: 24px; font-weight: bold; color: #2563eb; }
.footer { margin-top: 60px; text-align: center; border-top: 2px solid #e5e7eb; padding-top: 30px; }
.terms { background: #f9fafb; padding: 20px; border-radius: 8px; margin-bottom: 30px; border-left: 4px solid #2563eb; }
.terms-title { font-size: 16px; font-weight: bold; color: #1e3a8a; margin-bottom: 10px; }
.terms-text { font-size: 14px; color: #6b7280; line-height: 1.6; }
.contact-info { font-size: 14px; color: #6b7280; line-height: 1.8; }
.status-badge { display: inline-block; padding: 6px 12px; border-radius: 20px; font-size: 12px; font-weight: bold; text-transform: uppercase; }
.status-pending { background: #fef3c7; color: #92400e; }
.status-sent { background: #d1fae5; color: #065f46; }
.status-cancelled { background: #fee2e2; color: #991b1b; }
.currency { font-weight: bold; color: #2563eb; }
@media print {
  .container { padding: 20px; }
  .header { margin-bottom: 30px; }
  .info-section { margin-bottom: 30px; }
}
"""


# ═══════════════════════════════════════════════════════════════════════════════
# SECTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def _info_item(label: str, value) -> str:
    return (f'<div class="info-item"><span class="info-label">{escape(label)}</span>'
            f'<span class="info-value">{escape(str(value or ""))}</span></div>')


def _item_rows(items: list) -> str:
    rows = []
    for item in items:
        rows.append(
            "<tr>"
            f"<td><strong>{escape(str(item.get('productId', '')))}</strong></td>"
            f"<td>{escape(str(item.get('productName', '')))}</td>"
            f"<td class=\"text-center\">{escape(str(item.get('quantity', 0)))}</td>"
            f"<td class=\"text-right\"><span class=\"currency\">{format_pkr(item.get('price'))}</span></td>"
            f"<td class=\"text-right\"><span class=\"currency\">{format_pkr(line_total(item))}</span></td>"
            "</tr>"
        )
    return "\n".join(rows)


def _total_row(label: str, value: str, extra_class: str = "") -> str:
    cls = f"total-row {extra_class}".strip()
    return (f'<div class="{cls}"><div class="total-label">{label}:</div>'
            f'<div class="total-value"><span class="currency">{value}</span></div></div>')


def generate_quotation_html(quotation: dict, items: list) -> str:
    """Complete HTML document for a quotation and its enriched items."""
    status = status_of(quotation)
    number = quotation_number(quotation)
    totals = quotation_totals(quotation)
    customer = escape(str(quotation.get("customerName", "")))
    terms_html = "<br>\n".join(f"&bull; {escape(t)}" for t in TERMS)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Quotation - {customer}</title>
<style>{_CSS}</style>
</head>
<body>
<div class="container">
  <div class="header">
    <div class="company-name">{COMPANY['name']}</div>
    <div class="company-tagline">{escape(COMPANY['tagline'])}</div>
    <div class="quotation-title">QUOTATION</div>
    <div class="quotation-number">#{number}
      <span class="status-badge status-{escape(status)}">{escape(status)}</span>
    </div>
  </div>

  <div class="info-section">
    <div class="info-block">
      <div class="info-title">Bill To:</div>
      {_info_item("Name:", quotation.get("customerName"))}
      {_info_item("Phone:", quotation.get("customerPhone"))}
      {_info_item("Address:", quotation.get("customerAddress"))}
    </div>
    <div class="info-block">
      <div class="info-title">Quotation Details:</div>
      {_info_item("Date:", format_date(quotation.get("createdAt")))}
      {_info_item("Valid Until:", valid_until(quotation.get("createdAt")))}
      {_info_item("Status:", status.upper())}
    </div>
  </div>

  <div class="items-section">
    <div class="items-title">Items &amp; Services</div>
    <table class="items-table">
      <thead>
        <tr>
          <th style="width: 15%">Product ID</th>
          <th style="width: 40%">Description</th>
          <th style="width: 15%" class="text-center">Quantity</th>
          <th style="width: 15%" class="text-right">Unit Price</th>
          <th style="width: 15%" class="text-right">Total</th>
        </tr>
      </thead>
      <tbody>
{_item_rows(items)}
      </tbody>
    </table>
  </div>

  <div class="total-section">
    {_total_row("Subtotal", totals["subtotal"])}
    {_total_row(TAX_RATE_LABEL, totals["tax"])}
    {_total_row("Grand Total", totals["grand_total"], "grand-total")}
  </div>

  <div class="terms">
    <div class="terms-title">Terms &amp; Conditions:</div>
    <div class="terms-text">
{terms_html}
    </div>
  </div>

  <div class="footer">
    <div class="contact-info">
      <strong>{COMPANY['name']}</strong><br>
      Email: {COMPANY['email']} | Phone: {COMPANY['phone']}<br>
      Website: {COMPANY['website']}<br>
      <em>{COMPANY['thanks']}</em>
    </div>
  </div>
</div>
</body>
</html>
"""
