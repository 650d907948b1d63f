"""
Quotation PDF - direct canvas drawing
=====================================
Used by the public (shared-link) download. Draws the quotation with low-level
reportlab canvas primitives: filled and rounded rectangles, borders, text runs.

Layout is expressed in millimetres from the TOP of an A4 page (210 x 297),
converted to reportlab's bottom-left origin by Y().

The canvas has no native gradient, so the header band is painted as N
horizontal strips whose RGB is linearly interpolated between two endpoints.

Page breaks:
  - before each item row, cursor > 250 → new page, cursor = 20
  - before the terms block, cursor > 220 → new page, cursor = 20
"""

import io
import logging

from reportlab.lib.colors import Color
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from inventory_portal.forms.pdf_chain import PDFStrategy
from inventory_portal.forms.quotation_data import line_total, quotation_number
from inventory_portal.forms.quotation_html import (
    COMPANY, TAX_RATE_LABEL, TERMS, format_date, format_pkr,
    quotation_totals, status_of, valid_until,
)

log = logging.getLogger("portal.pdf.canvas")

# ═══════════════════════════════════════════════════════════════════════════════
# COLORS (0-255 RGB)
# ═══════════════════════════════════════════════════════════════════════════════
PRIMARY    = (37, 99, 235)     # blue
PRIMARY_DK = (30, 58, 138)     # navy, gradient end
SECONDARY  = (107, 114, 128)   # gray
TEXT       = (31, 41, 55)      # dark gray
ZEBRA      = (249, 250, 251)
PILL       = (243, 244, 246)
BORDER     = (229, 231, 235)
WHITE      = (255, 255, 255)

STATUS_COLORS = {
    "pending":   ((254, 243, 199), (146, 64, 14)),
    "sent":      ((209, 250, 229), (6, 95, 70)),
    "cancelled": ((254, 226, 226), (153, 27, 27)),
}

# ═══════════════════════════════════════════════════════════════════════════════
# PAGE GEOMETRY (mm, from top)
# ═══════════════════════════════════════════════════════════════════════════════
PAGE_W_MM = 210
PAGE_H_MM = 297
ROW_BREAK_Y = 250
TERMS_BREAK_Y = 220
PAGE_TOP_Y = 20
ROW_HEIGHT = 7
HEADER_BAND_H = 42
GRADIENT_STEPS = 20
DESCRIPTION_MAX = 25

# column x positions for the items table
COL_CODE, COL_DESC, COL_QTY, COL_PRICE_R, COL_TOTAL_R = 22, 55, 122, 160, 188


def gradient_strips(start, end, steps: int = GRADIENT_STEPS) -> list:
    """RGB tuples for `steps` strips from start to end inclusive.

    The first strip is exactly `start`, the last exactly `end`; every
    channel moves monotonically in between.
    """
    if steps < 1:
        raise ValueError("steps must be >= 1")
    if steps == 1:
        return [tuple(start)]
    out = []
    for i in range(steps):
        t = i / (steps - 1)
        out.append(tuple(int(round(s + (e - s) * t)) for s, e in zip(start, end)))
    return out


def _rgb(c) -> Color:
    return Color(c[0] / 255.0, c[1] / 255.0, c[2] / 255.0)


def _truncate(s: str, n: int) -> str:
    s = str(s or "")
    return s if len(s) <= n else s[:n]


class _Page:
    """Cursor-tracking wrapper around a reportlab canvas in top-origin mm."""

    def __init__(self, c: canvas.Canvas):
        self.c = c
        self.pages = 1

    @staticmethod
    def Y(top_mm: float) -> float:
        return (PAGE_H_MM - top_mm) * mm

    def new_page(self):
        self.c.showPage()
        self.pages += 1

    def fill_rect(self, x, top, w, h, color):
        self.c.setFillColor(_rgb(color))
        self.c.rect(x * mm, self.Y(top + h), w * mm, h * mm, fill=1, stroke=0)

    def round_rect(self, x, top, w, h, radius, fill=None, stroke=None, line_width=0.5):
        if fill:
            self.c.setFillColor(_rgb(fill))
        if stroke:
            self.c.setStrokeColor(_rgb(stroke))
            self.c.setLineWidth(line_width)
        self.c.roundRect(x * mm, self.Y(top + h), w * mm, h * mm, radius * mm,
                         fill=1 if fill else 0, stroke=1 if stroke else 0)

    def line(self, x1, top, x2, color, width=0.5):
        self.c.setStrokeColor(_rgb(color))
        self.c.setLineWidth(width)
        self.c.line(x1 * mm, self.Y(top), x2 * mm, self.Y(top))

    def text(self, x, top, txt, size=10, color=TEXT, font="Helvetica", align="left"):
        self.c.setFont(font, size)
        self.c.setFillColor(_rgb(color))
        s = str(txt) if txt is not None else ""
        if align == "right":
            self.c.drawRightString(x * mm, self.Y(top), s)
        elif align == "center":
            self.c.drawCentredString(x * mm, self.Y(top), s)
        else:
            self.c.drawString(x * mm, self.Y(top), s)

    def gradient_band(self, top, height, start, end, steps=GRADIENT_STEPS):
        strip_h = height / steps
        for i, color in enumerate(gradient_strips(start, end, steps)):
            # slight overlap hides hairline seams between strips
            self.fill_rect(0, top + i * strip_h, PAGE_W_MM, strip_h + 0.2, color)


class CanvasStrategy(PDFStrategy):
    """Low-level drawing on a reportlab canvas."""

    name = "canvas"

    def render(self, quotation: dict, items: list) -> bytes:
        buf = io.BytesIO()
        c = canvas.Canvas(buf, pagesize=A4)
        c.setTitle(f"Quotation #{quotation_number(quotation)}")
        c.setAuthor(COMPANY["name"])
        p = _Page(c)

        status = status_of(quotation)
        totals = quotation_totals(quotation)

        # ── Header band ───────────────────────────────────────────────────────
        p.gradient_band(0, HEADER_BAND_H, PRIMARY, PRIMARY_DK)
        p.text(105, 20, COMPANY["name"], 24, WHITE, "Helvetica-Bold", "center")
        p.text(105, 30, COMPANY["tagline"], 11, WHITE, align="center")

        p.text(105, 55, "QUOTATION", 20, PRIMARY, "Helvetica-Bold", "center")
        p.round_rect(75, 59, 60, 9, 4.5, fill=PILL)
        p.text(105, 65, f"#{quotation_number(quotation)}", 12, TEXT, "Helvetica-Bold", "center")

        badge_bg, badge_fg = STATUS_COLORS.get(status, STATUS_COLORS["pending"])
        p.round_rect(90, 70, 30, 7, 3.5, fill=badge_bg)
        p.text(105, 75, status.upper(), 9, badge_fg, "Helvetica-Bold", "center")

        p.line(20, 82, 190, PRIMARY, 1)

        # ── Bill To / Details boxes ───────────────────────────────────────────
        p.round_rect(18, 87, 84, 34, 2, stroke=BORDER)
        p.round_rect(108, 87, 84, 34, 2, stroke=BORDER)

        p.text(22, 95, "Bill To:", 14, PRIMARY, "Helvetica-Bold")
        p.text(22, 103, f"Name: {_truncate(quotation.get('customerName'), 38)}", 11)
        p.text(22, 109, f"Phone: {_truncate(quotation.get('customerPhone'), 38)}", 11)
        p.text(22, 115, f"Address: {_truncate(quotation.get('customerAddress'), 34)}", 11)

        p.text(112, 95, "Quotation Details:", 14, PRIMARY, "Helvetica-Bold")
        p.text(112, 103, f"Date: {format_date(quotation.get('createdAt'))}", 11)
        p.text(112, 109, f"Valid Until: {valid_until(quotation.get('createdAt'))}", 11)
        p.text(112, 115, f"Items: {len(items)}", 11)

        y = 135

        # ── Items table ───────────────────────────────────────────────────────
        p.text(105, y, "Items & Services", 14, PRIMARY, "Helvetica-Bold", "center")
        y += 10

        p.fill_rect(20, y - 5, 170, 8, PRIMARY)
        p.text(COL_CODE, y, "Product ID", 10, WHITE, "Helvetica-Bold")
        p.text(COL_DESC, y, "Description", 10, WHITE, "Helvetica-Bold")
        p.text(COL_QTY - 2, y, "Qty", 10, WHITE, "Helvetica-Bold")
        p.text(COL_PRICE_R, y, "Unit Price", 10, WHITE, "Helvetica-Bold", "right")
        p.text(COL_TOTAL_R, y, "Total", 10, WHITE, "Helvetica-Bold", "right")
        y += 12

        for index, item in enumerate(items):
            if y > ROW_BREAK_Y:
                p.new_page()
                y = PAGE_TOP_Y
            if index % 2 == 0:
                p.fill_rect(20, y - 4, 170, ROW_HEIGHT, ZEBRA)
            p.text(COL_CODE, y, _truncate(item.get("productId"), 14), 9)
            p.text(COL_DESC, y, _truncate(item.get("productName"), DESCRIPTION_MAX), 9)
            p.text(COL_QTY, y, item.get("quantity", 0), 9)
            p.text(COL_PRICE_R, y, format_pkr(item.get("price")), 9, align="right")
            p.text(COL_TOTAL_R, y, format_pkr(line_total(item)), 9, align="right")
            y += ROW_HEIGHT

        # ── Totals ────────────────────────────────────────────────────────────
        if y > ROW_BREAK_Y:
            p.new_page()
            y = PAGE_TOP_Y
        y += 10
        p.line(120, y, 190, PRIMARY, 0.5)
        y += 8
        p.text(140, y, "Subtotal:", 11)
        p.text(COL_TOTAL_R, y, totals["subtotal"], 11, align="right")
        y += 6
        p.text(140, y, f"{TAX_RATE_LABEL}:", 11)
        p.text(COL_TOTAL_R, y, totals["tax"], 11, align="right")
        y += 8
        p.line(120, y, 190, PRIMARY, 1)
        y += 8
        p.text(125, y, "Grand Total:", 14, PRIMARY, "Helvetica-Bold")
        p.text(COL_TOTAL_R, y, totals["grand_total"], 14, PRIMARY, "Helvetica-Bold", "right")
        y += 20

        # ── Terms ─────────────────────────────────────────────────────────────
        if y > TERMS_BREAK_Y:
            p.new_page()
            y = PAGE_TOP_Y
        block_h = 8 + 5 * len(TERMS) + 4
        p.round_rect(18, y - 6, 174, block_h, 2, fill=ZEBRA)
        p.fill_rect(18, y - 6, 1.2, block_h, PRIMARY)
        p.text(22, y, "Terms & Conditions:", 12, PRIMARY, "Helvetica-Bold")
        y += 8
        for term in TERMS:
            p.text(22, y, f"• {term}", 9)
            y += 5
        y += 10

        # ── Footer ────────────────────────────────────────────────────────────
        p.line(20, y, 190, SECONDARY, 0.5)
        y += 8
        p.text(105, y, COMPANY["name"], 12, PRIMARY, "Helvetica-Bold", "center")
        y += 6
        p.text(105, y, f"Email: {COMPANY['email']} | Phone: {COMPANY['phone']}",
               9, SECONDARY, align="center")
        y += 4
        p.text(105, y, f"Website: {COMPANY['website']}", 9, SECONDARY, align="center")
        y += 6
        p.text(105, y, COMPANY["thanks"], 9, SECONDARY, "Helvetica-Oblique", "center")

        c.save()
        log.debug("Canvas quotation %s drawn on %d page(s)",
                  quotation_number(quotation), p.pages)
        return buf.getvalue()


# ═══════════════════════════════════════════════════════════════════════════════
# PLAIN TEXT LAYOUT - last resort
# ═══════════════════════════════════════════════════════════════════════════════

def quotation_text_lines(quotation: dict, items: list) -> list:
    totals = quotation_totals(quotation)
    lines = [
        COMPANY["name"].upper(),
        COMPANY["tagline"],
        "",
        f"QUOTATION #{quotation_number(quotation)}",
        f"Status: {status_of(quotation).upper()}",
        "",
        "BILL TO:",
        f"Name: {quotation.get('customerName', '')}",
        f"Phone: {quotation.get('customerPhone', '')}",
        f"Address: {quotation.get('customerAddress', '')}",
        "",
        "QUOTATION DETAILS:",
        f"Date: {format_date(quotation.get('createdAt'))}",
        f"Valid Until: {valid_until(quotation.get('createdAt'))}",
        "",
        "ITEMS & SERVICES:",
    ]
    for n, item in enumerate(items, start=1):
        lines.append(f"{n}. {item.get('productId', '')} - {item.get('productName', '')}")
        lines.append(f"    Quantity: {item.get('quantity', 0)} | "
                     f"Unit Price: {format_pkr(item.get('price'))} | "
                     f"Total: {format_pkr(line_total(item))}")
    lines += [
        "",
        "TOTAL SUMMARY:",
        f"Subtotal: {totals['subtotal']}",
        f"{TAX_RATE_LABEL}: {totals['tax']}",
        f"Grand Total: {totals['grand_total']}",
        "",
        "TERMS & CONDITIONS:",
    ]
    lines += [f"• {t}" for t in TERMS]
    lines += [
        "",
        "CONTACT:",
        COMPANY["name"],
        f"Email: {COMPANY['email']} | Phone: {COMPANY['phone']}",
        f"Website: {COMPANY['website']}",
        COMPANY["thanks"],
    ]
    return lines


class PlainTextStrategy(PDFStrategy):
    """One font, one column, wrapped lines. No styling to go wrong."""

    name = "plain-text"
    font = "Helvetica"
    size = 10
    leading = 14
    margin = 50

    def render(self, quotation: dict, items: list) -> bytes:
        buf = io.BytesIO()
        W, H = A4
        c = canvas.Canvas(buf, pagesize=A4)
        c.setTitle(f"Quotation #{quotation_number(quotation)}")
        usable = W - 2 * self.margin
        y = H - self.margin
        for raw in quotation_text_lines(quotation, items):
            for line in simpleSplit(raw, self.font, self.size, usable) or [""]:
                if y < self.margin:
                    c.showPage()
                    y = H - self.margin
                c.setFont(self.font, self.size)
                c.drawString(self.margin, y, line)
                y -= self.leading
        c.save()
        return buf.getvalue()
