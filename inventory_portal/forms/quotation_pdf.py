"""
Quotation PDF Strategies
========================
Concrete renderers for the quotation PDF, in priority order:

  1. server-browser - server-tuned chromium (CHROMIUM_EXECUTABLE_PATH) driven by
     playwright, flags tuned for containers with small /dev/shm and no GPU
  2. local-browser  - playwright's own chromium, sandbox disabled (trusted dev box)
  3. document       - reportlab platypus flowables, no browser involved

Both browser strategies print the HTML template as A4 with backgrounds and
20px margins. The document strategy reproduces the same sections with its
own styling.

The public endpoint uses a separate chain built from the canvas strategies
in quotation_canvas.
"""

import io
import os
import logging
import importlib.util
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from inventory_portal.core import paths
from inventory_portal.forms.pdf_chain import PDFStrategy, RenderChain
from inventory_portal.forms.quotation_data import line_total, quotation_number
from inventory_portal.forms.quotation_html import (
    COMPANY, TAX_RATE_LABEL, TERMS, format_date, format_pkr,
    generate_quotation_html, quotation_totals, status_of, valid_until,
)

log = logging.getLogger("portal.pdf")

PAGE_MARGIN = "20px"
PAGE_FORMAT = "A4"

PRIMARY = colors.HexColor("#2563eb")
PRIMARY_DARK = colors.HexColor("#1e3a8a")
TEXT = colors.HexColor("#1f2937")
MUTED = colors.HexColor("#6b7280")
ZEBRA = colors.HexColor("#f9fafb")
RULE = colors.HexColor("#e5e7eb")


def _playwright_installed() -> bool:
    return importlib.util.find_spec("playwright") is not None


# ═══════════════════════════════════════════════════════════════════════════════
# BROWSER STRATEGIES
# ═══════════════════════════════════════════════════════════════════════════════

class BrowserStrategy(PDFStrategy):
    """Print the HTML template through a headless chromium."""

    name = "browser"
    launch_args = ()
    chromium_sandbox = False

    def __init__(self, timeout: float = None):
        self.timeout = timeout if timeout is not None else paths.PDF_STRATEGY_TIMEOUT

    def executable_path(self):
        return None

    def capability(self):
        if not _playwright_installed():
            return False, "playwright not installed"
        return True, ""

    def html_to_pdf(self, html: str) -> bytes:
        from playwright.sync_api import sync_playwright

        timeout_ms = int(self.timeout * 1000)
        launch_kwargs = {
            "headless": True,
            "args": list(self.launch_args),
            "timeout": timeout_ms,
            "chromium_sandbox": self.chromium_sandbox,
        }
        exe = self.executable_path()
        if exe:
            launch_kwargs["executable_path"] = exe

        with sync_playwright() as p:
            browser = p.chromium.launch(**launch_kwargs)
            try:
                page = browser.new_page()
                page.set_default_timeout(timeout_ms)
                page.set_content(html, wait_until="networkidle", timeout=timeout_ms)
                return page.pdf(
                    format=PAGE_FORMAT,
                    print_background=True,
                    margin={"top": PAGE_MARGIN, "right": PAGE_MARGIN,
                            "bottom": PAGE_MARGIN, "left": PAGE_MARGIN},
                )
            finally:
                browser.close()

    def render(self, quotation: dict, items: list) -> bytes:
        return self.html_to_pdf(generate_quotation_html(quotation, items))


class ServerBrowserStrategy(BrowserStrategy):
    """Chromium build for restricted server environments (serverless, containers)."""

    name = "server-browser"
    launch_args = (
        "--disable-dev-shm-usage",
        "--disable-gpu",
        "--no-first-run",
        "--no-zygote",
        "--single-process",
        "--font-render-hinting=none",
    )
    chromium_sandbox = False

    def __init__(self, executable: str = None, timeout: float = None):
        super().__init__(timeout)
        self._executable = executable if executable is not None else paths.CHROMIUM_EXECUTABLE_PATH

    def executable_path(self):
        return self._executable or None

    def capability(self):
        ok, reason = super().capability()
        if not ok:
            return ok, reason
        if not self._executable:
            return False, "CHROMIUM_EXECUTABLE_PATH not set"
        if not os.path.exists(self._executable):
            return False, f"chromium binary missing: {self._executable}"
        return True, ""


class LocalBrowserStrategy(BrowserStrategy):
    """Playwright-managed chromium on a trusted developer machine."""

    name = "local-browser"
    launch_args = ("--no-sandbox", "--disable-setuid-sandbox")
    chromium_sandbox = False


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENT STRATEGY (reportlab platypus)
# ═══════════════════════════════════════════════════════════════════════════════

def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "company": ParagraphStyle("company", parent=base["Title"], fontSize=22,
                                  leading=26, textColor=PRIMARY, spaceAfter=2),
        "tagline": ParagraphStyle("tagline", parent=base["Normal"], fontSize=10,
                                  alignment=TA_CENTER, textColor=MUTED, spaceAfter=8),
        "title": ParagraphStyle("title", parent=base["Title"], fontSize=18,
                                leading=22, textColor=PRIMARY_DARK, spaceAfter=2),
        "number": ParagraphStyle("number", parent=base["Normal"], fontSize=10,
                                 alignment=TA_CENTER, textColor=TEXT),
        "h2": ParagraphStyle("h2", parent=base["Heading3"], textColor=PRIMARY,
                             spaceBefore=0, spaceAfter=4),
        "body": ParagraphStyle("body", parent=base["Normal"], fontSize=9.5,
                               leading=13, textColor=TEXT),
        "cell": ParagraphStyle("cell", parent=base["Normal"], fontSize=9, leading=11),
        "head": ParagraphStyle("head", parent=base["Normal"], fontSize=9, leading=11,
                               textColor=colors.white, fontName="Helvetica-Bold"),
        "right": ParagraphStyle("right", parent=base["Normal"], fontSize=9,
                                leading=11, alignment=TA_RIGHT),
        "terms": ParagraphStyle("terms", parent=base["Normal"], fontSize=8.5,
                                leading=12, textColor=MUTED),
        "footer": ParagraphStyle("footer", parent=base["Normal"], fontSize=8.5,
                                 leading=12, alignment=TA_CENTER, textColor=MUTED),
    }


class DocumentStrategy(PDFStrategy):
    """Declarative flowables straight to PDF - no browser engine."""

    name = "document"

    def render(self, quotation: dict, items: list) -> bytes:
        st = _styles()
        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf, pagesize=A4,
            leftMargin=15 * mm, rightMargin=15 * mm,
            topMargin=12 * mm, bottomMargin=12 * mm,
            title=f"Quotation #{quotation_number(quotation)}",
            author=COMPANY["name"],
        )
        width = A4[0] - 30 * mm
        status = status_of(quotation)
        totals = quotation_totals(quotation)
        story = []

        # ── Header ────────────────────────────────────────────────────────────
        story.append(Paragraph(COMPANY["name"], st["company"]))
        story.append(Paragraph(escape(COMPANY["tagline"]), st["tagline"]))
        story.append(Paragraph("QUOTATION", st["title"]))
        story.append(Paragraph(
            f"#{quotation_number(quotation)} - <b>{escape(status.upper())}</b>",
            st["number"]))
        story.append(Spacer(1, 6 * mm))

        # ── Bill To / Details ─────────────────────────────────────────────────
        def kv(label, value):
            return Paragraph(f"<b>{label}</b> {escape(str(value or ''))}", st["body"])

        info = Table([
            [Paragraph("Bill To:", st["h2"]), Paragraph("Quotation Details:", st["h2"])],
            [kv("Name:", quotation.get("customerName")),
             kv("Date:", format_date(quotation.get("createdAt")))],
            [kv("Phone:", quotation.get("customerPhone")),
             kv("Valid Until:", valid_until(quotation.get("createdAt")))],
            [kv("Address:", quotation.get("customerAddress")),
             kv("Status:", status.upper())],
        ], colWidths=[width / 2, width / 2])
        info.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LINEBELOW", (0, 0), (-1, 0), 1, RULE),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ]))
        story.append(info)
        story.append(Spacer(1, 8 * mm))

        # ── Items ─────────────────────────────────────────────────────────────
        story.append(Paragraph("Items &amp; Services", st["h2"]))
        rows = [[Paragraph(h, st["head"]) for h in
                 ("Product ID", "Description", "Quantity", "Unit Price", "Total")]]
        for item in items:
            rows.append([
                Paragraph(f"<b>{escape(str(item.get('productId', '')))}</b>", st["cell"]),
                Paragraph(escape(str(item.get("productName", ""))), st["cell"]),
                Paragraph(str(item.get("quantity", 0)), st["cell"]),
                Paragraph(format_pkr(item.get("price")), st["right"]),
                Paragraph(format_pkr(line_total(item)), st["right"]),
            ])
        table = Table(rows, colWidths=[width * 0.15, width * 0.40, width * 0.13,
                                       width * 0.16, width * 0.16], repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ZEBRA]),
            ("LINEBELOW", (0, 1), (-1, -1), 0.5, RULE),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("TOPPADDING", (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ]))
        story.append(table)
        story.append(Spacer(1, 6 * mm))

        # ── Totals ────────────────────────────────────────────────────────────
        tot = Table([
            ["Subtotal:", totals["subtotal"]],
            [f"{TAX_RATE_LABEL}:", totals["tax"]],
            ["Grand Total:", totals["grand_total"]],
        ], colWidths=[40 * mm, 40 * mm], hAlign="RIGHT")
        tot.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
            ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ("FONTNAME", (0, 2), (-1, 2), "Helvetica-Bold"),
            ("FONTSIZE", (0, 2), (-1, 2), 12),
            ("TEXTCOLOR", (1, 2), (1, 2), PRIMARY),
            ("LINEABOVE", (0, 2), (-1, 2), 1.5, PRIMARY),
            ("TOPPADDING", (0, 2), (-1, 2), 6),
        ]))
        story.append(tot)
        story.append(Spacer(1, 8 * mm))

        # ── Terms ─────────────────────────────────────────────────────────────
        terms_cell = [Paragraph("<b>Terms &amp; Conditions:</b>", st["body"])]
        terms_cell += [Paragraph(f"• {escape(t)}", st["terms"]) for t in TERMS]
        terms = Table([[terms_cell]], colWidths=[width])
        terms.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), ZEBRA),
            ("LINEBEFORE", (0, 0), (0, -1), 3, PRIMARY),
            ("LEFTPADDING", (0, 0), (-1, -1), 10),
            ("TOPPADDING", (0, 0), (-1, -1), 8),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ]))
        story.append(terms)
        story.append(Spacer(1, 10 * mm))

        # ── Footer ────────────────────────────────────────────────────────────
        story.append(Paragraph(f"<b>{COMPANY['name']}</b>", st["footer"]))
        story.append(Paragraph(
            f"Email: {COMPANY['email']} | Phone: {COMPANY['phone']}", st["footer"]))
        story.append(Paragraph(f"Website: {COMPANY['website']}", st["footer"]))
        story.append(Paragraph(f"<i>{COMPANY['thanks']}</i>", st["footer"]))

        doc.build(story)
        return buf.getvalue()


# ═══════════════════════════════════════════════════════════════════════════════
# CHAINS
# ═══════════════════════════════════════════════════════════════════════════════

def build_private_chain(timeout: float = None) -> RenderChain:
    """Authenticated download: server browser → local browser → document."""
    timeout = timeout if timeout is not None else paths.PDF_STRATEGY_TIMEOUT
    return RenderChain([
        ServerBrowserStrategy(timeout=timeout),
        LocalBrowserStrategy(timeout=timeout),
        DocumentStrategy(),
    ], timeout=timeout)


def build_public_chain(timeout: float = None) -> RenderChain:
    """Shared-link download: canvas drawing → plain text layout."""
    from inventory_portal.forms.quotation_canvas import CanvasStrategy, PlainTextStrategy

    timeout = timeout if timeout is not None else paths.PDF_STRATEGY_TIMEOUT
    return RenderChain([CanvasStrategy(), PlainTextStrategy()], timeout=timeout)
