"""
Inventory Portal API - Blueprint and shared route helpers.

Resource routes live in inventory_portal/api/modules/routes_*.py and decorate
`bp` directly; they are imported at the bottom of this module so that
registering the blueprint registers every route.

Services (store, activity logger, render chains) are attached to the app by
create_app() under app.extensions["portal"].
"""

import time as _time
import logging
import unicodedata
from urllib.parse import quote

from flask import Blueprint, Response, current_app, g, jsonify, request
from werkzeug.exceptions import HTTPException

from inventory_portal.core.security import current_actor
from inventory_portal.forms.pdf_chain import PDFGenerationFailed
from inventory_portal.forms.quotation_data import (
    InvalidQuotationId, QuotationNotFound, assemble_quotation, quotation_filename,
)

log = logging.getLogger("portal.api")

bp = Blueprint("portal", __name__)


# ═══════════════════════════════════════════════════════════════════════
# Services
# ═══════════════════════════════════════════════════════════════════════

def services() -> dict:
    return current_app.extensions["portal"]


def get_store():
    return services()["store"]


def api_error(message: str, status: int):
    return jsonify({"ok": False, "error": message}), status


def client_meta() -> dict:
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = forwarded.split(",")[0].strip() if forwarded else (
        request.headers.get("X-Real-IP") or request.remote_addr or "unknown")
    return {"ip_address": ip, "user_agent": request.headers.get("User-Agent", "unknown")}


def record_activity(action: str, resource: str, resource_id: str = None,
                    details: str = "", status: str = "success"):
    """Fire-and-forget activity entry for the current actor."""
    actor = current_actor() or {"id": "", "name": "anonymous", "role": "public"}
    services()["activity"].record(actor, action, resource, resource_id,
                                  details, status, **client_meta())


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# ═══════════════════════════════════════════════════════════════════════
# Quotation PDF response (shared by private and public routes)
# ═══════════════════════════════════════════════════════════════════════

def load_enriched_quotation(quotation_id: str):
    """(quotation, items, None) or (None, None, error_response)."""
    try:
        quotation, items = assemble_quotation(get_store(), quotation_id)
    except InvalidQuotationId:
        return None, None, api_error("Invalid quotation ID", 400)
    except QuotationNotFound:
        return None, None, api_error("Quotation not found", 404)
    return quotation, items, None


def set_attachment(resp, filename: str):
    """Content-Disposition for a download; non-ASCII names also get filename*."""
    try:
        filename.encode("ascii")
    except UnicodeEncodeError:
        simple = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
        names = {"filename": simple,
                 "filename*": f"UTF-8''{quote(filename, safe='!#$&+-.^_`|~')}"}
    else:
        names = {"filename": filename}
    resp.headers.set("Content-Disposition", "attachment", **names)
    return resp


def pdf_response(quotation_id: str, chain, extra_headers: dict = None):
    quotation, items, err = load_enriched_quotation(quotation_id)
    if err:
        return err

    try:
        result = chain.generate(quotation, items)
    except PDFGenerationFailed:
        return api_error("PDF generation failed", 500)

    pdf = result["pdf"]
    resp = Response(pdf, mimetype="application/pdf", headers={
        "Content-Length": str(len(pdf)),
        "X-PDF-Strategy": result["strategy"],
    })
    resp.headers.extend(extra_headers or {})
    return set_attachment(resp, quotation_filename(quotation.get("customerName", ""), quotation_id))


# ═══════════════════════════════════════════════════════════════════════
# Request logging + error handling
# ═══════════════════════════════════════════════════════════════════════

@bp.before_app_request
def _log_request_start():
    request._start_time = _time.time()


@bp.after_app_request
def _log_request_end(response):
    if hasattr(request, "_start_time"):
        duration_ms = round((_time.time() - request._start_time) * 1000, 1)
        if request.path not in ("/api/health",):
            actor = g.get("actor")
            log.info("%s %s → %d (%.0fms)",
                     request.method, request.path, response.status_code, duration_ms,
                     extra={"route": request.path, "method": request.method,
                            "status": response.status_code, "duration_ms": duration_ms,
                            "user": actor["name"] if actor else "anonymous"})
    return response


@bp.app_errorhandler(Exception)
def _handle_error(e):
    if isinstance(e, HTTPException):
        return api_error(e.description or e.name, e.code or 500)
    log.exception("Unhandled error on %s %s", request.method, request.path)
    return api_error("Internal Server Error", 500)


# ═══════════════════════════════════════════════════════════════════════
# Health
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/health")
def health():
    svc = services()
    return jsonify({
        "ok": True,
        "store": svc["store"].ping(),
        "strategies": {
            "private": svc["private_chain"].capabilities(),
            "public": svc["public_chain"].capabilities(),
        },
    })


# ── Route modules register on bp at import ─────────────────────────────────
from inventory_portal.api.modules import (  # noqa: E402,F401
    routes_logs, routes_products, routes_public, routes_quotations, routes_users,
)
