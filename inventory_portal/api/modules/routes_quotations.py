# routes_quotations.py - Quotation list/create/view/send, PDF download and preview

from datetime import datetime, timezone

from flask import Response, jsonify, request

from inventory_portal.api.dashboard import (
    api_error, bp, get_store, json_body, load_enriched_quotation, pdf_response,
    record_activity, services,
)
from inventory_portal.core import paths
from inventory_portal.core.db import QUOTATIONS, is_valid_id, to_json, to_object_id
from inventory_portal.core.security import auth_required, current_actor, rate_limit
from inventory_portal.forms.quotation_entry import (
    QuotationValidationError, build_quotation_record, whatsapp_link,
)
from inventory_portal.forms.quotation_html import generate_quotation_html


def public_pdf_url(quotation_id: str) -> str:
    return f"{paths.PUBLIC_BASE_URL}/api/public/quotations/{quotation_id}/pdf"


@bp.route("/api/quotations", methods=["GET"])
@auth_required
def quotations_list():
    """Newest first. Riders only see their own quotations."""
    actor = current_actor()
    query = {}
    if actor["role"] == "rider":
        query = {"riderId": to_object_id(actor["id"])}
    limit = request.args.get("limit", type=int)
    rows = get_store().find(QUOTATIONS, query, sort=[("createdAt", -1), ("_id", -1)],
                            limit=limit if limit and limit > 0 else None)
    return jsonify({"ok": True, "quotations": to_json(rows)})


@bp.route("/api/quotations", methods=["POST"])
@auth_required
def quotations_create():
    try:
        record = build_quotation_record(json_body(), current_actor())
    except QuotationValidationError as e:
        return api_error(str(e), 400)
    qid = get_store().insert(QUOTATIONS, record)
    record_activity("create", "quotation", qid,
                    f"Quotation for {record['customerName']} "
                    f"({len(record['items'])} items, total {record['totalAmount']})")
    return jsonify({"ok": True, "id": qid}), 201


@bp.route("/api/quotations/<qid>", methods=["GET"])
@auth_required
def quotations_get(qid):
    quotation, items, err = load_enriched_quotation(qid)
    if err:
        return err
    data = to_json(quotation)
    data["items"] = to_json(items)
    return jsonify({"ok": True, "quotation": data})


@bp.route("/api/quotations/<qid>/send", methods=["POST"])
@auth_required
def quotations_send(qid):
    if not is_valid_id(qid):
        return api_error("Invalid quotation ID", 400)
    store = get_store()
    quotation = store.find_one(QUOTATIONS, qid)
    if quotation is None:
        return api_error("Quotation not found", 404)
    if quotation.get("status") == "cancelled":
        return api_error("Cancelled quotations cannot be sent", 409)

    sent_at = datetime.now(timezone.utc)
    store.update(QUOTATIONS, qid, {"status": "sent", "sentAt": sent_at})
    quotation.update(status="sent", sentAt=sent_at)

    share_url = public_pdf_url(qid)
    record_activity("send", "quotation", qid, f"Sent to {quotation.get('customerName', '')}")
    return jsonify({
        "ok": True,
        "shareUrl": share_url,
        "whatsappUrl": whatsapp_link(quotation, share_url),
    })


@bp.route("/api/quotations/<qid>/pdf", methods=["GET"])
@auth_required
@rate_limit("heavy")
def quotations_pdf(qid):
    resp = pdf_response(qid, services()["private_chain"])
    if isinstance(resp, Response):
        record_activity("download", "quotation", qid,
                        f"PDF via {resp.headers.get('X-PDF-Strategy', '?')}")
    else:
        record_activity("download", "quotation", qid, f"PDF request failed ({resp[1]})", "error")
    return resp


@bp.route("/api/quotations/<qid>/preview", methods=["GET"])
@auth_required
def quotations_preview(qid):
    quotation, items, err = load_enriched_quotation(qid)
    if err:
        return err
    return Response(generate_quotation_html(quotation, items), mimetype="text/html")
