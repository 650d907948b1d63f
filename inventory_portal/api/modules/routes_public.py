# routes_public.py - Shared-link quotation access (no session)
#
# Anyone holding the quotation id can view and download it; the id is the
# share token handed to the customer.

from flask import jsonify

from inventory_portal.api.dashboard import bp, load_enriched_quotation, pdf_response, services
from inventory_portal.core.db import to_json
from inventory_portal.core.security import rate_limit

PUBLIC_FIELDS = ("_id", "customerName", "customerPhone", "customerAddress",
                 "totalAmount", "status", "createdAt", "sentAt")


@bp.route("/api/public/quotations/<qid>", methods=["GET"])
@rate_limit("api")
def public_quotation(qid):
    quotation, items, err = load_enriched_quotation(qid)
    if err:
        return err
    data = to_json({k: quotation[k] for k in PUBLIC_FIELDS if k in quotation})
    data["items"] = [
        {"productId": it["productId"], "productName": it["productName"],
         "quantity": it.get("quantity", 0), "price": it.get("price", 0)}
        for it in items
    ]
    return jsonify({"ok": True, "quotation": data})


@bp.route("/api/public/quotations/<qid>/pdf", methods=["GET"])
@rate_limit("heavy")
def public_quotation_pdf(qid):
    return pdf_response(qid, services()["public_chain"],
                        extra_headers={"Cache-Control": "public, max-age=3600"})
