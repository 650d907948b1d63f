# routes_products.py - Product catalog CRUD, code uniqueness, filters

import math
import re
from datetime import datetime, timezone

from flask import jsonify, request
from pymongo.errors import DuplicateKeyError

from inventory_portal.api.dashboard import api_error, bp, get_store, json_body, record_activity
from inventory_portal.core.db import PRODUCTS, is_valid_id, to_json, to_object_id
from inventory_portal.core.security import auth_required, role_required

LOW_STOCK_THRESHOLD = 10
TEXT_FIELDS = ("group", "subGroup", "productId", "name")


def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def _parse_product(body: dict, partial: bool = False):
    """(fields, error). partial=True validates only the keys present."""
    fields = {}
    for key in TEXT_FIELDS:
        if key in body or not partial:
            val = str(body.get(key) or "").strip()
            if not val:
                return None, f"{key} is required"
            fields[key] = val
    if "quantity" in body or not partial:
        qty = body.get("quantity")
        if not _is_number(qty) or qty < 0 or int(qty) != qty:
            return None, "quantity must be a non-negative integer"
        fields["quantity"] = int(qty)
    if "price" in body or not partial:
        price = body.get("price")
        if not _is_number(price) or price < 0:
            return None, "price must be a non-negative number"
        fields["price"] = price
    if "imagePath" in body:
        fields["imagePath"] = body.get("imagePath") or None
    return fields, None


def _code_taken(store, code: str, exclude_id=None) -> bool:
    existing = store.find_one_by(PRODUCTS, {"productId": code})
    if not existing:
        return False
    return exclude_id is None or str(existing["_id"]) != str(exclude_id)


@bp.route("/api/products", methods=["GET"])
@auth_required
def products_list():
    """Filters: lowStock=true, q (name/code substring), group, subGroup."""
    query = {}
    if request.args.get("lowStock", "").lower() == "true":
        query["quantity"] = {"$lte": LOW_STOCK_THRESHOLD}
    q = request.args.get("q", "").strip()
    if q:
        pattern = {"$regex": re.escape(q), "$options": "i"}
        query["$or"] = [{"name": pattern}, {"productId": pattern}]
    for key in ("group", "subGroup"):
        val = request.args.get(key, "").strip()
        if val:
            query[key] = val
    rows = get_store().find(PRODUCTS, query, sort=[("name", 1)])
    return jsonify({"ok": True, "products": to_json(rows)})


@bp.route("/api/products", methods=["POST"])
@role_required("manager")
def products_create():
    fields, error = _parse_product(json_body())
    if error:
        return api_error(error, 400)
    store = get_store()
    if _code_taken(store, fields["productId"]):
        return api_error(f"Product ID {fields['productId']} already exists", 409)
    now = datetime.now(timezone.utc)
    fields.setdefault("imagePath", None)
    fields.update(createdAt=now, updatedAt=now)
    try:
        pid = store.insert(PRODUCTS, fields)
    except DuplicateKeyError:
        return api_error(f"Product ID {fields['productId']} already exists", 409)
    record_activity("create", "product", pid, f"{fields['productId']} {fields['name']}")
    return jsonify({"ok": True, "id": pid}), 201


@bp.route("/api/products/check-id", methods=["GET"])
@auth_required
def products_check_id():
    code = request.args.get("id", "").strip()
    if not code:
        return api_error("ID parameter is required", 400)
    return jsonify({"ok": True, "isUnique": not _code_taken(get_store(), code)})


@bp.route("/api/products/last-id", methods=["GET"])
@auth_required
def products_last_id():
    rows = get_store().find(PRODUCTS, sort=[("_id", -1)], limit=1,
                            projection={"productId": 1})
    return jsonify({"ok": True, "lastId": rows[0].get("productId") if rows else None})


@bp.route("/api/products/<pid>", methods=["GET"])
@auth_required
def products_get(pid):
    product = get_store().find_one(PRODUCTS, pid)
    if not product:
        return api_error("Product not found", 404)
    return jsonify({"ok": True, "product": to_json(product)})


@bp.route("/api/products/<pid>", methods=["PUT"])
@role_required("manager")
def products_update(pid):
    if not is_valid_id(pid):
        return api_error("Product not found", 404)
    fields, error = _parse_product(json_body(), partial=True)
    if error:
        return api_error(error, 400)
    store = get_store()
    if "productId" in fields and _code_taken(store, fields["productId"], exclude_id=pid):
        return api_error(f"Product ID {fields['productId']} already exists", 409)
    fields["updatedAt"] = datetime.now(timezone.utc)
    try:
        found = store.update(PRODUCTS, to_object_id(pid), fields)
    except DuplicateKeyError:
        return api_error(f"Product ID {fields['productId']} already exists", 409)
    if not found:
        return api_error("Product not found", 404)
    record_activity("update", "product", pid, ", ".join(sorted(k for k in fields if k != "updatedAt")))
    return jsonify({"ok": True})


@bp.route("/api/products/<pid>", methods=["DELETE"])
@role_required("manager")
def products_delete(pid):
    if not get_store().delete(PRODUCTS, pid):
        return api_error("Product not found", 404)
    record_activity("delete", "product", pid)
    return jsonify({"ok": True})
