# routes_users.py - Manager-only user administration

from datetime import datetime, timezone

from flask import jsonify
from pymongo.errors import DuplicateKeyError

from inventory_portal.api.dashboard import api_error, bp, get_store, json_body, record_activity
from inventory_portal.core.db import USERS, to_json
from inventory_portal.core.security import ROLES, hash_password, role_required

NO_PASSWORD = {"password": 0}
MIN_PASSWORD_LEN = 6


def _email_taken(store, email: str, exclude_id=None) -> bool:
    existing = store.find_one_by(USERS, {"email": email})
    if not existing:
        return False
    return exclude_id is None or str(existing["_id"]) != str(exclude_id)


def _parse_user(body: dict, creating: bool):
    fields = {}
    for key in ("name", "email"):
        if key in body or creating:
            val = str(body.get(key) or "").strip()
            if not val:
                return None, f"{key} is required"
            fields[key] = val.lower() if key == "email" else val
    if "role" in body or creating:
        if body.get("role") not in ROLES:
            return None, f"role must be one of: {', '.join(ROLES)}"
        fields["role"] = body["role"]
    if "contact" in body:
        fields["contact"] = str(body.get("contact") or "").strip()
    password = body.get("password")
    if password is not None and not isinstance(password, str):
        return None, "password must be a string"
    password = password or ""
    if creating or password:
        if len(password) < MIN_PASSWORD_LEN:
            return None, f"password must be at least {MIN_PASSWORD_LEN} characters"
        fields["password"] = hash_password(password)
    return fields, None


@bp.route("/api/users", methods=["GET"])
@role_required("manager")
def users_list():
    rows = get_store().find(USERS, sort=[("createdAt", -1), ("_id", -1)], projection=NO_PASSWORD)
    return jsonify({"ok": True, "users": to_json(rows)})


@bp.route("/api/users", methods=["POST"])
@role_required("manager")
def users_create():
    fields, error = _parse_user(json_body(), creating=True)
    if error:
        return api_error(error, 400)
    store = get_store()
    if _email_taken(store, fields["email"]):
        return api_error("Email already registered", 409)
    fields.setdefault("contact", "")
    fields["createdAt"] = datetime.now(timezone.utc)
    try:
        uid = store.insert(USERS, fields)
    except DuplicateKeyError:
        return api_error("Email already registered", 409)
    record_activity("create", "user", uid, f"{fields['email']} ({fields['role']})")
    return jsonify({"ok": True, "id": uid}), 201


@bp.route("/api/users/<uid>", methods=["GET"])
@role_required("manager")
def users_get(uid):
    user = get_store().find_one(USERS, uid, projection=NO_PASSWORD)
    if not user:
        return api_error("User not found", 404)
    return jsonify({"ok": True, "user": to_json(user)})


@bp.route("/api/users/<uid>", methods=["PUT"])
@role_required("manager")
def users_update(uid):
    fields, error = _parse_user(json_body(), creating=False)
    if error:
        return api_error(error, 400)
    store = get_store()
    if "email" in fields and _email_taken(store, fields["email"], exclude_id=uid):
        return api_error("Email already registered", 409)
    fields["updatedAt"] = datetime.now(timezone.utc)
    if not store.update(USERS, uid, fields):
        return api_error("User not found", 404)
    changed = sorted(k for k in fields if k not in ("updatedAt", "password"))
    if "password" in fields:
        changed.append("password")
    record_activity("update", "user", uid, ", ".join(changed))
    return jsonify({"ok": True})


@bp.route("/api/users/<uid>", methods=["DELETE"])
@role_required("manager")
def users_delete(uid):
    if not get_store().delete(USERS, uid):
        return api_error("User not found", 404)
    record_activity("delete", "user", uid)
    return jsonify({"ok": True})
