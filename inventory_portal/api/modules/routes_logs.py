# routes_logs.py - Activity log feed

from flask import jsonify

from inventory_portal.api.dashboard import api_error, bp, json_body, record_activity, services
from inventory_portal.core.activity import VALID_STATUSES
from inventory_portal.core.db import to_json
from inventory_portal.core.security import auth_required, role_required

FEED_LIMIT = 100


@bp.route("/api/logs", methods=["GET"])
@role_required("manager")
def logs_list():
    rows = services()["activity"].recent(FEED_LIMIT)
    return jsonify({"ok": True, "logs": to_json(rows)})


@bp.route("/api/logs", methods=["POST"])
@auth_required
def logs_create():
    """Client-side events (page views, exports) recorded for the caller."""
    body = json_body()
    action = str(body.get("action") or "").strip()
    resource = str(body.get("resource") or "").strip()
    if not action or not resource:
        return api_error("action and resource are required", 400)
    status = body.get("status") or "success"
    if status not in VALID_STATUSES:
        return api_error(f"status must be one of: {', '.join(VALID_STATUSES)}", 400)
    record_activity(action, resource, body.get("resourceId"),
                    str(body.get("details") or ""), status)
    return jsonify({"ok": True}), 201
