"""
Activity log - best-effort audit trail of who did what.

record() never raises: a failed insert is logged and dropped so the
primary operation's outcome is unaffected.
"""

import logging
from datetime import datetime, timezone

from inventory_portal.core.db import ACTIVITY_LOGS

log = logging.getLogger("portal.activity")

VALID_STATUSES = ("success", "error", "warning")


class ActivityLogger:

    def __init__(self, store):
        self.store = store

    def record(self, actor: dict, action: str, resource: str, resource_id: str = None,
               details: str = "", status: str = "success",
               ip_address: str = "unknown", user_agent: str = "unknown") -> bool:
        """Insert one activity entry. Returns True if it was stored."""
        actor = actor or {}
        if status not in VALID_STATUSES:
            status = "success"
        entry = {
            "userId":     actor.get("id", ""),
            "userName":   actor.get("name", ""),
            "userRole":   actor.get("role", ""),
            "action":     action,
            "resource":   resource,
            "resourceId": resource_id,
            "details":    (details or "")[:500],
            "status":     status,
            "ipAddress":  ip_address or "unknown",
            "userAgent":  (user_agent or "unknown")[:200],
            "timestamp":  datetime.now(timezone.utc),
        }
        try:
            self.store.insert(ACTIVITY_LOGS, entry)
            return True
        except Exception as e:
            log.warning("Activity log write failed (%s %s): %s", action, resource, e)
            return False

    def recent(self, limit: int = 100) -> list:
        return self.store.find(ACTIVITY_LOGS, sort=[("timestamp", -1), ("_id", -1)], limit=limit)
