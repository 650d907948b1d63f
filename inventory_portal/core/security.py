"""
Security Middleware - Session/Role Provider + Rate Limiting
===========================================================

Sessions:
- HTTP Basic credentials (email + password) checked against the users collection
- Resolved actor cached on flask.g for the rest of the request
- Two roles: manager (everything) and rider (catalog + own quotations)

Rate Limiting:
- In-memory token bucket per IP address
- Configurable limits per endpoint group
- 429 response when exceeded
"""

import os
import time
import logging
import functools
from collections import defaultdict
from threading import Lock

from flask import current_app, g, jsonify, request
from werkzeug.security import check_password_hash, generate_password_hash

from inventory_portal.core.db import USERS

log = logging.getLogger("portal.security")

ROLES = ("manager", "rider")


# ═══════════════════════════════════════════════════════════════════════════════
# Passwords
# ═══════════════════════════════════════════════════════════════════════════════

def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(stored_hash: str, password: str) -> bool:
    if not stored_hash or not password:
        return False
    try:
        return check_password_hash(stored_hash, password)
    except ValueError:
        # unknown hash method in a legacy record
        return False


# ═══════════════════════════════════════════════════════════════════════════════
# Session / Role Provider
# ═══════════════════════════════════════════════════════════════════════════════

def _actor_from_user(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "name": user.get("name", ""),
        "email": user.get("email", ""),
        "role": user.get("role", "rider"),
    }


def authenticate(store, email: str, password: str):
    """Return the actor dict for valid credentials, else None."""
    if not email or not password:
        return None
    user = store.find_one_by(USERS, {"email": email.strip().lower()})
    if not user or not verify_password(user.get("password", ""), password):
        return None
    return _actor_from_user(user)


def current_actor():
    """The authenticated actor for this request, or None for no session."""
    if "actor" in g:
        return g.actor
    actor = None
    auth = request.authorization
    if auth and auth.username:
        store = current_app.extensions["portal"]["store"]
        actor = authenticate(store, auth.username, auth.password)
        if actor is None:
            log.info("Rejected credentials for %s from %s",
                     auth.username, request.remote_addr)
    g.actor = actor
    return actor


def _unauthorized():
    resp = jsonify({"ok": False, "error": "Unauthorized"})
    resp.status_code = 401
    resp.headers["WWW-Authenticate"] = 'Basic realm="Inventory Portal"'
    return resp


def auth_required(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if current_actor() is None:
            return _unauthorized()
        return f(*args, **kwargs)
    return decorated


def role_required(*roles):
    """401 without a session, 403 when the actor's role is not allowed."""
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            actor = current_actor()
            if actor is None:
                return _unauthorized()
            if actor["role"] not in roles:
                log.warning("Forbidden: %s (%s) → %s %s",
                            actor["email"], actor["role"], request.method, request.path)
                return jsonify({"ok": False, "error": "Forbidden"}), 403
            return f(*args, **kwargs)
        return decorated
    return decorator


# ═══════════════════════════════════════════════════════════════════════════════
# Rate Limiting
# ═══════════════════════════════════════════════════════════════════════════════

class RateLimiter:
    """Simple in-memory rate limiter using token bucket algorithm.

    Idle buckets are evicted from check() every sweep_interval seconds. At
    max_buckets keys the sweep runs on every check and, if nothing is idle,
    the least recently used buckets are dropped.
    """

    def __init__(self, max_age: int = 3600, sweep_interval: int = 300,
                 max_buckets: int = 10_000):
        self._buckets = defaultdict(lambda: {"tokens": None, "last_refill": time.time()})
        self._lock = Lock()
        self.max_age = max_age
        self.sweep_interval = sweep_interval
        self.max_buckets = max_buckets
        self._last_sweep = time.time()

    def __len__(self):
        return len(self._buckets)

    def check(self, key: str, max_tokens: int = 60, refill_rate: float = 1.0) -> bool:
        """Check if request is allowed. Returns True if allowed, False if rate limited.

        Args:
            key: Unique key for the bucket (usually IP + endpoint group)
            max_tokens: Maximum burst capacity
            refill_rate: Tokens added per second
        """
        with self._lock:
            now = time.time()
            if len(self._buckets) >= self.max_buckets:
                self._evict(now, self.max_age)
                self._drop_oldest(len(self._buckets) - self.max_buckets + 1)
            elif now - self._last_sweep >= self.sweep_interval:
                self._evict(now, self.max_age)

            bucket = self._buckets[key]
            if bucket["tokens"] is None:
                bucket["tokens"] = max_tokens
            elapsed = now - bucket["last_refill"]

            bucket["tokens"] = min(max_tokens, bucket["tokens"] + elapsed * refill_rate)
            bucket["last_refill"] = now

            if bucket["tokens"] >= 1:
                bucket["tokens"] -= 1
                return True
            return False

    def cleanup(self, max_age: int = None):
        """Remove stale buckets older than max_age seconds."""
        with self._lock:
            self._evict(time.time(), self.max_age if max_age is None else max_age)

    def _evict(self, now: float, max_age: float):
        # caller holds self._lock
        stale = [k for k, v in self._buckets.items() if now - v["last_refill"] > max_age]
        for k in stale:
            del self._buckets[k]
        self._last_sweep = now
        if stale:
            log.debug("Rate limiter evicted %d idle buckets", len(stale))

    def _drop_oldest(self, count: int):
        # caller holds self._lock
        if count <= 0:
            return
        oldest = sorted(self._buckets, key=lambda k: self._buckets[k]["last_refill"])[:count]
        for k in oldest:
            del self._buckets[k]
        log.warning("Rate limiter at capacity (%d keys); dropped %d least recent",
                    self.max_buckets, len(oldest))


_limiter = RateLimiter()


RATE_LIMITS = {
    "default":     {"max_tokens": 60,  "refill_rate": 2.0},   # 120/min
    "api":         {"max_tokens": 30,  "refill_rate": 1.0},   # 60/min
    "heavy":       {"max_tokens": 10,  "refill_rate": 0.2},   # 12/min (PDF rendering)
}


def rate_limit(tier: str = "default"):
    """Decorator to apply rate limiting to a route."""
    def decorator(f):
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            if os.environ.get("DISABLE_RATE_LIMIT", "").lower() == "true":
                return f(*args, **kwargs)

            ip = request.remote_addr or "unknown"
            key = f"{ip}:{tier}"
            limits = RATE_LIMITS.get(tier, RATE_LIMITS["default"])

            if not _limiter.check(key, **limits):
                log.warning("Rate limit exceeded: %s tier=%s", ip, tier)
                return jsonify({"ok": False, "error": "Rate limit exceeded. Please try again shortly."}), 429

            return f(*args, **kwargs)
        return wrapper
    return decorator
