"""
Shared pytest fixtures for the Inventory Portal test suite.

The document store is an in-memory mongomock database; browser-based PDF
strategies are replaced with stand-ins that report themselves unavailable,
so the private chain falls through to the reportlab document strategy.
"""
import os
import sys
import base64
from datetime import datetime, timezone

import mongomock
import pytest
from bson import ObjectId

_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from inventory_portal.core.db import PRODUCTS, QUOTATIONS, USERS, DocumentStore  # noqa: E402
from inventory_portal.core.security import hash_password  # noqa: E402
from inventory_portal.forms.pdf_chain import PDFStrategy, RenderChain  # noqa: E402
from inventory_portal.forms.quotation_pdf import DocumentStrategy, build_public_chain  # noqa: E402

MANAGER = {"name": "Maria Manager", "email": "manager@test.com", "password": "manager-pass"}
RIDER = {"name": "Raza Rider", "email": "rider@test.com", "password": "rider-pass"}
OTHER_RIDER = {"name": "Omar Rider", "email": "omar@test.com", "password": "omar-pass"}


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """Redirect data and log output to an isolated tmp directory."""
    data = str(tmp_path / "data")
    os.makedirs(data, exist_ok=True)
    import logging_config
    from inventory_portal.core import paths
    monkeypatch.setattr(paths, "DATA_DIR", data)
    monkeypatch.setattr(paths, "LOG_DIR", os.path.join(data, "logs"))
    monkeypatch.setattr(logging_config, "LOG_DIR", os.path.join(data, "logs"))
    monkeypatch.setenv("DISABLE_RATE_LIMIT", "true")
    return data


# ── Store ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def store():
    s = DocumentStore(mongomock.MongoClient()["portal_test"])
    s.ensure_indexes()
    return s


def _add_user(store, user, role):
    return store.insert(USERS, {
        "name": user["name"], "email": user["email"], "role": role,
        "password": hash_password(user["password"]), "contact": "",
        "createdAt": datetime.now(timezone.utc),
    })


@pytest.fixture
def users(store):
    return {
        "manager": _add_user(store, MANAGER, "manager"),
        "rider": _add_user(store, RIDER, "rider"),
        "other_rider": _add_user(store, OTHER_RIDER, "rider"),
    }


@pytest.fixture
def products(store):
    now = datetime.now(timezone.utc)
    rows = [
        {"group": "Hosiery", "subGroup": "HS SHIRT COTTON", "productId": "1504",
         "name": "Cotton T-Shirt Full Sleeve", "quantity": 150, "price": 425},
        {"group": "Garments", "subGroup": "CASUAL PANTS", "productId": "2002",
         "name": "Casual Chino Pants Navy Blue", "quantity": 5, "price": 1200},
        {"group": "Accessories", "subGroup": "BELTS", "productId": "3001",
         "name": "Leather Belt Brown", "quantity": 8, "price": 650},
    ]
    return [store.insert(PRODUCTS, dict(r, imagePath=None, createdAt=now, updatedAt=now))
            for r in rows]


@pytest.fixture
def quotation_id(store, users, products):
    """Quotation by the rider: one live product and one deleted product."""
    return store.insert(QUOTATIONS, {
        "riderId": ObjectId(users["rider"]),
        "customerName": "Ali Khan",
        "customerPhone": "0300-1234567",
        "customerAddress": "12 Mall Road, Lahore",
        "items": [
            {"productId": ObjectId(products[0]), "quantity": 2, "price": 425},
            {"productId": ObjectId(), "quantity": 1, "price": 1150},
        ],
        "totalAmount": 2000,
        "status": "pending",
        "createdAt": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
    })


# ── PDF chains ────────────────────────────────────────────────────────────────

class UnavailableStrategy(PDFStrategy):
    """Stand-in for a browser strategy on a machine without chromium."""

    def __init__(self, name):
        self.name = name
        self.render_calls = 0

    def capability(self):
        return False, "no browser in test environment"

    def render(self, quotation, items):
        self.render_calls += 1
        raise AssertionError("unavailable strategy must not render")


@pytest.fixture
def private_chain():
    return RenderChain([
        UnavailableStrategy("server-browser"),
        UnavailableStrategy("local-browser"),
        DocumentStrategy(),
    ], timeout=30)


@pytest.fixture
def public_chain():
    return build_public_chain(timeout=30)


# ── Flask test client ─────────────────────────────────────────────────────────

def _basic_auth_header(user, pw):
    creds = base64.b64encode(f"{user}:{pw}".encode()).decode()
    return {"Authorization": f"Basic {creds}"}


class AuthenticatedClient:
    """Wraps Flask test client to add Basic Auth headers to every request."""
    def __init__(self, client, headers):
        self._client = client
        self._headers = headers

    def get(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.get(*args, **kwargs)

    def post(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.post(*args, **kwargs)

    def put(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.put(*args, **kwargs)

    def delete(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.delete(*args, **kwargs)


@pytest.fixture
def app(store, users, private_chain, public_chain):
    """Create Flask app configured for testing."""
    from app import create_app
    application = create_app(store=store, private_chain=private_chain,
                             public_chain=public_chain)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def manager_client(app):
    """Manager session (HTTP Basic Auth on every request)."""
    yield AuthenticatedClient(app.test_client(), _basic_auth_header(MANAGER["email"], MANAGER["password"]))


@pytest.fixture
def rider_client(app):
    yield AuthenticatedClient(app.test_client(), _basic_auth_header(RIDER["email"], RIDER["password"]))


@pytest.fixture
def other_rider_client(app):
    yield AuthenticatedClient(app.test_client(), _basic_auth_header(OTHER_RIDER["email"], OTHER_RIDER["password"]))


@pytest.fixture
def anon_client(app):
    """Unauthenticated test client."""
    yield app.test_client()


@pytest.fixture
def auth_header():
    return _basic_auth_header
