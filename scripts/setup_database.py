#!/usr/bin/env python3
"""Initialize the portal database: indexes, default accounts, sample catalog.

Usage: python scripts/setup_database.py [--seed-products]

Steps:
  1. Create the unique/sort indexes the API relies on
  2. Create the default manager and rider accounts (skipped if the email exists)
  3. With --seed-products, insert the sample catalog (skipped per existing code)

Safe to re-run.
"""
import os
import sys
import argparse
from datetime import datetime, timezone

# Ensure repo root is in path
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, REPO_ROOT)

from inventory_portal.core import paths  # noqa: E402
from inventory_portal.core.db import PRODUCTS, USERS, DocumentStore  # noqa: E402
from inventory_portal.core.security import hash_password  # noqa: E402

DEFAULT_USERS = [
    {"name": "Admin User", "email": "admin@inventory.com", "password": "admin123",
     "role": "manager", "contact": "+1234567890"},
    {"name": "John Rider", "email": "rider@inventory.com", "password": "rider123",
     "role": "rider", "contact": "+1234567891"},
]

SAMPLE_PRODUCTS = [
    {"group": "Hosiery", "subGroup": "HS SHIRT MICRO INTERLOCK", "productId": "1503",
     "name": "T Shirt H/S NK UA Round Neck M L XL", "quantity": 200, "price": 345},
    {"group": "Hosiery", "subGroup": "HS SHIRT COTTON", "productId": "1504",
     "name": "Cotton T-Shirt Full Sleeve", "quantity": 150, "price": 425},
    {"group": "Garments", "subGroup": "FORMAL SHIRTS", "productId": "2001",
     "name": "Formal Shirt White Cotton", "quantity": 75, "price": 850},
    {"group": "Garments", "subGroup": "CASUAL PANTS", "productId": "2002",
     "name": "Casual Chino Pants Navy Blue", "quantity": 5, "price": 1200},
    {"group": "Accessories", "subGroup": "BELTS", "productId": "3001",
     "name": "Leather Belt Brown", "quantity": 8, "price": 650},
]


def create_default_users(store) -> list:
    created = []
    for user in DEFAULT_USERS:
        if store.find_one_by(USERS, {"email": user["email"]}):
            continue
        record = dict(user, password=hash_password(user["password"]),
                      createdAt=datetime.now(timezone.utc))
        store.insert(USERS, record)
        created.append(user["email"])
    return created


def seed_products(store) -> int:
    inserted = 0
    now = datetime.now(timezone.utc)
    for product in SAMPLE_PRODUCTS:
        if store.find_one_by(PRODUCTS, {"productId": product["productId"]}):
            continue
        store.insert(PRODUCTS, dict(product, imagePath=None, createdAt=now, updatedAt=now))
        inserted += 1
    return inserted


def setup_database(store, with_products: bool = False) -> dict:
    store.ensure_indexes()
    result = {"users": create_default_users(store), "products": 0}
    if with_products:
        result["products"] = seed_products(store)
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed-products", action="store_true",
                        help="insert the sample product catalog")
    args = parser.parse_args(argv)

    store = DocumentStore.from_uri(paths.MONGODB_URI, paths.MONGODB_DB)
    if not store.ping():
        print(f"  ❌ Cannot reach MongoDB at {paths.MONGODB_URI}")
        return 1

    result = setup_database(store, with_products=args.seed_products)
    print(f"  ✅ Indexes ensured on {paths.MONGODB_DB}")
    for email in result["users"]:
        default = next(u for u in DEFAULT_USERS if u["email"] == email)
        print(f"  ✅ Created {default['role']}: {email} / {default['password']}")
    if not result["users"]:
        print("  ⏭  Default users already present")
    if args.seed_products:
        print(f"  ✅ {result['products']} sample products inserted")
    counts = ", ".join(f"{name}={n}" for name, n in store.stats().items())
    print(f"  📊 {counts}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
