#!/usr/bin/env python3
"""
Inventory Portal - Application Entry Point
Creates the Flask app, wires the document store and PDF render chains, and
registers the API Blueprint.

For gunicorn: gunicorn 'app:create_app()'
"""

import os
import logging
from flask import Flask

from logging_config import setup_logging


def create_app(store=None, private_chain=None, public_chain=None):
    """Application factory.

    Every collaborator can be injected; anything omitted is built from the
    environment (see inventory_portal/core/paths.py).
    """
    from inventory_portal.core import paths
    from inventory_portal.core.activity import ActivityLogger
    from inventory_portal.core.db import DocumentStore
    from inventory_portal.forms.quotation_pdf import build_private_chain, build_public_chain

    setup_logging()
    log = logging.getLogger("portal")

    app = Flask(__name__)
    app.secret_key = paths.SECRET_KEY
    app.json.sort_keys = False

    # ── Path self-check ───────────────────────────────────────────────────────
    checks = paths.validate_paths()
    for err in checks["errors"]:
        log.error("PATHS: %s", err)
    for warn in checks["warnings"]:
        log.warning("PATHS: %s", warn)

    # ── Document store ────────────────────────────────────────────────────────
    if store is None:
        store = DocumentStore.from_uri(paths.MONGODB_URI, paths.MONGODB_DB)

    app.extensions["portal"] = {
        "store": store,
        "activity": ActivityLogger(store),
        "private_chain": private_chain or build_private_chain(),
        "public_chain": public_chain or build_public_chain(),
    }

    # Register the API blueprint (all routes)
    from inventory_portal.api.dashboard import bp
    app.register_blueprint(bp)

    log.info("Inventory Portal ready (db=%s, pdf timeout=%.0fs)",
             paths.MONGODB_DB, paths.PDF_STRATEGY_TIMEOUT)
    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=False)
