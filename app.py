#!/usr/bin/env python3
"""
Rental document service — Application Entry Point
Creates the Flask app and registers the document Blueprint.
"""

import os
import logging
from flask import Flask

from logging_config import setup_logging


def create_app(service=None, init_logging=True):
    """Application factory.

    `service` is an optional preconfigured DocumentService; routes build a
    default one per request when it is absent.
    """
    if init_logging:
        setup_logging()
    log = logging.getLogger("rental")

    from rental_docs.core import settings
    app = Flask(__name__)
    app.secret_key = settings.get_setting("secret_key")
    app.config["DOCUMENT_SERVICE"] = service

    # ── Persistent database init ──────────────────────────────────────────────
    try:
        from rental_docs.core.db import startup as db_startup
        result = db_startup()
        log.info("DB: %s | orders=%d profiles=%d", result["db_path"],
                 result["stats"].get("orders", 0), result["stats"].get("user_profiles", 0))
    except Exception as e:
        log.warning("DB init skipped: %s", e)

    from rental_docs.core.paths import validate_paths
    paths = validate_paths()
    if not paths["ok"]:
        log.warning("Path check: %s", "; ".join(paths["errors"]))

    settings.startup_check()

    from rental_docs.api.routes import bp
    app.register_blueprint(bp)
    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=False)
