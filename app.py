#!/usr/bin/env python3
"""
Quotation Builder — Application Entry Point
Creates the Flask app, the editing session and registers the quote Blueprint.
"""

import os
import time
import logging

from flask import Flask, request

log = logging.getLogger("quotebuilder.api")


def create_app(session=None, config=None):
    """Application factory.

    Args:
        session: QuoteSession to serve (default: one restored from the draft slot)
        config: PaginationConfig override (default: file + env)
    """
    from quotebuilder.core.layout_config import load_pagination_config
    from quotebuilder.core.paths import validate_paths
    from quotebuilder.core.session import QuoteSession
    from quotebuilder.api.routes_quote import bp

    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "quotebuilder-dev")

    # ── Paths & layout config: a bad pagination setup fails here ─────────
    checks = validate_paths()
    for err in checks["errors"]:
        log.error("STARTUP: %s", err)
    for warn in checks["warnings"]:
        log.debug("STARTUP: %s", warn)

    if session is None:
        session = QuoteSession(config=config or load_pagination_config())
    app.extensions["quote_session"] = session

    app.register_blueprint(bp)

    # ── Request timing ─────────────────────────────────────────────────────
    @app.before_request
    def _log_request_start():
        request._start_time = time.time()

    @app.after_request
    def _log_request_end(response):
        if hasattr(request, "_start_time"):
            duration_ms = round((time.time() - request._start_time) * 1000, 1)
            # Skip health spam
            if request.path != "/api/health":
                log.info("%s %s → %d (%.0fms)",
                         request.method, request.path, response.status_code, duration_ms,
                         extra={"route": request.path, "method": request.method,
                                "status": response.status_code, "duration_ms": duration_ms})
        return response

    return app


if __name__ == "__main__":
    from logging_config import setup_logging
    from quotebuilder.core.layout_config import load_pagination_config
    pagination = load_pagination_config()
    setup_logging(pagination=pagination)
    port = int(os.environ.get("PORT", 5000))
    create_app(config=pagination).run(host="0.0.0.0", port=port, debug=False)
