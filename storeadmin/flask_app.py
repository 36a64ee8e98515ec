"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, error handlers and backends.
"""
from __future__ import annotations
import logging
import os
from tempfile import gettempdir
from typing import Optional

from flask import Flask
from flask_session import Session
from werkzeug.middleware.proxy_fix import ProxyFix

from storeadmin.config import load_settings
from storeadmin.core.supabase import IdentityService, TableService, build_backends


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(identity: Optional[IdentityService] = None, store: Optional[TableService] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        identity: Identity provider to use instead of the Supabase Auth client
        store: Table store to use instead of the Supabase PostgREST client
    """
    cfg = load_settings()

    app = Flask(__name__)

    # Store config for easy access in routes
    app.config["APP_CONFIG"] = cfg
    app.config["SECRET_KEY"] = cfg.secret_key

    # Server-side session holding the provider token after login
    app.config["SESSION_TYPE"] = cfg.session_type
    if app.config["SESSION_TYPE"] == "filesystem":
        session_dir = os.environ.get("FLASK_SESSION_DIR") or os.path.join(gettempdir(), "storeadmin_flask_session")
        os.makedirs(session_dir, exist_ok=True)
        app.config["SESSION_FILE_DIR"] = session_dir

    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = cfg.session_cookie_secure

    Session(app)

    # Trust X-Forwarded-* headers from proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    _configure_logging(app)

    # Backends
    from storeadmin.api.helpers.backends import init_backends
    if identity is None or store is None:
        default_identity, default_store = build_backends(cfg)
        identity = identity or default_identity
        store = store or default_store
    init_backends(app, identity, store)

    # Register blueprints
    from storeadmin.api import auth, errors, health, ingredients, menu, menu_items, users

    app.register_blueprint(health.bp)
    app.register_blueprint(auth.bp)
    app.register_blueprint(ingredients.bp)
    app.register_blueprint(menu.bp)
    app.register_blueprint(menu_items.bp)
    app.register_blueprint(users.bp)

    # CORS allow-lists collected from the blueprints' preflight registrations
    from storeadmin.api.helpers.cors import init_cors
    init_cors(app, cfg)

    errors.register_error_handlers(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    app.logger.info("Store admin API ready (mode=%s, supabase=%s)", mode_label, cfg.supabase_url)
    if cfg.demo_mode:
        app.logger.warning("Demo mode active - do not deploy with demo credentials")

    return app


def _configure_logging(app: Flask) -> None:
    """Apply LOG_LEVEL to the app and package loggers."""
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger("storeadmin").setLevel(level)


# ─────────────────────────────────────────────────────────────────────────────
# Application Instance (for Gunicorn)
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
