"""Gunicorn configuration file.

Run with:
    gunicorn -c gunicorn.conf.py storeadmin.flask_app:app

Secrets (Flask secret key, Supabase service-role key, JWT secret, audit
signing key) are read by storeadmin.config.settings from /run/secrets first
and from the environment as fallback.
"""
import os

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Reports where secrets will come from so a misconfigured deployment is
    visible in the worker log before the first request fails.
    """
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"
    if demo_mode:
        worker.log.warning("DEMO_MODE=true - demo Supabase credentials in use")
        return

    from pathlib import Path
    secrets_dir = Path("/run/secrets")
    if secrets_dir.exists() and secrets_dir.is_dir():
        secret_files = list(secrets_dir.glob("*"))
        if secret_files:
            worker.log.info(f"Found {len(secret_files)} secrets in /run/secrets")
            return

    missing = [
        name
        for name in ("FLASK_SECRET_KEY", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY")
        if not os.environ.get(name)
    ]
    if missing:
        worker.log.error(f"Missing required settings: {', '.join(missing)}")
