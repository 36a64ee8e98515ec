"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Flask
    secret_key: str
    session_cookie_secure: bool = True
    session_type: str = "filesystem"

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""

    # Provisioning
    login_email_domain: str = "example.com"
    admin_role: str = "admin"
    store_role: str = "store"
    headquarters_company_code: str = "admin"

    # HTTP
    cors_allow_origin: str = "*"

    # Audit
    audit_log_signing_key: str = ""


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        print(f"[demo-mode] Using default for {var_name}")
        os.environ[var_name] = demo_default
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    # Flask secret key
    secret_key = _load_secret_from_file("flask_secret_key", "FLASK_SECRET_KEY")
    if not secret_key:
        if not demo_mode:
            raise RuntimeError("FLASK_SECRET_KEY not found in /run/secrets or environment")
        secret_key = secrets.token_urlsafe(48)
        os.environ["FLASK_SECRET_KEY"] = secret_key
        print("[demo-mode] Generated temporary FLASK_SECRET_KEY")

    # Supabase keys (service role key grants admin access to auth + tables)
    supabase_service_role_key = _load_secret_from_file(
        "supabase_service_role_key",
        "SUPABASE_SERVICE_ROLE_KEY",
    )
    if not supabase_service_role_key:
        supabase_service_role_key = _get_or_generate(
            "SUPABASE_SERVICE_ROLE_KEY",
            demo_default="demo-service-role-key",
            demo_mode=demo_mode,
        )

    supabase_jwt_secret = _load_secret_from_file("supabase_jwt_secret", "SUPABASE_JWT_SECRET") or ""

    supabase_url = _get_or_generate(
        "SUPABASE_URL",
        demo_default="http://127.0.0.1:54321",
        demo_mode=demo_mode,
    )
    supabase_anon_key = _get_or_generate(
        "SUPABASE_ANON_KEY",
        demo_default="demo-anon-key",
        demo_mode=demo_mode,
    )

    # Session cookie secure flag
    session_secure_str = os.environ.get("FLASK_SESSION_COOKIE_SECURE", "true")
    session_cookie_secure = session_secure_str.lower() == "true"
    session_type = os.environ.get("FLASK_SESSION_TYPE", "filesystem")

    # Roles
    admin_role = os.environ.get("ADMIN_ROLE", "admin").strip().lower()
    store_role = os.environ.get("STORE_ROLE", "store").strip().lower()
    headquarters_company_code = os.environ.get("HEADQUARTERS_COMPANY_CODE", "admin").strip()

    login_email_domain = os.environ.get("LOGIN_EMAIL_DOMAIN", "example.com").strip().lstrip("@")
    cors_allow_origin = os.environ.get("CORS_ALLOW_ORIGIN", "*").strip() or "*"

    # Audit
    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY") or ""
    if audit_log_signing_key:
        os.environ["AUDIT_LOG_SIGNING_KEY"] = audit_log_signing_key

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; supabase={supabase_url}; jwt_secret={'set' if supabase_jwt_secret else 'unset'}")

    if demo_mode:
        print("[settings] WARNING: Demo credentials in use. Do not deploy with these defaults.")

    return AppConfig(
        demo_mode=demo_mode,
        secret_key=secret_key,
        session_cookie_secure=session_cookie_secure,
        session_type=session_type,
        supabase_url=supabase_url,
        supabase_anon_key=supabase_anon_key,
        supabase_service_role_key=supabase_service_role_key,
        supabase_jwt_secret=supabase_jwt_secret,
        login_email_domain=login_email_domain,
        admin_role=admin_role,
        store_role=store_role,
        headquarters_company_code=headquarters_company_code,
        cors_allow_origin=cors_allow_origin,
        audit_log_signing_key=audit_log_signing_key,
    )
