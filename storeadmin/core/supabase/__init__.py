"""Supabase API client library.

This package wraps the two Supabase surfaces the application depends on.

Architecture:
- client.py: HTTP client with API key headers and error translation
- identity.py: Auth (GoTrue) sign-in, session resolution, identity admin
- tables.py: PostgREST select/insert/update/delete with eq/in filters
- exceptions.py: Typed exceptions for error handling

Usage:
    from storeadmin.core.supabase import build_backends

    identity, store = build_backends(cfg)
    profile = store.select_one("Profiles", eq={"id": user_id})
"""
from .client import SupabaseClient, REQUEST_TIMEOUT
from .exceptions import (
    SupabaseError,
    SupabaseAPIError,
    InvalidSessionError,
    IdentityAlreadyExistsError,
)
from .identity import IdentityService, token_fingerprint
from .tables import TableService, build_filters


def build_backends(cfg) -> tuple[IdentityService, TableService]:
    """Create the identity provider and relational store for an AppConfig."""
    admin_client = SupabaseClient(cfg.supabase_url, cfg.supabase_service_role_key)
    public_client = SupabaseClient(cfg.supabase_url, cfg.supabase_anon_key or cfg.supabase_service_role_key)
    identity = IdentityService(admin_client, public_client, jwt_secret=cfg.supabase_jwt_secret)
    store = TableService(admin_client)
    return identity, store


__all__ = [
    "SupabaseClient",
    "REQUEST_TIMEOUT",
    "SupabaseError",
    "SupabaseAPIError",
    "InvalidSessionError",
    "IdentityAlreadyExistsError",
    "IdentityService",
    "TableService",
    "build_filters",
    "build_backends",
    "token_fingerprint",
]
