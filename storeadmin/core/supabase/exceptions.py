"""Supabase-specific exceptions for error handling."""


class SupabaseError(Exception):
    """Base exception for all Supabase operations."""
    pass


class SupabaseAPIError(SupabaseError):
    """HTTP error from the Supabase Auth or REST API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class InvalidSessionError(SupabaseError):
    """Access token is missing, expired or rejected by the provider."""
    pass


class IdentityAlreadyExistsError(SupabaseError):
    """Identity creation failed - email already registered."""
    pass
