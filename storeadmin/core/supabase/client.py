"""Low-level HTTP client for the Supabase Auth and REST APIs.

Handles API key headers, timeouts and error translation.
"""
from __future__ import annotations
from typing import Optional, Dict, Any

import requests

from .exceptions import SupabaseAPIError

REQUEST_TIMEOUT = 5


class SupabaseClient:
    """HTTP client for a Supabase project.

    Every request carries the project ``apikey`` header and, unless overridden
    with ``bearer=``, an ``Authorization`` header built from the same key.

    Usage:
        client = SupabaseClient("http://127.0.0.1:54321", service_role_key)
        response = client.get("/rest/v1/Profiles", params={"id": "eq.123"})
    """

    def __init__(self, base_url: str, api_key: str):
        """Initialize Supabase client.

        Args:
            base_url: Supabase project URL (e.g. https://xyz.supabase.co)
            api_key: anon or service-role key used for apikey/Authorization
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def _headers(self, bearer: Optional[str] = None, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer or self.api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def get(self, path: str, params: Optional[Dict] = None, bearer: Optional[str] = None, **kwargs) -> requests.Response:
        """Execute GET request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        headers = self._headers(bearer, kwargs.pop("headers", None))
        resp = requests.get(
            f"{self.base_url}{path}", params=params, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs
        )
        self._handle_error(resp)
        return resp

    def post(self, path: str, json: Any = None, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        headers = self._headers(None, kwargs.pop("headers", None))
        resp = requests.post(
            f"{self.base_url}{path}", json=json, params=params, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs
        )
        self._handle_error(resp)
        return resp

    def put(self, path: str, json: Any = None, **kwargs) -> requests.Response:
        """Execute PUT request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        headers = self._headers(None, kwargs.pop("headers", None))
        resp = requests.put(f"{self.base_url}{path}", json=json, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def patch(self, path: str, json: Any = None, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute PATCH request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        headers = self._headers(None, kwargs.pop("headers", None))
        resp = requests.patch(
            f"{self.base_url}{path}", json=json, params=params, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs
        )
        self._handle_error(resp)
        return resp

    def delete(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute DELETE request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        headers = self._headers(None, kwargs.pop("headers", None))
        resp = requests.delete(
            f"{self.base_url}{path}", params=params, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs
        )
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        GoTrue reports errors as ``msg``/``error_description``, PostgREST as
        ``message``; the first one present becomes the exception message.

        Raises:
            SupabaseAPIError: If response status indicates error
        """
        if resp.status_code < 400:
            return

        message = resp.text
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for key in ("msg", "error_description", "message", "error"):
                if body.get(key):
                    message = str(body[key])
                    break
        raise SupabaseAPIError(resp.status_code, message, resp.url)
