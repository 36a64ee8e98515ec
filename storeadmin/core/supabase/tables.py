"""PostgREST table operations (select/insert/update/delete)."""
from __future__ import annotations
from typing import Any, Iterable, Optional
from urllib.parse import quote

from .client import SupabaseClient

REST_PATH = "/rest/v1"
RETURN_ROWS = {"Prefer": "return=representation"}


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote_list_item(value: Any) -> str:
    # Reserved PostgREST characters inside in.(...) need double quotes
    text = _format_value(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def build_filters(eq: Optional[dict] = None, in_: Optional[dict] = None) -> dict:
    """Translate equality / membership filters to PostgREST query params."""
    params = {}
    for column, value in (eq or {}).items():
        params[column] = "is.null" if value is None else f"eq.{_format_value(value)}"
    for column, values in (in_ or {}).items():
        params[column] = f"in.({','.join(_quote_list_item(v) for v in values)})"
    return params


class TableService:
    """Service for reading and writing rows through PostgREST.

    Filters are dicts of ``column -> value`` (equality) and
    ``column -> iterable`` (membership). Write operations return the affected
    rows so callers can count them.
    """

    def __init__(self, client: SupabaseClient):
        self.client = client

    def _path(self, table: str) -> str:
        return f"{REST_PATH}/{quote(table)}"

    def select(
        self,
        table: str,
        columns: str = "*",
        *,
        eq: Optional[dict] = None,
        in_: Optional[dict] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Return rows of ``table`` matching the filters.

        Args:
            order: ``"column.asc"`` or ``"column.desc"``
        """
        params = {"select": columns}
        params.update(build_filters(eq, in_))
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        resp = self.client.get(self._path(table), params=params)
        return resp.json() or []

    def select_one(self, table: str, columns: str = "*", *, eq: Optional[dict] = None) -> Optional[dict]:
        """Return the first matching row or None."""
        rows = self.select(table, columns, eq=eq, limit=1)
        return rows[0] if rows else None

    def insert(self, table: str, rows: Iterable[dict]) -> list[dict]:
        resp = self.client.post(self._path(table), json=list(rows), headers=dict(RETURN_ROWS))
        return resp.json() or []

    def update(self, table: str, values: dict, *, eq: dict) -> list[dict]:
        """Update matching rows; returns the updated rows."""
        resp = self.client.patch(
            self._path(table), json=values, params=build_filters(eq), headers=dict(RETURN_ROWS)
        )
        return resp.json() or []

    def delete(self, table: str, *, eq: dict) -> list[dict]:
        """Delete matching rows; returns the deleted rows."""
        resp = self.client.delete(self._path(table), params=build_filters(eq), headers=dict(RETURN_ROWS))
        return resp.json() or []
