"""Headquarters menu catalog: listing and partial updates.

Catalog items (``MenuItem``) carry no menu code of their own; codes live in
``MenuCsv`` keyed by the item id rendered as a string. ``MenuCodeLookup``
builds that mapping once per request.
"""
from __future__ import annotations
import datetime
import logging
from typing import Any, Iterable, Optional

from storeadmin.core.errors import Internal, InvalidInput, NotFound
from storeadmin.core.supabase import SupabaseError, TableService
from storeadmin.core.validators import optional_bool, optional_number

logger = logging.getLogger(__name__)

MENU_ITEM_TABLE = "MenuItem"
MENU_ITEM_COLUMNS = "menu_id,name,price,status,description,K,other"
MENU_CSV_TABLE = "MenuCsv"


class MenuCodeLookup:
    """Menu codes keyed by normalized system code (first mapping wins)."""

    def __init__(self, rows: Iterable[dict], key_column: str):
        self._codes: dict[str, str] = {}
        for row in rows:
            key = self.normalize(row.get(key_column))
            if key is not None and key not in self._codes:
                self._codes[key] = row.get("menu_code")

    @staticmethod
    def normalize(value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value).strip()

    def code_for(self, menu_id: Any) -> Optional[str]:
        return self._codes.get(self.normalize(menu_id))

    def __len__(self) -> int:
        return len(self._codes)


def now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def _price(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def transform_catalog_item(item: dict, codes: MenuCodeLookup) -> dict:
    record = {"id": item["menu_id"]}
    code = codes.code_for(item["menu_id"])
    if code is not None:
        record["menu_code"] = code
    record.update(
        name=item.get("name"),
        price=_price(item.get("price")),
        isActive=item.get("status"),
        description=item.get("description"),
        K=item.get("K"),
        other=item.get("other"),
    )
    return record


def list_menu(store: TableService) -> list[dict]:
    """All catalog items ordered by id, each with its menu code when known."""
    try:
        items = store.select(MENU_ITEM_TABLE, MENU_ITEM_COLUMNS, order="menu_id.asc")
        mappings = store.select(MENU_CSV_TABLE, "menu_system_code,menu_code")
    except SupabaseError as exc:
        logger.error("Database error while listing catalog: %s", exc)
        raise Internal("Error fetching available menu items")

    codes = MenuCodeLookup(mappings, "menu_system_code")
    return [transform_catalog_item(item, codes) for item in items]


def catalog_patch(payload: dict) -> dict:
    """Column values for the fields present in an update request."""
    values = {}
    is_active = optional_bool(payload, "isActive")
    if is_active is not None:
        values["status"] = is_active
    price = optional_number(payload, "price")
    if price is not None:
        values["price"] = price
    k_flag = optional_bool(payload, "K")
    if k_flag is not None:
        values["K"] = k_flag
    if "other" in payload:
        values["other"] = payload["other"]
    return values


def update_menu_item(store: TableService, name: str, payload: dict) -> int:
    """Apply a partial update to the catalog item(s) named ``name``.

    Returns:
        Number of rows the store reports as updated. Zero for an existing
        item is still a success.

    Raises:
        InvalidInput: ``name`` missing or a field has the wrong type
        NotFound: No item with that name
        Internal: Store failure
    """
    if not name:
        raise InvalidInput("name is required")
    values = catalog_patch(payload)

    try:
        existing = store.select_one(MENU_ITEM_TABLE, "menu_id", eq={"name": name})
        if not existing:
            raise NotFound("Available menu item not found")
        values["updated_at"] = now_iso()
        updated = store.update(MENU_ITEM_TABLE, values, eq={"name": name})
    except SupabaseError as exc:
        logger.error("Update error for catalog item %r: %s", name, exc)
        raise Internal("Error updating available menu item")

    logger.info("Catalog item %r updated (%d rows, fields=%s)", name, len(updated), sorted(values))
    return len(updated)
