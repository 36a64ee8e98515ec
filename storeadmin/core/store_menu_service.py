"""Per-store menu: listing the store's items and toggling status/price."""
from __future__ import annotations
import logging
from typing import Iterable, Optional

from storeadmin.core.catalog_service import MENU_CSV_TABLE, MenuCodeLookup, now_iso
from storeadmin.core.errors import Internal, InvalidInput
from storeadmin.core.rbac import CallerContext
from storeadmin.core.supabase import SupabaseError, TableService
from storeadmin.core.validators import optional_bool, optional_number

logger = logging.getLogger(__name__)

STORE_ITEM_TABLE = "StoreItem"
STORE_MENU_ITEM_TABLE = "StoreMenuItem"


def unique_by_menu_id(items: Iterable[dict]) -> list[dict]:
    """Drop rows whose menu_id was already seen, keeping order."""
    seen = set()
    unique = []
    for item in items:
        menu_id = item.get("menu_id")
        if menu_id in seen:
            continue
        seen.add(menu_id)
        unique.append(item)
    return unique


def transform_store_item(item: dict, codes: MenuCodeLookup) -> dict:
    record = {
        "id": item.get("store_menu_item_id"),
        "menuId": item.get("menu_id"),
    }
    code = codes.code_for(item.get("menu_id"))
    if code is not None:
        record["menu_code"] = code
    price = item.get("price")
    record.update(
        name=item.get("menu_name"),
        price=None if price is None else float(price),
        isActive=item.get("status"),
    )
    return record


def list_store_menu(store: TableService, caller: CallerContext) -> list[dict]:
    """The caller's store items, one per menu_id, with menu codes."""
    try:
        items = store.select(STORE_ITEM_TABLE, "*", eq={"store_id": caller.store_id})
        mappings = store.select(MENU_CSV_TABLE, "menu_sys,menu_code")
    except SupabaseError as exc:
        logger.error("Failed to fetch menu items for store %s: %s", caller.store_id, exc)
        raise Internal("An unexpected error occurred while fetching menu items")

    codes = MenuCodeLookup(mappings, "menu_sys")
    return [transform_store_item(item, codes) for item in unique_by_menu_id(items)]


def update_store_menu_item(store: TableService, caller: CallerContext, name: str, payload: dict) -> Optional[bool]:
    """Update status/price of the caller's store item named ``name``.

    The stored ``status`` is the negation of the requested ``isActive``; the
    return value is that stored value (None when ``isActive`` was not sent).
    """
    if not name:
        raise InvalidInput("name is required")

    is_active = optional_bool(payload, "isActive")
    price = optional_number(payload, "price")

    values = {}
    if is_active is not None:
        values["status"] = not is_active
    if price is not None:
        values["price"] = price
    values["updated_at"] = now_iso()

    try:
        store.update(
            STORE_MENU_ITEM_TABLE,
            values,
            eq={"store_id": caller.store_id, "menu_name": name},
        )
    except SupabaseError as exc:
        logger.error("Failed to update menu item %r for store %s: %s", name, caller.store_id, exc)
        raise Internal("Unable to update menu item. Please try again later.")

    return values.get("status")
