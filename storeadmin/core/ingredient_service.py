"""Ingredient listing for a store and a set of dates."""
from __future__ import annotations
import logging
from typing import Iterable

from storeadmin.core.errors import Internal, InvalidInput
from storeadmin.core.rbac import CallerContext
from storeadmin.core.supabase import SupabaseError, TableService

logger = logging.getLogger(__name__)

INGREDIENT_TABLE = "Ingredient"
INGREDIENT_COLUMNS = "ingredient_id,material_system_code,name,date,quantity"


def list_ingredients(store: TableService, caller: CallerContext, dates: Iterable[str]) -> list[dict]:
    """Return the caller's store ingredients for ``dates``, rows unchanged.

    Raises:
        InvalidInput: No dates given
        Internal: Store query failed
    """
    dates = list(dict.fromkeys(dates))
    if not dates:
        raise InvalidInput("Please provide week dates to fetch ingredients")

    try:
        return store.select(
            INGREDIENT_TABLE,
            INGREDIENT_COLUMNS,
            eq={"store_id": caller.store_id},
            in_={"date": dates},
        )
    except SupabaseError as exc:
        logger.error("Failed to fetch ingredients for store %s: %s", caller.store_id, exc)
        raise Internal("Unable to fetch ingredients. Please try again later.")
