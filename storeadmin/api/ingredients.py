"""Ingredient routes."""
from flask import Blueprint, request

from storeadmin.api.decorators import require_caller
from storeadmin.api.helpers.backends import get_store
from storeadmin.api.helpers.cors import register_preflight
from storeadmin.api.helpers.responses import success_response
from storeadmin.core import ingredient_service
from storeadmin.core.validators import parse_week_dates

bp = Blueprint("ingredients", __name__)


@bp.route("/ingredients", methods=["GET"], provide_automatic_options=False)
@require_caller()
def list_ingredients(caller):
    """List the caller's store ingredients for ``?weekDates=d1,d2,...``."""
    dates = parse_week_dates(request.args.get("weekDates"))
    ingredients = ingredient_service.list_ingredients(get_store(), caller, dates)
    return success_response(ingredients)


register_preflight(bp, "/ingredients", ["GET"])
