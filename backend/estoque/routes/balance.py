# backend/estoque/routes/balance.py
"""
Balance routes.

Balance is derived on every call from the full movement history; nothing is cached.
"""
from flask import Blueprint, current_app, request

from ..services.inventory_service import get_balance_summary, list_balances
from ..validation import ValidationError, parse_int_arg


balance_bp = Blueprint("balance", __name__, url_prefix="/api/balance")


@balance_bp.get("/<string:factory_code>")
def balance_route(factory_code: str):
    """{factoryCode, balance}; unknown codes report 0, not 404."""
    return get_balance_summary(factory_code), 200


@balance_bp.get("")
def balances_route():
    """
    Balance of every product with a low-stock flag.

    Query params:
    - threshold: optional int >= 0 overriding LOW_STOCK_THRESHOLD (400 otherwise)
    """
    try:
        threshold = parse_int_arg(request.args.get("threshold"), "threshold")
    except ValidationError as e:
        return {"error": str(e)}, 400
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    return list_balances(low_stock_threshold=threshold), 200
