# backend/estoque/routes/inflows.py
"""
Inflow ("entrada") routes.

Prices are accepted as decimal amounts (unitPrice, totalPrice) and stored in cents.
"""
from flask import Blueprint, current_app, request

from ..models import Inflow
from ..services.inventory_service import get_balance, list_inflows, record_inflow
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_inflow,
    parse_limit,
    validate_payload,
)


inflows_bp = Blueprint("inflows", __name__, url_prefix="/api/inflows")

INFLOW_POLICY = ModelValidationPolicy(
    writable_fields={"factoryCode", "quantity", "unitPrice", "totalPrice", "invoiceRef"},
    required_on_create={"factoryCode", "quantity", "unitPrice", "totalPrice"},
    aliases={
        "factoryCode": "factory_code",
        "unitPrice": "unit_price_cents",
        "totalPrice": "total_price_cents",
        "invoiceRef": "invoice_ref",
    },
    money_fields={"unitPrice", "totalPrice"},
    uppercase_fields={"factory_code"},
)


@inflows_bp.post("")
def create_inflow_route():
    """Record stock received for a registered product."""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}

    try:
        patch = validate_payload(model=Inflow, payload=payload, policy=INFLOW_POLICY)
        enforce_rules_inflow(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created_tx = record_inflow(
            factory_code=patch["factory_code"],
            quantity=patch["quantity"],
            unit_price_cents=patch["unit_price_cents"],
            total_price_cents=patch["total_price_cents"],
            invoice_ref=patch.get("invoice_ref"),
        )
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {
        "message": "Inflow registered.",
        "id": created_tx.id,
        "inflow": created_tx.to_dict(),
        "balance": get_balance(created_tx.factory_code),
    }, 201


@inflows_bp.get("")
def list_inflows_route():
    """
    List inflows, newest first.

    Query params:
    - factoryCode: optional product filter
    - limit: optional positive int (capped by MOVEMENT_LIST_MAX)
    """
    try:
        limit = parse_limit(request.args.get("limit"), maximum=current_app.config["MOVEMENT_LIST_MAX"])
    except ValidationError as e:
        return {"error": str(e)}, 400

    rows = list_inflows(factory_code=request.args.get("factoryCode"), limit=limit)
    return [r.to_dict() for r in rows], 200
