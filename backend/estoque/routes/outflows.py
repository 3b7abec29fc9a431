# backend/estoque/routes/outflows.py
"""
Outflow ("saída") routes.

The balance check is done server-side, under a per-product lock, at commit
time. Clients may show a balance beforehand but must not rely on it: an
outflow larger than the balance is answered with 409 and nothing is stored.
"""
from flask import Blueprint, current_app, request

from ..models import Outflow
from ..services.inventory_service import get_balance, list_outflows, record_outflow
from ..validation import (
    InsufficientBalanceError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_outflow,
    parse_limit,
    validate_payload,
)


outflows_bp = Blueprint("outflows", __name__, url_prefix="/api/outflows")

OUTFLOW_POLICY = ModelValidationPolicy(
    writable_fields={"factoryCode", "description", "quantity", "truckPlate", "recipient"},
    required_on_create={"factoryCode", "quantity", "truckPlate", "recipient"},
    aliases={
        "factoryCode": "factory_code",
        "truckPlate": "truck_plate",
    },
    uppercase_fields={"factory_code", "truck_plate"},
)


@outflows_bp.post("")
def create_outflow_route():
    """Record stock leaving; rejected with 409 when the balance does not cover it."""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}

    try:
        patch = validate_payload(model=Outflow, payload=payload, policy=OUTFLOW_POLICY)
        enforce_rules_outflow(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created_tx = record_outflow(
            factory_code=patch["factory_code"],
            quantity=patch["quantity"],
            truck_plate=patch["truck_plate"],
            recipient=patch["recipient"],
            description=patch.get("description"),
        )
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except InsufficientBalanceError as e:
        return e.to_dict(), 409

    return {
        "message": "Outflow registered.",
        "id": created_tx.id,
        "outflow": created_tx.to_dict(),
        "balance": get_balance(created_tx.factory_code),
    }, 201


@outflows_bp.get("/history")
def outflow_history_route():
    """
    Outflow history, newest first.

    Query params:
    - factoryCode: optional product filter
    - limit: optional positive int (capped by MOVEMENT_LIST_MAX)
    """
    try:
        limit = parse_limit(request.args.get("limit"), maximum=current_app.config["MOVEMENT_LIST_MAX"])
    except ValidationError as e:
        return {"error": str(e)}, 400

    rows = list_outflows(factory_code=request.args.get("factoryCode"), limit=limit)
    return [r.to_dict() for r in rows], 200
