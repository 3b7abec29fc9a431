# Overview: Flask API routes for product registration and lookup; parses input and returns JSON responses.

# backend/estoque/routes/products.py
"""
Product registration and lookup routes.

Products are immutable once registered: there is no PUT or DELETE.
Factory and supplier codes are normalized to uppercase by the validation layer.
"""
from flask import Blueprint, request
from ..models import Product
from ..services.products_service import (
    create_product,
    get_product,
    list_products as list_products_service,
    search_product,
)
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
    parse_int_arg,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"factoryCode", "supplierCode", "description", "supplierName", "unitOfMeasure"},
    required_on_create={"factoryCode", "description"},
    aliases={
        "factoryCode": "factory_code",
        "supplierCode": "supplier_code",
        "supplierName": "supplier_name",
        "unitOfMeasure": "unit_of_measure",
    },
    uppercase_fields={"factory_code", "supplier_code"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.post("")
def create_product_route():
    """Register a new product. 409 when the factory code already exists."""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = create_product(patch=patch)
    except ConflictError as e:
        return {"error": str(e), "factoryCode": patch["factory_code"]}, 409
    except ValidationError as e:
        return {"error": str(e)}, 400

    return {"message": "Product registered.", "product": created, "factoryCode": created["factoryCode"]}, 201


@products_bp.get("/search")
def search_product_route():
    """
    Find one product.

    Query params (first non-blank one wins, in this order):
    - factoryCode: exact match
    - supplierCode: exact match
    - description: case-insensitive substring; first match only
    """
    try:
        product = search_product(
            factory_code=request.args.get("factoryCode"),
            supplier_code=request.args.get("supplierCode"),
            description=request.args.get("description"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400

    if product is None:
        return {"message": "Product not found."}, 404
    return product.to_dict(), 200


@products_bp.get("")
def list_products():
    """
    List all products with optional pagination.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    try:
        page = parse_int_arg(request.args.get("page"), "page", minimum=1)
        per_page = parse_int_arg(request.args.get("per_page"), "per_page", minimum=1)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return list_products_service(page=page, per_page=per_page), 200


@products_bp.get("/<string:factory_code>")
def get_product_route(factory_code: str):
    product = get_product(factory_code)
    if product is None:
        return {"message": "Product not found."}, 404
    return product.to_dict(), 200
