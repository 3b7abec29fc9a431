# backend/estoque/services/products_service.py
"""
Products Service

Products are registered once and never updated or deleted.
- create_product enforces factory code uniqueness (409 on duplicate)
- search_product honors exactly one criterion per call
- list_products supports optional pagination
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, ValidationError, normalize_code
from .concurrency import run_with_retry

PRODUCT_FIELDS = {"factory_code", "supplier_code", "description", "supplier_name", "unit_of_measure"}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_product(factory_code: str) -> Product | None:
    code = normalize_code(factory_code)
    if code is None:
        return None
    return db.session.get(Product, code)


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Args:
        patch: Product data keyed by column (factory_code, description, ...)

    Returns:
        Created product dict

    Raises:
        ConflictError: If the factory code is already registered
    """
    factory_code = patch.get("factory_code")
    if not factory_code:
        raise ValidationError("factoryCode is required")

    def _op() -> dict:
        if db.session.get(Product, factory_code) is not None:
            raise ConflictError("Factory code already registered.")

        p = Product(**{k: v for k, v in patch.items() if k in PRODUCT_FIELDS})
        db.session.add(p)
        try:
            db.session.flush()
        except IntegrityError:
            # Lost a race against a concurrent registration of the same code
            db.session.rollback()
            raise ConflictError("Factory code already registered.")

        db.session.commit()
        return p.to_dict()

    created = run_with_retry(_op)
    current_app.logger.info("Product registered factory_code=%s", factory_code)
    return created


def search_product(
    *,
    factory_code: str | None = None,
    supplier_code: str | None = None,
    description: str | None = None,
) -> Product | None:
    """
    Single-result product lookup.

    Precedence when several criteria are given: factory code, then supplier
    code, then description. Only the winning criterion is applied.

    - factory_code / supplier_code: exact match (uppercased)
    - description: case-insensitive substring; first match by factory code

    Returns None when nothing matches.

    Raises:
        ValidationError: If no usable criterion is supplied
    """
    factory_code = normalize_code(factory_code)
    supplier_code = normalize_code(supplier_code)
    description = (description or "").strip() or None

    query = db.session.query(Product)
    if factory_code:
        query = query.filter(Product.factory_code == factory_code)
    elif supplier_code:
        query = query.filter(Product.supplier_code == supplier_code)
    elif description:
        pattern = f"%{_escape_like(description)}%"
        query = query.filter(Product.description.ilike(pattern, escape="\\"))
    else:
        raise ValidationError("Provide one of: factoryCode, supplierCode, description")

    return query.order_by(Product.factory_code.asc()).first()


def list_products(page: int | None = None, per_page: int | None = None) -> dict:
    """
    Product listing ordered by factory code, with optional pagination.

    Args:
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product).order_by(Product.factory_code.asc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    # Pagination logic
    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)  # Ensure page >= 1

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    # Past the last page: no query, so huge offsets never reach the driver
    if page > total_pages:
        products = []
    else:
        products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
