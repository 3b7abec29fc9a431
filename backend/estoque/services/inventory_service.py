# Overview: Service-layer operations for stock movements; encapsulates balance logic and database work.

# backend/estoque/services/inventory_service.py

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Product, Inflow, Outflow
from ..validation import InsufficientBalanceError, NotFoundError, normalize_code
from .concurrency import key_lock, lock_for_update, run_with_retry
"""
Estoque Balance Invariants (authoritative)

Stock model:
- Stock is ledger-derived from Inflow and Outflow rows; never stored as a mutable quantity field.
- balance(code) = SUM(inflows.quantity) - SUM(outflows.quantity), 0 when there are no rows.
- Movements are append-only. There is no update, delete, or reversal path.

Business invariants:
- Movement quantities are integers > 0 (validation layer + CHECK constraints).
- A committed outflow never takes the balance below zero.

Admission check (outflows):
- The balance read, the comparison and the insert happen inside one critical section
  keyed by factory code (key_lock) with the product row locked FOR UPDATE.
- Inflows take the same key lock so a concurrent admission check never reads a
  half-applied balance.
- A rejected outflow writes nothing: the transaction is rolled back before raising.

Time semantics:
- registered_at is server-assigned (UTC-naive) and serialized as ISO-8601 'Z'.
- Listings are newest first: registered_at DESC, id DESC.
"""


def _require_product(factory_code: str, *, lock: bool = False) -> Product:
    query = db.session.query(Product).filter_by(factory_code=factory_code)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError(f"Product {factory_code} not found")
    return product


def _total_inflow(factory_code: str) -> int:
    q = db.session.query(func.coalesce(func.sum(Inflow.quantity), 0)).filter(
        Inflow.factory_code == factory_code
    )
    return int(q.scalar() or 0)


def _total_outflow(factory_code: str) -> int:
    q = db.session.query(func.coalesce(func.sum(Outflow.quantity), 0)).filter(
        Outflow.factory_code == factory_code
    )
    return int(q.scalar() or 0)


def get_balance(factory_code: str) -> int:
    """
    Current balance for a factory code.

    Unknown codes and codes without movements both yield 0; absence of rows
    is not an error.
    """
    code = normalize_code(factory_code)
    if code is None:
        return 0
    return _total_inflow(code) - _total_outflow(code)


def get_balance_summary(factory_code: str) -> dict:
    code = normalize_code(factory_code) or ""
    return {"factoryCode": code, "balance": get_balance(code)}


def list_balances(*, low_stock_threshold: int) -> list[dict]:
    """
    Balance of every registered product, ordered by factory code.

    Uses two grouped aggregates instead of one query per product.
    """
    inflow_totals = dict(
        db.session.query(Inflow.factory_code, func.sum(Inflow.quantity))
        .group_by(Inflow.factory_code)
        .all()
    )
    outflow_totals = dict(
        db.session.query(Outflow.factory_code, func.sum(Outflow.quantity))
        .group_by(Outflow.factory_code)
        .all()
    )

    rows = []
    for p in db.session.query(Product).order_by(Product.factory_code.asc()).all():
        balance = int(inflow_totals.get(p.factory_code) or 0) - int(outflow_totals.get(p.factory_code) or 0)
        rows.append({
            "factoryCode": p.factory_code,
            "description": p.description,
            "unitOfMeasure": p.unit_of_measure,
            "balance": balance,
            "lowStock": balance <= low_stock_threshold,
        })
    return rows


def record_inflow(
    *,
    factory_code: str,
    quantity: int,
    unit_price_cents: int,
    total_price_cents: int,
    invoice_ref: str | None = None,
) -> Inflow:
    """
    Create an Inflow ("entrada") for a registered product.

    Raises:
        NotFoundError: If the factory code is not registered
    """
    code = normalize_code(factory_code)

    def _op():
        _require_product(code, lock=True)

        tx = Inflow(
            factory_code=code,
            quantity=quantity,
            unit_price_cents=unit_price_cents,
            total_price_cents=total_price_cents,
            invoice_ref=invoice_ref,
        )
        db.session.add(tx)
        db.session.commit()
        return tx

    with key_lock(code):
        tx = run_with_retry(_op)

    current_app.logger.info(
        "Inflow registered id=%s factory_code=%s quantity=%s", tx.id, code, quantity
    )
    return tx


def record_outflow(
    *,
    factory_code: str,
    quantity: int,
    truck_plate: str,
    recipient: str,
    description: str | None = None,
) -> Outflow:
    """
    Create an Outflow ("saída") after checking the balance covers it.

    The check and the insert run in one critical section per factory code,
    so two concurrent outflows can never both pass against the same stock.
    When description is omitted the product's current description is snapshotted.

    Raises:
        NotFoundError: If the factory code is not registered
        InsufficientBalanceError: If quantity exceeds the current balance
    """
    code = normalize_code(factory_code)

    def _op():
        product = _require_product(code, lock=True)

        balance = get_balance(code)
        if quantity > balance:
            db.session.rollback()
            raise InsufficientBalanceError(code, quantity, balance)

        tx = Outflow(
            factory_code=code,
            description=description if description is not None else product.description,
            quantity=quantity,
            truck_plate=truck_plate.upper(),
            recipient=recipient,
        )
        db.session.add(tx)
        db.session.commit()
        return tx

    with key_lock(code):
        try:
            tx = run_with_retry(_op)
        except InsufficientBalanceError as e:
            current_app.logger.warning(
                "Outflow rejected factory_code=%s requested=%s balance=%s",
                e.factory_code, e.requested, e.balance,
            )
            raise

    current_app.logger.info(
        "Outflow registered id=%s factory_code=%s quantity=%s", tx.id, code, quantity
    )
    return tx


def list_inflows(*, factory_code: str | None = None, limit: int | None = None) -> list[Inflow]:
    q = db.session.query(Inflow)
    code = normalize_code(factory_code)
    if code:
        q = q.filter(Inflow.factory_code == code)
    q = q.order_by(Inflow.registered_at.desc(), Inflow.id.desc())
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def list_outflows(*, factory_code: str | None = None, limit: int | None = None) -> list[Outflow]:
    """Outflow history, newest first; optionally for one product."""
    q = db.session.query(Outflow)
    code = normalize_code(factory_code)
    if code:
        q = q.filter(Outflow.factory_code == code)
    q = q.order_by(Outflow.registered_at.desc(), Outflow.id.desc())
    if limit is not None:
        q = q.limit(limit)
    return q.all()
