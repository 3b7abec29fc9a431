from __future__ import annotations

from ..extensions import db
from estoque.time_utils import to_utc_z, utcnow


def cents_to_amount(cents: int | None) -> float | None:
    if cents is None:
        return None
    return round(cents / 100, 2)


class Product(db.Model):
    """
    Product master data.

    FACTORY CODE DESIGN DECISION:
    Product.factory_code is the manufacturer-assigned identifier and the primary key.
    - Stored uppercase (normalized at write time by the validation layer)
    - Immutable once created: there is no update or delete path
    - supplier_code is an alternate lookup key and is NOT unique

    Stock is never stored on the product. Balance is derived from the
    inflows/outflows tables (see services/inventory_service.py).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_supplier_code", "supplier_code"),
    )

    factory_code = db.Column(db.String(64), primary_key=True)
    supplier_code = db.Column(db.String(64), nullable=True)
    description = db.Column(db.String(255), nullable=False)
    supplier_name = db.Column(db.String(255), nullable=True)
    unit_of_measure = db.Column(db.String(16), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Product factory_code={self.factory_code!r} description={self.description!r}>"

    def to_dict(self) -> dict:
        return {
            "factoryCode": self.factory_code,
            "supplierCode": self.supplier_code,
            "description": self.description,
            "supplierName": self.supplier_name,
            "unitOfMeasure": self.unit_of_measure,
            "createdAt": to_utc_z(self.created_at),
        }


class Inflow(db.Model):
    """
    Stock-increasing movement ("entrada").

    Append-only: rows are never updated or deleted.
    Prices are authoritative in cents; the API speaks decimal amounts.
    """
    __tablename__ = "inflows"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_inflows_quantity_positive"),
        db.Index("ix_inflows_factory_registered", "factory_code", "registered_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    factory_code = db.Column(
        db.String(64), db.ForeignKey("products.factory_code"), nullable=False, index=True
    )
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)
    invoice_ref = db.Column(db.String(64), nullable=True)

    # Server-assigned; clients cannot set it
    registered_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Inflow id={self.id} factory_code={self.factory_code!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "factoryCode": self.factory_code,
            "quantity": self.quantity,
            "unitPrice": cents_to_amount(self.unit_price_cents),
            "totalPrice": cents_to_amount(self.total_price_cents),
            "invoiceRef": self.invoice_ref,
            "registeredAt": to_utc_z(self.registered_at),
        }


class Outflow(db.Model):
    """
    Stock-decreasing movement ("saída").

    Append-only. description is a snapshot taken at registration time so the
    history keeps reading correctly even if the catalog wording changes later.

    INVARIANT: a committed outflow never takes the product balance below zero.
    Enforced by inventory_service.record_outflow, not by the schema.
    """
    __tablename__ = "outflows"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_outflows_quantity_positive"),
        db.Index("ix_outflows_factory_registered", "factory_code", "registered_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    factory_code = db.Column(
        db.String(64), db.ForeignKey("products.factory_code"), nullable=False, index=True
    )
    description = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    truck_plate = db.Column(db.String(16), nullable=False)
    recipient = db.Column(db.String(255), nullable=False)

    registered_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Outflow id={self.id} factory_code={self.factory_code!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "factoryCode": self.factory_code,
            "description": self.description,
            "quantity": self.quantity,
            "truckPlate": self.truck_plate,
            "recipient": self.recipient,
            "registeredAt": to_utc_z(self.registered_at),
        }
