from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Upper bound for a single movement quantity
MAX_QUANTITY = 1_000_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate factory code)."""


class InsufficientBalanceError(ConflictError):
    """409-level: an outflow asked for more than the product has on hand."""

    def __init__(self, factory_code: str, requested: int, balance: int):
        self.factory_code = factory_code
        self.requested = requested
        self.balance = balance
        super().__init__(
            f"Insufficient balance for {factory_code}: requested {requested}, available {balance}"
        )

    def to_dict(self) -> dict:
        return {
            "error": "Insufficient balance",
            "factoryCode": self.factory_code,
            "requested": self.requested,
            "balance": self.balance,
        }


class NotFoundError(LookupError):
    """404-level: a referenced entity does not exist."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: JSON keys clients are allowed to send (security boundary)
    - required_on_create: JSON keys required for POST
    - aliases: JSON key -> model column key (camelCase API, snake_case columns)
    - money_fields: JSON keys holding decimal currency amounts; stored as integer cents
    - uppercase_fields: column keys normalized to uppercase after coercion
    """
    writable_fields: set[str]
    required_on_create: set[str] | None = None
    aliases: dict[str, str] | None = None
    money_fields: set[str] | None = None
    uppercase_fields: set[str] | None = None

    def column_for(self, key: str) -> str:
        return (self.aliases or {}).get(key, key)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_money(key: str, value: Any) -> int:
    """Decimal amount (number or numeric string) -> integer cents, half-up."""
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        raw = str(value)
    elif isinstance(value, str):
        raw = value.strip().replace(",", ".")
        if not raw:
            raise ValidationError(f"{key} must be a number")
    else:
        raise ValidationError(f"{key} must be a number")

    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a finite number")

    try:
        cents = (amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Exponent too large to express in whole cents
        raise ValidationError(f"{key} is out of range")
    return int(cents)


def _coerce_value(col, value: Any, key: str):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{key} must be an integer")
            # Reject scientific notation (e.g., "1e15", "1E10")
            if 'e' in stripped.lower():
                raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
            # Reject decimal points (e.g., "12.5")
            if '.' in stripped:
                raise ValidationError(f"{key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{key} must be an integer")
        # JSON numbers like 10.0 arrive as floats from some clients
        if isinstance(value, float):
            if value.is_integer():
                return int(value)
            raise ValidationError(f"{key} must be an integer, not a decimal")
        # Other types
        raise ValidationError(f"{key} must be an integer")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{key} must be a string")
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
) -> dict:
    """
    Validates + normalizes an incoming create payload against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create
    Returns a cleaned patch dict keyed by model column key.

    Records are append-only, so there are no patch semantics.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    missing = sorted(f for f in required if f not in payload)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    money = policy.money_fields or set()
    upper = policy.uppercase_fields or set()

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if policy.column_for(k) not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col_key = policy.column_for(k)
        col = cols[col_key]

        # NULL handling
        if raw is None:
            if not col.nullable or k in required:
                raise ValidationError(f"{k} cannot be null")
            patch[col_key] = None
            continue

        if k in money:
            val = _coerce_money(k, raw)
        else:
            val = _coerce_value(col, raw, k)

        # Blank string check for non-nullable / required text fields
        if isinstance(col.type, (String, Text)) and (not col.nullable or k in required):
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Optional text sent as "" is stored as NULL
        if isinstance(val, str) and val == "" and col.nullable:
            val = None

        if isinstance(val, str) and col_key in upper:
            val = val.upper()

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[col_key] = val

    return patch


def normalize_code(value: str | None) -> str | None:
    """Codes are compared and stored uppercase; blank means absent."""
    if value is None:
        return None
    s = str(value).strip().upper()
    return s or None


def _enforce_quantity(patch: dict) -> None:
    if "quantity" in patch:
        qty = patch["quantity"]
        if qty is None or qty <= 0:
            raise ValidationError("quantity must be > 0")
        if qty > MAX_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")


def _enforce_price(patch: dict, column: str, label: str) -> None:
    if column in patch and patch[column] is not None:
        price = patch[column]
        if price <= 0:
            raise ValidationError(f"{label} must be > 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"{label} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")


def enforce_rules_inflow(patch: dict) -> None:
    # INFLOW requires qty > 0 and both prices present and > 0
    _enforce_quantity(patch)
    _enforce_price(patch, "unit_price_cents", "unitPrice")
    _enforce_price(patch, "total_price_cents", "totalPrice")


def enforce_rules_outflow(patch: dict) -> None:
    # OUTFLOW requires qty > 0; the balance check happens in the service under lock
    _enforce_quantity(patch)


def parse_int_arg(raw: str | None, name: str, *, minimum: int = 0) -> int | None:
    """Parse an optional integer query value; blank means absent."""
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise ValidationError(f"{name} must be an integer >= {minimum}")
    if value < minimum:
        raise ValidationError(f"{name} must be an integer >= {minimum}")
    return value


def parse_limit(raw: str | None, *, maximum: int) -> int | None:
    """Parse an optional ?limit= query value (positive integer, capped)."""
    limit = parse_int_arg(raw, "limit", minimum=1)
    if limit is None:
        return None
    return min(limit, maximum)
