# Overview: Pytest coverage for the payload validation layer.

import pytest

from estoque.models import Inflow, Product
from estoque.validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_inflow,
    normalize_code,
    parse_int_arg,
    parse_limit,
    validate_payload,
)

POLICY = ModelValidationPolicy(
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


def _valid(**overrides):
    body = {"factoryCode": "ab-1", "quantity": "4", "unitPrice": 1.005, "totalPrice": "4.02"}
    body.update(overrides)
    return body


class TestValidatePayload:

    def test_aliases_money_and_uppercase(self):
        patch = validate_payload(model=Inflow, payload=_valid(), policy=POLICY)
        assert patch == {
            "factory_code": "AB-1",
            "quantity": 4,
            "unit_price_cents": 101,
            "total_price_cents": 402,
        }

    def test_blank_optional_text_becomes_null(self):
        patch = validate_payload(model=Inflow, payload=_valid(invoiceRef="  "), policy=POLICY)
        assert patch["invoice_ref"] is None

    def test_missing_fields_are_listed(self):
        with pytest.raises(ValidationError, match="quantity, totalPrice"):
            validate_payload(model=Inflow, payload={"factoryCode": "A", "unitPrice": 1}, policy=POLICY)

    def test_required_field_cannot_be_null(self):
        with pytest.raises(ValidationError, match="factoryCode cannot be null"):
            validate_payload(model=Inflow, payload=_valid(factoryCode=None), policy=POLICY)

    @pytest.mark.parametrize("price", ["1e30", 1e30, "-1E+40"])
    def test_price_beyond_decimal_precision(self, price):
        with pytest.raises(ValidationError, match="unitPrice is out of range"):
            validate_payload(model=Inflow, payload=_valid(unitPrice=price), policy=POLICY)

    def test_non_dict_payload(self):
        with pytest.raises(ValidationError):
            validate_payload(model=Inflow, payload=[1, 2], policy=POLICY)

    def test_scientific_notation_rejected(self):
        with pytest.raises(ValidationError, match="scientific"):
            validate_payload(model=Inflow, payload=_valid(quantity="1e3"), policy=POLICY)

    def test_integral_float_accepted(self):
        patch = validate_payload(model=Inflow, payload=_valid(quantity=10.0), policy=POLICY)
        assert patch["quantity"] == 10

    def test_max_length(self):
        policy = ModelValidationPolicy(
            writable_fields={"factoryCode", "description"},
            aliases={"factoryCode": "factory_code"},
        )
        with pytest.raises(ValidationError, match="max length 64"):
            validate_payload(model=Product, payload={"factoryCode": "X" * 65}, policy=policy)

    def test_object_for_text_rejected(self):
        policy = ModelValidationPolicy(writable_fields={"description"})
        with pytest.raises(ValidationError):
            validate_payload(model=Product, payload={"description": {"a": 1}}, policy=policy)


class TestBusinessRules:

    def test_inflow_rules(self):
        enforce_rules_inflow({"quantity": 1, "unit_price_cents": 1, "total_price_cents": 1})
        with pytest.raises(ValidationError):
            enforce_rules_inflow({"quantity": 1, "unit_price_cents": 0, "total_price_cents": 1})
        with pytest.raises(ValidationError):
            enforce_rules_inflow({"quantity": 1, "unit_price_cents": 1, "total_price_cents": 10**12})


class TestHelpers:

    @pytest.mark.parametrize("raw,expected", [(None, None), ("", None), ("  ", None), (" x-1 ", "X-1")])
    def test_normalize_code(self, raw, expected):
        assert normalize_code(raw) == expected

    def test_parse_limit(self):
        assert parse_limit(None, maximum=50) is None
        assert parse_limit("10", maximum=50) == 10
        assert parse_limit("999", maximum=50) == 50
        for bad in ("0", "-3", "x", "1.5", "²"):
            with pytest.raises(ValidationError):
                parse_limit(bad, maximum=50)

    def test_parse_int_arg(self):
        assert parse_int_arg(None, "page", minimum=1) is None
        assert parse_int_arg(" 3 ", "page", minimum=1) == 3
        assert parse_int_arg("0", "threshold") == 0
        for bad in ("abc", "²", "2.0", "-1"):
            with pytest.raises(ValidationError, match="threshold must be an integer >= 0"):
                parse_int_arg(bad, "threshold")
