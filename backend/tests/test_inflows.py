# Overview: Pytest coverage for inflow ("entrada") registration.

"""
Inflow Tests

- Required fields and quantity/price rules
- Decimal prices stored as cents
- Unknown products are rejected with 404
- Listing is newest first
"""

import pytest
from estoque.models import Inflow
from estoque.services.inventory_service import record_inflow
from estoque.validation import NotFoundError


def _inflow(**overrides):
    body = {
        "factoryCode": "X-500",
        "quantity": 10,
        "unitPrice": 12.5,
        "totalPrice": 125.0,
        "invoiceRef": "NF-0001",
    }
    body.update(overrides)
    return body


class TestInflowRegistration:
    """POST /api/inflows"""

    def test_create_inflow(self, client, product_x500, db_session):
        response = client.post("/api/inflows", json=_inflow())

        assert response.status_code == 201
        data = response.get_json()
        assert data["balance"] == 10
        assert data["inflow"]["quantity"] == 10
        assert data["inflow"]["unitPrice"] == 12.5
        assert data["inflow"]["totalPrice"] == 125.0
        assert data["inflow"]["registeredAt"].endswith("Z")

        stored = db_session.get(Inflow, data["id"])
        assert stored.unit_price_cents == 1250
        assert stored.total_price_cents == 12500

    def test_factory_code_is_normalized(self, client, product_x500):
        response = client.post("/api/inflows", json=_inflow(factoryCode=" x-500 "))
        assert response.status_code == 201
        assert response.get_json()["inflow"]["factoryCode"] == "X-500"

    def test_invoice_ref_is_optional(self, client, product_x500):
        body = _inflow()
        del body["invoiceRef"]
        response = client.post("/api/inflows", json=body)
        assert response.status_code == 201
        assert response.get_json()["inflow"]["invoiceRef"] is None

    def test_prices_accept_numeric_strings(self, client, product_x500):
        response = client.post("/api/inflows", json=_inflow(unitPrice="3,335", totalPrice="33.35"))
        assert response.status_code == 201
        # half-up to the cent
        assert response.get_json()["inflow"]["unitPrice"] == 3.34

    @pytest.mark.parametrize("field", ["factoryCode", "quantity", "unitPrice", "totalPrice"])
    def test_missing_required_field(self, client, product_x500, db_session, field):
        body = _inflow()
        del body[field]
        response = client.post("/api/inflows", json=body)
        assert response.status_code == 400
        assert field in response.get_json()["error"]
        assert db_session.query(Inflow).count() == 0

    @pytest.mark.parametrize("overrides", [
        {"quantity": 0},
        {"quantity": -4},
        {"quantity": 2.5},
        {"quantity": "ten"},
        {"quantity": True},
        {"unitPrice": 0},
        {"totalPrice": -1},
        {"unitPrice": "abc"},
        {"unitPrice": "NaN"},
        {"unitPrice": "1e30"},
        {"totalPrice": 1e30},
    ])
    def test_invalid_values(self, client, product_x500, db_session, overrides):
        response = client.post("/api/inflows", json=_inflow(**overrides))
        assert response.status_code == 400
        assert db_session.query(Inflow).count() == 0

    def test_unknown_product(self, client, db_session):
        response = client.post("/api/inflows", json=_inflow(factoryCode="GHOST"))
        assert response.status_code == 404
        assert db_session.query(Inflow).count() == 0

    def test_service_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            record_inflow(factory_code="GHOST", quantity=1, unit_price_cents=1, total_price_cents=1)


class TestInflowListing:
    """GET /api/inflows"""

    def test_newest_first_with_filter_and_limit(self, client, make_product, stock):
        make_product("A-1", "First")
        make_product("B-2", "Second")
        first = stock.receive("A-1", 1)
        stock.receive("B-2", 2)
        last = stock.receive("A-1", 3)

        rows = client.get("/api/inflows?factoryCode=a-1").get_json()
        assert [r["id"] for r in rows] == [last.id, first.id]

        rows = client.get("/api/inflows?limit=1").get_json()
        assert len(rows) == 1
        assert rows[0]["id"] == last.id

    def test_bad_limit(self, client, db_session):
        assert client.get("/api/inflows?limit=-1").status_code == 400
        assert client.get("/api/inflows?limit=abc").status_code == 400
        assert client.get("/api/inflows?limit=%C2%B2").status_code == 400
