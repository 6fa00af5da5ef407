"""Tests for Product API endpoints."""
from datetime import datetime, timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient

from product_catalog.main import app
from product_catalog.services.product_service import PersistenceError

WIDGET = {
    "name": "Widget",
    "description": "d",
    "price": 9.99,
    "stockAvailable": 10,
    "category": "Tools"
}


def create(client, headers, **overrides):
    return client.post("/api/Product", json={**WIDGET, **overrides}, headers=headers)


def test_create_product(client, headers):
    """Test creating a new product."""
    response = create(client, headers)

    assert response.status_code == 201
    data = response.json()
    assert 100000 <= data["productId"] <= 999999
    assert data["name"] == "Widget"
    assert data["price"] == 9.99
    assert data["stockAvailable"] == 10
    assert data["category"] == "Tools"
    assert "createdAt" in data
    assert "updatedAt" in data
    assert response.headers["location"].endswith(f"/api/Product/{data['productId']}")


def test_created_ids_are_unique(client, headers):
    """Test every created product gets its own six-digit ID."""
    ids = {create(client, headers, name=f"Widget {i}").json()["productId"] for i in range(20)}

    assert len(ids) == 20
    assert all(100000 <= product_id <= 999999 for product_id in ids)


def test_create_product_invalid_price(client, headers):
    """Test creating product with a non-positive price fails."""
    response = create(client, headers, price=0)

    assert response.status_code == 400


def test_create_product_negative_stock(client, headers):
    """Test creating product with negative stock fails."""
    response = create(client, headers, stockAvailable=-5)

    assert response.status_code == 400


def test_create_product_name_too_long(client, headers):
    """Test the 50 character limit on names."""
    response = create(client, headers, name="x" * 51)

    assert response.status_code == 400


def test_create_product_description_too_long(client, headers):
    """Test the 100 character limit on descriptions."""
    response = create(client, headers, description="x" * 101)

    assert response.status_code == 400


def test_create_product_missing_field(client, headers):
    """Test a body without a category fails."""
    body = {k: v for k, v in WIDGET.items() if k != "category"}

    response = client.post("/api/Product", json=body, headers=headers)

    assert response.status_code == 400
    assert client.get("/api/Product", headers=headers).json() == []


def test_get_product(client, headers):
    """Test getting a product by ID."""
    product_id = create(client, headers).json()["productId"]

    response = client.get(f"/api/Product/{product_id}", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["productId"] == product_id
    assert data["name"] == "Widget"


def test_get_product_not_found(client, headers):
    """Test getting non-existent product returns 404."""
    response = client.get("/api/Product/123456", headers=headers)

    assert response.status_code == 404


def test_list_products(client, headers):
    """Test listing every product."""
    for i in range(5):
        create(client, headers, name=f"Product {i}", price=10.00 + i)

    response = client.get("/api/Product", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 5
    assert {item["name"] for item in data} == {f"Product {i}" for i in range(5)}


def test_update_product(client, headers):
    """Test updating a product overwrites its fields."""
    created = create(client, headers).json()

    response = client.put(
        f"/api/Product/{created['productId']}",
        json={
            "name": "Gadget",
            "description": "updated",
            "price": 19.5,
            "stockAvailable": 3,
            "category": "Toys"
        },
        headers=headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["productId"] == created["productId"]
    assert data["name"] == "Gadget"
    assert data["price"] == 19.5
    assert data["stockAvailable"] == 3
    assert data["category"] == "Toys"
    assert data["createdAt"] == created["createdAt"]


def test_update_product_not_found(client, headers):
    """Test updating a missing product returns 404 and creates nothing."""
    response = client.put("/api/Product/654321", json=WIDGET, headers=headers)

    assert response.status_code == 404
    assert client.get("/api/Product", headers=headers).json() == []


def test_delete_product(client, headers):
    """Test deleting a product echoes it and removes it."""
    product_id = create(client, headers).json()["productId"]

    response = client.delete(f"/api/Product/{product_id}", headers=headers)
    assert response.status_code == 200
    assert response.json()["productId"] == product_id

    get_response = client.get(f"/api/Product/{product_id}", headers=headers)
    assert get_response.status_code == 404


def test_delete_product_not_found(client, headers):
    """Test deleting a missing product returns 404."""
    response = client.delete("/api/Product/111111", headers=headers)

    assert response.status_code == 404


def test_stock_walkthrough(client, headers):
    """Test decrementing within and beyond the available stock."""
    product_id = create(client, headers).json()["productId"]

    response = client.put(f"/api/Product/decrement-stock/{product_id}/4", headers=headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Stock decremented successfully."
    assert client.get(f"/api/Product/{product_id}", headers=headers).json()["stockAvailable"] == 6

    response = client.put(f"/api/Product/decrement-stock/{product_id}/100", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient stock available."
    assert client.get(f"/api/Product/{product_id}", headers=headers).json()["stockAvailable"] == 6


def test_decrement_entire_stock(client, headers):
    """Test stock may reach exactly zero."""
    product_id = create(client, headers).json()["productId"]

    response = client.put(f"/api/Product/decrement-stock/{product_id}/10", headers=headers)

    assert response.status_code == 200
    assert client.get(f"/api/Product/{product_id}", headers=headers).json()["stockAvailable"] == 0


def test_decrement_invalid_quantity(client, headers):
    """Test zero and negative quantities are rejected without changes."""
    product_id = create(client, headers).json()["productId"]

    for quantity in (0, -3):
        response = client.put(f"/api/Product/decrement-stock/{product_id}/{quantity}", headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Quantity must be greater than zero."

    assert client.get(f"/api/Product/{product_id}", headers=headers).json()["stockAvailable"] == 10


def test_decrement_not_found(client, headers):
    """Test decrementing a missing product returns 404."""
    response = client.put("/api/Product/decrement-stock/222222/1", headers=headers)

    assert response.status_code == 404


def test_add_to_stock(client, headers):
    """Test adding units to stock."""
    created = create(client, headers).json()
    product_id = created["productId"]

    response = client.put(f"/api/Product/add-to-stock/{product_id}/5", headers=headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Stock added successfully."
    data = client.get(f"/api/Product/{product_id}", headers=headers).json()
    assert data["stockAvailable"] == 15
    assert data["updatedAt"] >= created["updatedAt"]


def test_add_to_stock_invalid_quantity(client, headers):
    """Test adding a non-positive quantity is rejected without changes."""
    product_id = create(client, headers).json()["productId"]

    response = client.put(f"/api/Product/add-to-stock/{product_id}/0", headers=headers)

    assert response.status_code == 400
    assert client.get(f"/api/Product/{product_id}", headers=headers).json()["stockAvailable"] == 10


def test_add_to_stock_not_found(client, headers):
    """Test adding stock to a missing product returns 404."""
    response = client.put("/api/Product/add-to-stock/333333/1", headers=headers)

    assert response.status_code == 404


def test_persistence_failure_is_opaque(client, headers):
    """Test storage failures answer 500 without leaking their cause."""
    with patch(
        "product_catalog.api.products.ProductService.get_all",
        side_effect=PersistenceError("connection refused by db-host-01"),
    ):
        response = client.get("/api/Product", headers=headers)

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"
    assert "db-host-01" not in response.text


def test_create_product_sub_cent_price(client, headers):
    """Test prices with more than two decimals are rejected up front."""
    response = create(client, headers, price=0.001)

    assert response.status_code == 400
    assert client.get("/api/Product", headers=headers).json() == []


def test_timestamps_carry_utc_offset(client, headers):
    """Test createdAt and updatedAt are serialized as UTC."""
    data = create(client, headers).json()

    for field in ("createdAt", "updatedAt"):
        value = datetime.fromisoformat(data[field].replace("Z", "+00:00"))
        assert value.utcoffset() == timedelta(0)


def test_unexpected_error_is_opaque(client, headers):
    """Test an arbitrary exception answers 500 without its message."""
    failing_client = TestClient(app, raise_server_exceptions=False)

    with patch(
        "product_catalog.api.products.ProductService.get_by_id",
        side_effect=RuntimeError("stack detail from worker-7"),
    ):
        response = failing_client.get("/api/Product/123456", headers=headers)

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert "worker-7" not in response.text
