"""Tests for the checkout endpoint."""

from typing import Any

from conftest import ApiHarness, bearer
from storefront.infrastructure.models import Order, Product


class TestCheckout:
    """Tests for placing orders."""

    def test_card_checkout(self, api: ApiHarness, fakes: dict[str, Any]) -> None:
        """Card orders return the payment page and empty the cart."""
        user = api.user()
        product = api.product(price_cents=2000, stock=5)
        headers = bearer(user)
        api.client.post("/cart", json={"product_id": product.id, "quantity": 2}, headers=headers)

        response = api.client.post(
            "/checkout",
            json={"method": "card", "shipping": {"address": "1 High Street", "phone": "0700"}},
            headers=headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["url"] == f"https://pay.test/{data['order_id']}"
        assert api.client.get("/cart", headers=headers).json()["items"] == []
        assert api.load(Product, product.id).stock == 3
        assert api.load(Order, data["order_id"]).payment_session_id is not None

    def test_cod_checkout(self, api: ApiHarness, fakes: dict[str, Any]) -> None:
        """Cash on delivery returns a confirmation message and emails both parties."""
        user = api.user()
        product = api.product()
        headers = bearer(user)
        api.client.post("/cart", json={"product_id": product.id}, headers=headers)

        response = api.client.post("/checkout", json={"method": "cod"}, headers=headers)

        assert response.status_code == 201
        assert response.json()["message"] == "Order confirmed for Cash on Delivery."
        assert fakes["mailer"].subjects() == [
            "Order confirmed (Cash on Delivery)",
            "Admin copy: Order confirmed (Cash on Delivery)",
        ]

    def test_empty_cart(self, api: ApiHarness) -> None:
        """An empty cart cannot be checked out."""
        user = api.user()
        response = api.client.post("/checkout", json={}, headers=bearer(user))
        assert response.status_code == 400
        assert response.json()["error_code"] == "CART_EMPTY"

    def test_insufficient_stock(self, api: ApiHarness) -> None:
        """Orders beyond stock are rejected."""
        user = api.user()
        product = api.product(stock=1)
        headers = bearer(user)
        api.client.post("/cart", json={"product_id": product.id, "quantity": 2}, headers=headers)

        response = api.client.post("/checkout", json={"method": "cod"}, headers=headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "INSUFFICIENT_STOCK"

    def test_payment_failure_rolls_back(self, api: ApiHarness, fakes: dict[str, Any]) -> None:
        """A payment provider failure leaves the cart and stock untouched."""
        fakes["payments"].fail = True
        user = api.user()
        product = api.product(stock=5)
        headers = bearer(user)
        api.client.post("/cart", json={"product_id": product.id}, headers=headers)

        response = api.client.post("/checkout", json={"method": "card"}, headers=headers)

        assert response.status_code == 502
        assert len(api.client.get("/cart", headers=headers).json()["items"]) == 1
        assert api.load(Product, product.id).stock == 5
        assert api.client.get("/orders", headers=headers).json() == []
