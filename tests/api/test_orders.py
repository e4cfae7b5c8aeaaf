"""Tests for order endpoints."""

from typing import Any

from fastapi.testclient import TestClient

from conftest import ApiHarness, bearer
from storefront.domain.state_machines import OrderStatus
from storefront.infrastructure.models import Product, User


class TestOrderViews:
    """Tests for reading orders."""

    def test_list_own_orders(self, api: ApiHarness) -> None:
        """Users only see their own orders."""
        user = api.user()
        other = api.user(email="other@example.com")
        product = api.product()
        mine = api.order(user, product)
        api.order(other, product)

        data = api.client.get("/orders", headers=bearer(user)).json()

        assert [o["id"] for o in data] == [mine.id]
        assert data[0]["item_count"] == 1

    def test_detail_lists_transitions(self, api: ApiHarness) -> None:
        """Order detail shows where the order may go next."""
        user = api.user()
        order = api.order(user, api.product(), status=OrderStatus.SHIPPED)

        data = api.client.get(f"/orders/{order.id}", headers=bearer(user)).json()

        assert data["status"] == "Shipped"
        assert set(data["allowed_transitions"]) == {"Delivered", "Cancelled"}

    def test_other_users_order_forbidden(self, api: ApiHarness) -> None:
        """Foreign orders are forbidden for customers."""
        owner = api.user()
        intruder = api.user(email="intruder@example.com")
        order = api.order(owner, api.product())

        response = api.client.get(f"/orders/{order.id}", headers=bearer(intruder))

        assert response.status_code == 403

    def test_requires_session(self, client: TestClient) -> None:
        """Anonymous requests are rejected."""
        assert client.get("/orders").status_code == 401


class TestOwnerUpdates:
    """Tests for customer edits."""

    def test_edit_shipping_updates_profile(self, api: ApiHarness) -> None:
        """Name, phone and address are copied to the profile."""
        user = api.user()
        order = api.order(user, api.product())

        response = api.client.put(
            f"/orders/{order.id}",
            json={"phone": "07111111111", "address": "2 Low Road", "email": "new@example.com"},
            headers=bearer(user),
        )

        assert response.status_code == 200
        assert response.json()["shipping_address"] == "2 Low Road"
        profile = api.load(User, user.id)
        assert profile.phone == "07111111111"
        assert profile.address == "2 Low Road"
        assert profile.email == "shopper@example.com"

    def test_cancel_restocks(self, api: ApiHarness) -> None:
        """Cancelling puts the units back."""
        user = api.user()
        product = api.product(stock=4)
        order = api.order(user, product, quantity=2)

        response = api.client.put(f"/orders/{order.id}", json={"cancel": True}, headers=bearer(user))

        assert response.json()["status"] == "Cancelled"
        assert api.load(Product, product.id).stock == 6

    def test_shipped_order_locked(self, api: ApiHarness) -> None:
        """Shipped orders cannot be edited by the customer."""
        user = api.user()
        order = api.order(user, api.product(), status=OrderStatus.SHIPPED)

        response = api.client.put(f"/orders/{order.id}", json={"address": "Elsewhere"}, headers=bearer(user))

        assert response.status_code == 400
        assert response.json()["details"] == {"status": "Shipped"}

    def test_empty_update(self, api: ApiHarness) -> None:
        """A body with no changes is rejected."""
        user = api.user()
        order = api.order(user, api.product())
        response = api.client.put(f"/orders/{order.id}", json={}, headers=bearer(user))
        assert response.status_code == 400
        assert response.json()["message"] == "No changes"


class TestAdminUpdates:
    """Tests for staff order changes."""

    def test_deliver_notifies_customer(self, api: ApiHarness, fakes: dict[str, Any]) -> None:
        """Status changes email the customer and stamp delivery."""
        admin = api.admin()
        user = api.user()
        order = api.order(user, api.product(), status=OrderStatus.SHIPPED)

        response = api.client.patch(
            f"/orders/{order.id}",
            json={"status": "Delivered", "comment": "Left with neighbour"},
            headers=bearer(admin),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Delivered"
        assert data["delivered_at"] is not None
        assert data["comments"][0]["message"] == "Left with neighbour"
        assert data["comments"][0]["author_role"] == "ADMIN"
        sent = fakes["mailer"].to(user.email)
        assert sent[0].subject == f"Order {order.id[:8]} is Delivered"

    def test_invalid_transition(self, api: ApiHarness) -> None:
        """Terminal orders cannot move."""
        admin = api.admin()
        order = api.order(api.user(), api.product(), status=OrderStatus.CANCELLED)

        response = api.client.patch(f"/orders/{order.id}", json={"status": "Shipped"}, headers=bearer(admin))

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_STATE_TRANSITION"

    def test_customer_cannot_patch(self, api: ApiHarness) -> None:
        """PATCH is staff only."""
        user = api.user()
        order = api.order(user, api.product())

        response = api.client.patch(f"/orders/{order.id}", json={"status": "Shipped"}, headers=bearer(user))

        assert response.status_code == 403


class TestReorderAndInvoice:
    """Tests for reorder and invoices."""

    def test_reorder_fills_cart(self, api: ApiHarness) -> None:
        """Reordering copies the lines back into the cart."""
        user = api.user()
        product = api.product(name="Screen protector")
        order = api.order(user, product, quantity=3, status=OrderStatus.DELIVERED)

        response = api.client.post(f"/orders/{order.id}/reorder", headers=bearer(user))

        assert response.status_code == 200
        items = response.json()["items"]
        assert items[0]["product"]["id"] == product.id
        assert items[0]["quantity"] == 3

    def test_invoice_lifecycle(self, api: ApiHarness) -> None:
        """Admins attach invoices and customers download them."""
        admin = api.admin()
        user = api.user()
        order = api.order(user, api.product())

        missing = api.client.get(f"/orders/{order.id}/invoice", headers=bearer(user))
        assert missing.status_code == 404
        assert missing.json()["message"] == "Invoice not found"

        saved = api.client.post(
            f"/orders/{order.id}/invoice",
            json={"number": "INV-0001", "url": "https://docs.test/inv-0001.pdf"},
            headers=bearer(admin),
        )
        assert saved.status_code == 200

        fetched = api.client.get(f"/orders/{order.id}/invoice", headers=bearer(user)).json()
        assert fetched["number"] == "INV-0001"
        assert fetched["url"] == "https://docs.test/inv-0001.pdf"

    def test_customer_cannot_attach_invoice(self, api: ApiHarness) -> None:
        """Only staff attach invoices."""
        user = api.user()
        order = api.order(user, api.product())

        response = api.client.post(
            f"/orders/{order.id}/invoice",
            json={"number": "INV-1", "url": "https://docs.test/1.pdf"},
            headers=bearer(user),
        )

        assert response.status_code == 403
