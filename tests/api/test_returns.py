"""Tests for return request endpoints."""

from datetime import timedelta
from typing import Any

from conftest import ApiHarness, bearer
from storefront.domain.rules import utcnow
from storefront.domain.state_machines import OrderStatus
from storefront.infrastructure.models import Order


class TestReturns:
    """Tests for requesting and processing returns."""

    def _delivered(self, api: ApiHarness, days_ago: int = 1) -> tuple[Any, Order]:
        user = api.user()
        order = api.order(
            user,
            api.product(),
            status=OrderStatus.DELIVERED,
            delivered_at=utcnow() - timedelta(days=days_ago),
        )
        return user, order

    def test_request_within_window(self, api: ApiHarness, fakes: dict[str, Any]) -> None:
        """A return gets an RMA number and emails both parties."""
        user, order = self._delivered(api)

        response = api.client.post(
            f"/orders/{order.id}/returns",
            json={"reason": "Cracked screen", "notes": "Arrived damaged"},
            headers=bearer(user),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["rma_number"].startswith(f"RMA-{order.id[:6].upper()}-")
        assert len(fakes["mailer"].sent) == 2

    def test_window_expired(self, api: ApiHarness) -> None:
        """Returns close a few days after delivery."""
        user, order = self._delivered(api, days_ago=10)

        response = api.client.post(f"/orders/{order.id}/returns", json={"reason": "Changed mind"}, headers=bearer(user))

        assert response.status_code == 400
        assert response.json()["error_code"] == "RETURN_WINDOW"

    def test_reason_required(self, api: ApiHarness) -> None:
        """A blank reason is rejected."""
        user, order = self._delivered(api)
        response = api.client.post(f"/orders/{order.id}/returns", json={"reason": "  "}, headers=bearer(user))
        assert response.status_code == 400
        assert response.json()["message"] == "Reason is required"

    def test_one_open_return(self, api: ApiHarness) -> None:
        """A second return waits for the first to close."""
        user, order = self._delivered(api)
        headers = bearer(user)
        api.client.post(f"/orders/{order.id}/returns", json={"reason": "Faulty"}, headers=headers)

        response = api.client.post(f"/orders/{order.id}/returns", json={"reason": "Still faulty"}, headers=headers)

        assert response.status_code == 400

    def test_admin_accepts_then_completes(self, api: ApiHarness, fakes: dict[str, Any]) -> None:
        """Return decisions move the order along."""
        admin = api.admin()
        user, order = self._delivered(api)
        created = api.client.post(f"/orders/{order.id}/returns", json={"reason": "Faulty"}, headers=bearer(user)).json()

        accepted = api.client.patch(
            f"/orders/{order.id}/returns",
            json={"return_id": created["id"], "status": "accepted"},
            headers=bearer(admin),
        )
        assert accepted.json()["status"] == "accepted"
        assert api.load(Order, order.id).status == "Return request accepted"

        api.client.patch(
            f"/orders/{order.id}/returns",
            json={"return_id": created["id"], "status": "returned"},
            headers=bearer(admin),
        )
        assert api.load(Order, order.id).status == "Returned"

        listed = api.client.get(f"/orders/{order.id}/returns", headers=bearer(user)).json()
        assert [r["status"] for r in listed] == ["returned"]

    def test_declined_cannot_reopen(self, api: ApiHarness) -> None:
        """Declined returns are final."""
        admin = api.admin()
        user, order = self._delivered(api)
        created = api.client.post(f"/orders/{order.id}/returns", json={"reason": "Faulty"}, headers=bearer(user)).json()
        url = f"/orders/{order.id}/returns"
        api.client.patch(url, json={"return_id": created["id"], "status": "declined"}, headers=bearer(admin))

        response = api.client.patch(url, json={"return_id": created["id"], "status": "accepted"}, headers=bearer(admin))

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_STATE_TRANSITION"

    def test_customer_cannot_decide(self, api: ApiHarness) -> None:
        """PATCH is staff only."""
        user, order = self._delivered(api)
        response = api.client.patch(
            f"/orders/{order.id}/returns",
            json={"return_id": "x", "status": "accepted"},
            headers=bearer(user),
        )
        assert response.status_code == 403
