"""Tests for cart endpoints."""

from conftest import ApiHarness, bearer

VARIATIONS = [{"name": "Color", "options": [{"value": "Blue", "price": 1800}, "Red"]}]


class TestCart:
    """Tests for cart operations."""

    def test_add_merges_identical_lines(self, api: ApiHarness) -> None:
        """The same selection grows one line."""
        user = api.user()
        product = api.product(price_cents=1500, variations=VARIATIONS)
        headers = bearer(user)
        body = {"product_id": product.id, "quantity": 1, "selected_variations": {"Color": "Blue"}}

        api.client.post("/cart", json=body, headers=headers)
        response = api.client.post("/cart", json=body, headers=headers)

        assert response.status_code == 201
        data = response.json()
        assert len(data["items"]) == 1
        assert data["items"][0]["quantity"] == 2
        assert data["items"][0]["unit_price_cents"] == 1800
        assert data["total_cents"] == 3600

    def test_zero_quantity(self, api: ApiHarness) -> None:
        """Quantity must be positive."""
        user = api.user()
        product = api.product()
        response = api.client.post("/cart", json={"product_id": product.id, "quantity": 0}, headers=bearer(user))
        assert response.status_code == 400
        assert response.json()["message"] == "quantity must be greater than 0"

    def test_missing_selection(self, api: ApiHarness) -> None:
        """Products with variations need a selection."""
        user = api.user()
        product = api.product(variations=VARIATIONS)
        response = api.client.post("/cart", json={"product_id": product.id}, headers=bearer(user))
        assert response.status_code == 400
        assert response.json()["message"] == "Please select Color"

    def test_remove_and_clear(self, api: ApiHarness) -> None:
        """Lines can be removed one at a time or all together."""
        user = api.user()
        headers = bearer(user)
        first = api.product(name="Case")
        second = api.product(name="Charger")
        api.client.post("/cart", json={"product_id": first.id}, headers=headers)
        cart = api.client.post("/cart", json={"product_id": second.id}, headers=headers).json()

        line = next(i for i in cart["items"] if i["product"]["id"] == first.id)
        after = api.client.request("DELETE", "/cart", json={"item_id": line["id"]}, headers=headers).json()
        assert [i["product"]["id"] for i in after["items"]] == [second.id]

        cleared = api.client.request("DELETE", "/cart", json={"all": True}, headers=headers).json()
        assert cleared["items"] == []

    def test_delete_needs_target(self, api: ApiHarness) -> None:
        """DELETE without item_id or all is rejected."""
        user = api.user()
        response = api.client.request("DELETE", "/cart", json={}, headers=bearer(user))
        assert response.status_code == 400
