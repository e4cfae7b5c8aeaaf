"""Tests for review and question endpoints."""

from typing import Any

from fastapi.testclient import TestClient

from conftest import ApiHarness, bearer


def review_body(product_id: str, rating: int = 5, title: str = "Great", text: str = "Works well") -> dict[str, Any]:
    return {"product_id": product_id, "rating": rating, "title": title, "review": text}


class TestReviews:
    """Tests for product reviews."""

    def test_write_and_list(self, api: ApiHarness) -> None:
        """Reviews are listed with the product average."""
        product = api.product()
        alice = api.user(email="alice@example.com", name="Alice")
        bob = api.user(email="bob@example.com", name="Bob")

        created = api.client.post("/reviews", json=review_body(product.id, 5), headers=bearer(alice))
        api.client.post("/reviews", json=review_body(product.id, 2), headers=bearer(bob))

        assert created.status_code == 201
        assert created.json()["user"] == {"name": "Alice", "email": "alice@example.com"}

        data = api.client.get("/reviews", params={"product_id": product.id}).json()
        assert data["count"] == 2
        assert data["average"] == 3.5

    def test_second_review_overwrites(self, api: ApiHarness) -> None:
        """One review per user and product."""
        product = api.product()
        user = api.user()
        api.client.post("/reviews", json=review_body(product.id, 1, "Bad"), headers=bearer(user))
        api.client.post("/reviews", json=review_body(product.id, 4, "Better"), headers=bearer(user))

        data = api.client.get("/reviews", params={"product_id": product.id}).json()

        assert data["count"] == 1
        assert data["reviews"][0]["title"] == "Better"

    def test_rating_range(self, api: ApiHarness) -> None:
        """Ratings run from 1 to 5."""
        product = api.product()
        user = api.user()
        response = api.client.post("/reviews", json=review_body(product.id, 6), headers=bearer(user))
        assert response.status_code == 400
        assert response.json()["message"] == "Rating must be 1-5"

    def test_product_id_required(self, client: TestClient) -> None:
        """Listing needs a product."""
        assert client.get("/reviews").status_code == 400

    def test_summary(self, api: ApiHarness) -> None:
        """The summary is keyed by product ID."""
        product = api.product()
        user = api.user()
        api.client.post("/reviews", json=review_body(product.id, 4), headers=bearer(user))

        summary = api.client.get("/reviews/summary").json()

        assert summary == {product.id: {"average": 4.0, "count": 1}}

    def test_delete_rules(self, api: ApiHarness) -> None:
        """Authors and admins may delete; others may not."""
        product = api.product()
        author = api.user()
        stranger = api.user(email="stranger@example.com")
        admin = api.admin()
        review = api.client.post("/reviews", json=review_body(product.id), headers=bearer(author)).json()

        assert api.client.delete(f"/reviews/{review['id']}", headers=bearer(stranger)).status_code == 403
        assert api.client.delete(f"/reviews/{review['id']}", headers=bearer(admin)).json()["deleted"] is True
        assert api.client.delete(f"/reviews/{review['id']}", headers=bearer(author)).status_code == 404


class TestQuestions:
    """Tests for product questions and answers."""

    def test_ask_and_answer(self, api: ApiHarness, fakes: dict[str, Any]) -> None:
        """Questions notify the shop; answers notify the asker."""
        product = api.product(name="Galaxy S24")
        user = api.user()
        admin = api.admin()

        asked = api.client.post(
            "/questions",
            json={"product_id": product.id, "question": "Does it support eSIM?"},
            headers=bearer(user),
        )
        assert asked.status_code == 201
        question_id = asked.json()["id"]

        answered = api.client.post(
            f"/questions/{question_id}",
            json={"answer": "Yes, dual eSIM."},
            headers=bearer(admin),
        )
        assert answered.status_code == 201
        assert answered.json()["answers"][0]["body"] == "Yes, dual eSIM."

        assert fakes["mailer"].subjects() == [
            "New question: Galaxy S24",
            "Answer to your question about Galaxy S24",
        ]
        assert fakes["mailer"].sent[1].to == user.email

    def test_list_and_get(self, api: ApiHarness) -> None:
        """Questions are public to read."""
        product = api.product()
        user = api.user()
        asked = api.client.post(
            "/questions",
            json={"product_id": product.id, "question": "Is it unlocked?"},
            headers=bearer(user),
        ).json()

        listed = api.client.get("/questions", params={"product_id": product.id}).json()
        single = api.client.get(f"/questions/{asked['id']}").json()

        assert [q["question"] for q in listed] == ["Is it unlocked?"]
        assert single["product_name"] == product.name

    def test_customer_cannot_answer(self, api: ApiHarness) -> None:
        """Only staff answer questions."""
        product = api.product()
        user = api.user()
        asked = api.client.post(
            "/questions",
            json={"product_id": product.id, "question": "Battery size?"},
            headers=bearer(user),
        ).json()

        response = api.client.post(f"/questions/{asked['id']}", json={"answer": "Big"}, headers=bearer(user))

        assert response.status_code == 403

    def test_unknown_question(self, client: TestClient) -> None:
        """Missing questions are 404."""
        assert client.get("/questions/nope").status_code == 404
