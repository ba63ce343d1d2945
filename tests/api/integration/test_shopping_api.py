"""Integration tests for cart and wishlist endpoints via TestClient."""

import pytest


class TestCartEndpoints:
    def test_empty_cart_is_created_on_read(self, client):
        response = client.get("/cart", params={"user_id": "user-1"})
        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["status"] == "active"

    def test_add_and_update(self, client, create_product):
        product_id = create_product(price=12.5)

        added = client.post("/cart/items", json={"user_id": "user-1", "product_id": product_id, "quantity": 2})
        assert added.status_code == 200
        assert added.json()["subtotal"] == 25.0

        updated = client.put(f"/cart/items/{product_id}", json={"user_id": "user-1", "quantity": 3})
        assert updated.json()["items"][0]["quantity"] == 3
        assert updated.json()["item_count"] == 3

    def test_quantity_above_line_cap_is_rejected(self, client, create_product):
        product_id = create_product()
        response = client.post("/cart/items", json={"user_id": "user-1", "product_id": product_id, "quantity": 101})
        assert response.status_code == 422

    def test_insufficient_stock_returns_400(self, client, create_product):
        product_id = create_product(stock=2)
        response = client.post("/cart/items", json={"user_id": "user-1", "product_id": product_id, "quantity": 3})
        assert response.status_code == 400

    def test_remove_and_clear(self, client, create_product):
        first, second = create_product(), create_product()
        for product_id in (first, second):
            client.post("/cart/items", json={"session_id": "guest-abc", "product_id": product_id})

        client.delete(f"/cart/items/{first}", params={"session_id": "guest-abc"})
        assert len(client.get("/cart", params={"session_id": "guest-abc"}).json()["items"]) == 1

        client.post("/cart/clear", json={"session_id": "guest-abc"})
        assert client.get("/cart", params={"session_id": "guest-abc"}).json()["items"] == []

    def test_merge_flow(self, client, create_product):
        product_id = create_product(price=8.0)
        client.post("/cart/items", json={"user_id": "user-1", "product_id": product_id, "quantity": 1})
        client.post("/cart/items", json={"session_id": "guest-abc", "product_id": product_id, "quantity": 2})

        preview = client.get("/cart/merge-conflicts", params={"user_id": "user-1", "session_id": "guest-abc"}).json()
        assert preview["has_conflict"] is True

        merged = client.post("/cart/merge", json={"user_id": "user-1", "session_id": "guest-abc"})
        assert merged.status_code == 200
        assert merged.json()["items"][0]["quantity"] == 3


class TestWishlistEndpoints:
    @pytest.fixture
    def product_id(self, create_product):
        return create_product()

    def test_add_count_and_contains(self, client, product_id):
        assert client.post("/wishlist/user-1/items", json={"product_id": product_id}).status_code == 201
        assert client.get("/wishlist/user-1/count").json() == {"count": 1}
        assert client.get(f"/wishlist/user-1/items/{product_id}").json() == {"in_wishlist": True}

    def test_listing_embeds_product(self, client, product_id):
        client.post("/wishlist/user-1/items", json={"product_id": product_id})
        page = client.get("/wishlist/user-1").json()
        assert page["items"][0]["product"]["id"] == product_id

    def test_remove_and_clear(self, client, product_id, create_product):
        client.post("/wishlist/user-1/items", json={"product_id": product_id})
        client.post("/wishlist/user-1/items", json={"product_id": create_product()})

        client.delete(f"/wishlist/user-1/items/{product_id}")
        assert client.get("/wishlist/user-1/count").json() == {"count": 1}

        client.delete("/wishlist/user-1")
        assert client.get("/wishlist/user-1/count").json() == {"count": 0}

    def test_removing_missing_item_returns_400(self, client, product_id):
        assert client.delete(f"/wishlist/user-1/items/{product_id}").status_code == 400
