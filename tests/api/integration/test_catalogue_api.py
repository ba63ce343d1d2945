"""Integration tests for product, category and search endpoints via TestClient."""

from protean import current_domain

from storefront.catalogue.product.product import Product


class TestProductEndpoints:
    def test_create_and_fetch(self, client, create_product):
        product_id = create_product(name="Desk Lamp", price=24.5, tags=["lighting"])

        response = client.get(f"/products/{product_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Desk Lamp"
        assert data["price"] == 24.5
        assert data["available_stock"] == 20

    def test_duplicate_sku_returns_400(self, client, create_product):
        create_product(sku="DUP-1")
        response = client.post("/products", json={"name": "Other", "sku": "DUP-1", "price": 5.0})
        assert response.status_code == 400

    def test_non_positive_price_rejected(self, client):
        response = client.post("/products", json={"name": "Free", "sku": "FREE-1", "price": 0})
        assert response.status_code == 422

    def test_unknown_product_returns_404(self, client):
        assert client.get("/products/does-not-exist").status_code == 404

    def test_update_stock(self, client, create_product):
        product_id = create_product()
        response = client.put(f"/products/{product_id}/stock", json={"stock": 7})
        assert response.status_code == 200
        assert current_domain.repository_for(Product).get(product_id).stock == 7

    def test_change_price(self, client, create_product):
        product_id = create_product()
        client.put(f"/products/{product_id}/price", json={"price": 12.0, "compare_price": 15.0})
        product = current_domain.repository_for(Product).get(product_id)
        assert (product.price, product.compare_price) == (12.0, 15.0)


class TestCategoryEndpoints:
    def test_tree_and_breadcrumbs(self, client):
        parent = client.post("/categories", json={"name": "Home"}).json()["id"]
        child = client.post("/categories", json={"name": "Lighting", "parent_id": parent}).json()["id"]

        tree = client.get("/categories/tree").json()
        assert [node["name"] for node in tree] == ["Home"]
        assert [node["name"] for node in tree[0]["children"]] == ["Lighting"]

        crumbs = client.get(f"/categories/{child}/breadcrumbs").json()
        assert [c["name"] for c in crumbs] == ["Home", "Lighting"]

    def test_move_under_own_child_is_refused(self, client):
        parent = client.post("/categories", json={"name": "Home"}).json()["id"]
        child = client.post("/categories", json={"name": "Lighting", "parent_id": parent}).json()["id"]

        response = client.put(f"/categories/{parent}/move", json={"new_parent_id": child})
        assert response.status_code == 422


class TestSearchEndpoints:
    def test_search_by_keyword(self, client, create_product):
        create_product(name="Brass Desk Lamp")
        create_product(name="Oak Table")

        response = client.get("/search", params={"q": "lamp"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["name"] == "Brass Desk Lamp"

    def test_page_size_is_bounded(self, client):
        assert client.get("/search", params={"page_size": 500}).status_code == 422

    def test_autocomplete(self, client, create_product):
        create_product(name="Lamp Shade")
        assert client.get("/search/autocomplete", params={"q": "lam"}).json() == ["lamp"]
