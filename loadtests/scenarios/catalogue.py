"""Catalogue load test scenarios.

Merchandisers build category trees and stock products; browsers search,
page through results and open product pages.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import category_data, product_data, search_query
from loadtests.helpers.response import failure
from loadtests.helpers.state import CatalogueState


class CatalogueBuildJourney(SequentialTaskSet):
    """Create a category pair -> add products -> restock one -> reprice one."""

    def on_start(self):
        self.state = CatalogueState()

    @task
    def create_categories(self):
        parent_id = None
        for _ in range(2):
            with self.client.post(
                "/categories", json=category_data(parent_id), catch_response=True, name="POST /categories"
            ) as resp:
                if resp.status_code != 201:
                    resp.failure(failure(resp, "Create category"))
                    self.interrupt()
                    return
                parent_id = resp.json()["id"]
                self.state.category_ids.append(parent_id)

    @task
    def create_products(self):
        for _ in range(3):
            payload = product_data(category_id=random.choice(self.state.category_ids))
            with self.client.post("/products", json=payload, catch_response=True, name="POST /products") as resp:
                if resp.status_code == 201:
                    self.state.product_ids.append(resp.json()["id"])
                else:
                    resp.failure(failure(resp, "Create product"))

        if not self.state.product_ids:
            self.interrupt()

    @task
    def restock(self):
        product_id = random.choice(self.state.product_ids)
        with self.client.put(
            f"/products/{product_id}/stock",
            json={"stock": random.randint(100, 1000), "reason": "restock"},
            catch_response=True,
            name="PUT /products/{id}/stock",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(failure(resp, "Restock"))

    @task
    def reprice(self):
        product_id = random.choice(self.state.product_ids)
        with self.client.put(
            f"/products/{product_id}/price",
            json={"price": round(random.uniform(5.0, 250.0), 2)},
            catch_response=True,
            name="PUT /products/{id}/price",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(failure(resp, "Reprice"))

    @task
    def view_tree(self):
        self.client.get("/categories/tree", name="GET /categories/tree")

    @task
    def done(self):
        self.interrupt()


class BrowseJourney(SequentialTaskSet):
    """Search -> narrow by price -> open a hit -> ask for suggestions."""

    def on_start(self):
        self.hits = []

    @task
    def search(self):
        with self.client.get(
            "/search", params={"q": search_query()}, catch_response=True, name="GET /search"
        ) as resp:
            if resp.status_code == 200:
                self.hits = [item["product_id"] for item in resp.json()["items"]]
            else:
                resp.failure(failure(resp, "Search"))

    @task
    def filter_by_price(self):
        params = {"min_price": 10, "max_price": 100, "sort": random.choice(["price_asc", "price_desc", "newest"])}
        self.client.get("/search", params=params, name="GET /search?filters")

    @task
    def open_product(self):
        if not self.hits:
            return
        self.client.get(f"/products/{random.choice(self.hits)}", name="GET /products/{id}")

    @task
    def suggestions(self):
        self.client.get("/search/suggestions", params={"q": search_query()[:3]}, name="GET /search/suggestions")

    @task
    def done(self):
        self.interrupt()


class CatalogueUser(HttpUser):
    wait_time = between(0.5, 2)
    tasks = {BrowseJourney: 4, CatalogueBuildJourney: 1}
