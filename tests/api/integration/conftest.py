import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers

from storefront.api import routers


@pytest.fixture()
def client():
    app = FastAPI()
    for router in routers:
        app.include_router(router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def create_product(client):
    counter = {"n": 0}

    def _create(**overrides):
        counter["n"] += 1
        body = {"name": f"Widget {counter['n']}", "sku": f"API-{counter['n']:03d}", "price": 10.0, "stock": 20}
        body.update(overrides)
        response = client.post("/products", json=body)
        assert response.status_code == 201
        return response.json()["id"]

    return _create
