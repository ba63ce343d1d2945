import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_configure(config):
    os.environ["PROTEAN_ENV"] = config.getoption("--env")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield
        _reset_infrastructure()


def _reset_infrastructure():
    from protean import current_domain

    from storefront.notifications.channel import reset_email_channel
    from storefront.payments.gateway import reset_gateway
    from storefront.shipping.carrier import reset_carrier

    for _, provider in current_domain.providers.items():
        provider._data_reset()
    current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_carrier()
    reset_email_channel()


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
@pytest.fixture
def make_product():
    """Create and persist a product through ``CreateProduct``; returns the Product."""
    from protean import current_domain

    from storefront.catalogue.product.management import CreateProduct
    from storefront.catalogue.product.product import Product

    counter = {"n": 0}

    def _make(name=None, price=10.0, stock=50, **overrides):
        counter["n"] += 1
        fields = {
            "name": name or f"Product {counter['n']}",
            "sku": overrides.pop("sku", f"SKU-{counter['n']:04d}"),
            "price": price,
            "stock": stock,
        }
        fields.update(overrides)
        product_id = current_domain.process(CreateProduct(**fields), asynchronous=False)
        return current_domain.repository_for(Product).get(product_id)

    return _make


@pytest.fixture
def address():
    return {
        "recipient_name": "Ada Lovelace",
        "phone": "+44 20 7946 0000",
        "street": "12 Analytical Way",
        "city": "London",
        "state": "Greater London",
        "postal_code": "N1 9GU",
        "country": "GB",
    }


@pytest.fixture
def fill_cart(make_product):
    """Put products in a registered user's cart; returns the products added."""
    from protean import current_domain

    from storefront.cart.items import AddToCart

    def _fill(user_id="user-1", lines=((10.0, 2),), stock=50):
        products = []
        for price, quantity in lines:
            product = make_product(price=price, stock=stock)
            current_domain.process(
                AddToCart(user_id=user_id, product_id=product.id, quantity=quantity),
                asynchronous=False,
            )
            products.append(product)
        return products

    return _fill


@pytest.fixture
def paid_order(fill_cart, address):
    """Check out a user's cart and return the confirmed, paid Order."""
    import json

    from protean import current_domain

    from storefront.checkout.completion import complete_checkout
    from storefront.checkout.creation import CreateCheckoutSession
    from storefront.orders.order import Order

    def _order(user_id="user-1", lines=((10.0, 2),), **checkout):
        fill_cart(user_id=user_id, lines=lines)
        session_id = current_domain.process(
            CreateCheckoutSession(
                user_id=user_id,
                shipping_address=json.dumps(address),
                payment_method=checkout.pop("payment_method", "credit_card"),
                **checkout,
            ),
            asynchronous=False,
        )
        order_id = complete_checkout(session_id, payment_id="pay_123")
        return current_domain.repository_for(Order).get(order_id)

    return _order
