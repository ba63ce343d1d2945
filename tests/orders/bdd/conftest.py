"""Shared BDD fixtures and step definitions for orders."""

import pytest
from protean import current_domain
from protean.exceptions import InvalidOperationError
from pytest_bdd import given, parsers, then

from storefront.cart.items import AddToCart
from storefront.catalogue.product.product import Product
from storefront.orders.order import Order


@pytest.fixture()
def error():
    """Container for a captured rejection."""
    return {"exc": None}


@pytest.fixture()
def placed():
    """Holds the id of the order placed in the scenario."""
    return {"order_id": None}


def _load_order(placed) -> Order:
    return current_domain.repository_for(Order).get(placed["order_id"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a product priced {price:f} with {stock:d} in stock"), target_fixture="product")
def product_in_stock(make_product, price, stock):
    return make_product(price=price, stock=stock)


@given(parsers.cfparse('user "{user_id}" has {qty:d} of it in their cart'))
def user_cart(product, user_id, qty):
    current_domain.process(AddToCart(user_id=user_id, product_id=product.id, quantity=qty), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(placed, status):
    assert _load_order(placed).status == status


@then(parsers.cfparse('the order payment status is "{status}"'))
def payment_status_is(placed, status):
    assert _load_order(placed).payment_status == status


@then(parsers.cfparse("the product has {stock:d} in stock"))
def product_stock(product, stock):
    assert current_domain.repository_for(Product).get(product.id).stock == stock


@then("the order action fails as not allowed")
def action_not_allowed(error):
    assert isinstance(error["exc"], InvalidOperationError)
