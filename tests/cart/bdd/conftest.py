"""Cart steps shared by the item and lifecycle features."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from storefront.cart import events as cart_events
from storefront.cart.cart import ShoppingCart


def _fresh(cart):
    cart._events.clear()
    return cart


@pytest.fixture()
def error():
    return {"exc": None}


@given("an active cart", target_fixture="cart")
def active_cart():
    return _fresh(ShoppingCart.create(user_id="user-1"))


@given(parsers.cfparse('an active guest cart for session "{session_id}"'), target_fixture="cart")
def active_guest_cart(session_id):
    return _fresh(ShoppingCart.create(session_id=session_id))


@given(parsers.cfparse('the cart holds {qty:d} of product "{product_id}" at {price:f}'), target_fixture="cart")
def cart_holding(cart, qty, product_id, price):
    cart.add_item(product_id=product_id, quantity=qty, price=price)
    return _fresh(cart)


@given("the cart is converted", target_fixture="cart")
def converted_cart(cart):
    cart.mark_converted()
    return _fresh(cart)


@given("the cart is abandoned", target_fixture="cart")
def abandoned_cart(cart):
    cart.mark_abandoned()
    return _fresh(cart)


@then(parsers.cfparse('the cart status is "{status}"'))
def cart_status_is(cart, status):
    assert cart.status == status


@then(parsers.cfparse("the cart total is {amount:f}"))
def cart_total_is(cart, amount):
    assert cart.total == amount


@then(parsers.cfparse("the cart counts {units:d} units"))
def cart_counts_units(cart, units):
    assert cart.item_count == units


@then("the cart action fails with a validation error")
def cart_action_fails(error):
    assert isinstance(error["exc"], ValidationError), "Expected a validation error but none was raised"


@then(parsers.cfparse("a {event_type} cart event is raised"))
def cart_event_raised(cart, event_type):
    event_cls = getattr(cart_events, event_type)
    assert any(isinstance(e, event_cls) for e in cart._events)
