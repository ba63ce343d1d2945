"""Application tests for cart item commands and the stock holds behind them."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.cart.cart import CartStatus, ShoppingCart
from storefront.cart.items import AddToCart, RemoveFromCart, UpdateCartItem
from storefront.cart.management import AbandonCart, ClearCart, GetOrCreateCart
from storefront.inventory.availability import available_stock
from storefront.inventory.reservation import ReservationStatus, StockReservation
from storefront.shared.errors import InsufficientStockError

SESSION = "guest-session-01"


def _add(product, quantity=1, **owner):
    owner = owner or {"session_id": SESSION}
    return current_domain.process(
        AddToCart(product_id=product.id, quantity=quantity, **owner),
        asynchronous=False,
    )


def _holds(product):
    return current_domain.repository_for(StockReservation).active_for_product(product.id)


class TestGetOrCreateCart:
    def test_creates_once_per_owner(self):
        first = current_domain.process(GetOrCreateCart(session_id=SESSION), asynchronous=False)
        second = current_domain.process(GetOrCreateCart(session_id=SESSION), asynchronous=False)
        assert first == second

    def test_requires_an_owner(self):
        with pytest.raises(ValidationError):
            current_domain.process(GetOrCreateCart(), asynchronous=False)


class TestAddToCart:
    def test_adds_line_at_product_price(self, make_product):
        product = make_product(price=12.5, stock=10)
        cart_id = _add(product, 2)

        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert cart.quantity_of(product.id) == 2
        assert cart.subtotal == 25.0
        assert cart.get_item(product.id).product_name == product.name

    def test_holds_stock_for_the_line(self, make_product):
        product = make_product(stock=10)
        _add(product, 3)

        holds = _holds(product)
        assert len(holds) == 1
        assert holds[0].quantity == 3
        assert available_stock(product.id) == 7

    def test_topping_up_resizes_the_single_hold(self, make_product):
        product = make_product(stock=10)
        _add(product, 2)
        _add(product, 3)

        holds = _holds(product)
        assert len(holds) == 1
        assert holds[0].quantity == 5

    def test_cannot_take_more_than_available(self, make_product):
        product = make_product(stock=3)
        with pytest.raises(InsufficientStockError) as exc:
            _add(product, 4)
        assert exc.value.available == 3

    def test_other_shoppers_holds_reduce_availability(self, make_product):
        product = make_product(stock=5)
        _add(product, 4, session_id="another-guest-01")
        with pytest.raises(InsufficientStockError):
            _add(product, 2)

    def test_inactive_product_cannot_be_added(self, make_product):
        product = make_product(stock=5, status="inactive")
        with pytest.raises(ValidationError):
            _add(product)

    def test_user_cart_is_used_when_user_given(self, make_product):
        product = make_product()
        cart_id = _add(product, 1, user_id="user-1", session_id=SESSION)
        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert str(cart.user_id) == "user-1"


class TestUpdateAndRemove:
    def test_update_quantity_resizes_line_and_hold(self, make_product):
        product = make_product(stock=10)
        cart_id = _add(product, 2)
        current_domain.process(
            UpdateCartItem(session_id=SESSION, product_id=product.id, quantity=6),
            asynchronous=False,
        )

        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert cart.quantity_of(product.id) == 6
        assert _holds(product)[0].quantity == 6

    def test_own_hold_does_not_block_resizing(self, make_product):
        product = make_product(stock=5)
        _add(product, 5)
        current_domain.process(
            UpdateCartItem(session_id=SESSION, product_id=product.id, quantity=4),
            asynchronous=False,
        )
        assert _holds(product)[0].quantity == 4

    def test_update_to_zero_removes_line_and_releases_hold(self, make_product):
        product = make_product(stock=10)
        cart_id = _add(product, 2)
        current_domain.process(
            UpdateCartItem(session_id=SESSION, product_id=product.id, quantity=0),
            asynchronous=False,
        )

        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert cart.is_empty()
        assert _holds(product) == []

    def test_update_unknown_item_fails(self, make_product):
        product = make_product()
        other = make_product()
        _add(product)
        with pytest.raises(ValidationError):
            current_domain.process(
                UpdateCartItem(session_id=SESSION, product_id=other.id, quantity=1),
                asynchronous=False,
            )

    def test_remove_releases_hold(self, make_product):
        product = make_product(stock=10)
        _add(product, 2)
        current_domain.process(RemoveFromCart(session_id=SESSION, product_id=product.id), asynchronous=False)

        assert _holds(product) == []
        assert available_stock(product.id) == 10

    def test_remove_without_cart_fails(self, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            current_domain.process(RemoveFromCart(session_id=SESSION, product_id=product.id), asynchronous=False)


class TestClearAndAbandon:
    def test_clear_empties_cart_and_releases_holds(self, make_product):
        first, second = make_product(), make_product()
        cart_id = _add(first, 1)
        _add(second, 2)

        current_domain.process(ClearCart(session_id=SESSION), asynchronous=False)

        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert cart.is_empty()
        assert _holds(first) == [] and _holds(second) == []

    def test_abandon_releases_holds(self, make_product):
        product = make_product(stock=10)
        cart_id = _add(product, 2)
        reservation = _holds(product)[0]

        current_domain.process(AbandonCart(cart_id=cart_id), asynchronous=False)

        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert cart.status == CartStatus.ABANDONED.value
        released = current_domain.repository_for(StockReservation).get(reservation.id)
        assert released.status == ReservationStatus.RELEASED.value
