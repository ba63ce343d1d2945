"""Application tests for reservation commands and availability."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.catalogue.product.product import Product
from storefront.inventory.availability import available_stock, can_reserve, reserved_quantity
from storefront.inventory.reservation import ReservationStatus, ReservationType, StockReservation
from storefront.inventory.reservations import (
    ConfirmReservations,
    ExtendReservation,
    ReleaseReservations,
    ReserveStock,
    ReserveStockForOrder,
    TransferReservations,
)
from storefront.shared.errors import InsufficientStockError


def _reserve(product, quantity, **fields):
    fields.setdefault("session_id", "guest-session-01")
    return current_domain.process(ReserveStock(product_id=product.id, quantity=quantity, **fields), asynchronous=False)


def _reservation(reservation_id):
    return current_domain.repository_for(StockReservation).get(reservation_id)


class TestReserveStock:
    def test_reduces_availability_not_stock(self, make_product):
        product = make_product(stock=10)
        _reserve(product, 4)

        assert available_stock(product.id) == 6
        assert current_domain.repository_for(Product).get(product.id).stock == 10

    def test_insufficient_stock(self, make_product):
        product = make_product(stock=2)
        with pytest.raises(InsufficientStockError) as exc:
            _reserve(product, 3)
        assert (exc.value.requested, exc.value.available) == (3, 2)

    def test_exact_remaining_stock_can_be_reserved(self, make_product):
        product = make_product(stock=5)
        _reserve(product, 3)
        _reserve(product, 2, session_id="guest-session-02")
        assert available_stock(product.id) == 0
        assert not can_reserve(product.id, 1)

    def test_own_cart_holds_are_excluded_for_owner(self, make_product):
        product = make_product(stock=10)
        _reserve(product, 4, session_id="guest-session-01")
        assert reserved_quantity(product.id) == 4
        assert reserved_quantity(product.id, session_id="guest-session-01") == 0


class TestReserveForOrder:
    def test_all_or_nothing(self, make_product):
        plenty = make_product(stock=10)
        scarce = make_product(stock=1)
        items = [{"product_id": str(plenty.id), "quantity": 2}, {"product_id": str(scarce.id), "quantity": 2}]

        with pytest.raises(InsufficientStockError):
            current_domain.process(
                ReserveStockForOrder(order_id="order-1", items=json.dumps(items)),
                asynchronous=False,
            )
        assert current_domain.repository_for(StockReservation).for_order("order-1") == []

    def test_reserves_each_line(self, make_product):
        first, second = make_product(), make_product()
        items = [{"product_id": str(first.id), "quantity": 1}, {"product_id": str(second.id), "quantity": 3}]

        ids = current_domain.process(
            ReserveStockForOrder(order_id="order-1", items=json.dumps(items)),
            asynchronous=False,
        )

        assert len(ids) == 2
        assert all(_reservation(i).reservation_type == ReservationType.ORDER.value for i in ids)

    def test_unknown_product(self, make_product):
        items = [{"product_id": "missing", "quantity": 1}]
        with pytest.raises(ValidationError):
            current_domain.process(
                ReserveStockForOrder(order_id="order-1", items=json.dumps(items)),
                asynchronous=False,
            )


class TestConfirmAndRelease:
    def test_confirm_deducts_stock(self, make_product):
        product = make_product(stock=10)
        reservation_id = _reserve(product, 3, session_id=None, order_id="order-1")

        confirmed = current_domain.process(ConfirmReservations(order_id="order-1"), asynchronous=False)

        assert confirmed == 1
        assert _reservation(reservation_id).status == ReservationStatus.CONFIRMED.value
        assert current_domain.repository_for(Product).get(product.id).stock == 7
        assert available_stock(product.id) == 7

    def test_release_by_order(self, make_product):
        product = make_product(stock=10)
        reservation_id = _reserve(product, 3, session_id=None, order_id="order-1")

        released = current_domain.process(ReleaseReservations(order_id="order-1"), asynchronous=False)

        assert released == 1
        assert _reservation(reservation_id).status == ReservationStatus.RELEASED.value
        assert available_stock(product.id) == 10

    def test_release_needs_an_owner(self):
        with pytest.raises(ValidationError):
            current_domain.process(ReleaseReservations(), asynchronous=False)

    def test_extend(self, make_product):
        product = make_product()
        reservation_id = _reserve(product, 1, ttl_minutes=5)
        before = _reservation(reservation_id).expires_at

        current_domain.process(ExtendReservation(reservation_id=reservation_id, minutes=15), asynchronous=False)

        assert _reservation(reservation_id).expires_at > before

    def test_transfer_to_user(self, make_product):
        product = make_product()
        reservation_id = _reserve(product, 1)

        moved = current_domain.process(
            TransferReservations(session_id="guest-session-01", user_id="user-1"),
            asynchronous=False,
        )

        assert moved == 1
        assert str(_reservation(reservation_id).user_id) == "user-1"
