"""Application tests for order status changes and cancellation."""

import json

import pytest
from protean import current_domain
from protean.exceptions import InvalidOperationError

from storefront.catalogue.product.product import Product
from storefront.inventory.reservation import ReservationStatus, StockReservation
from storefront.inventory.reservations import ReserveStockForOrder
from storefront.orders.management import CancelOrder, UpdateOrderStatus
from storefront.orders.order import Order, OrderStatus


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _status(order_id, status, **fields):
    current_domain.process(UpdateOrderStatus(order_id=order_id, status=status, **fields), asynchronous=False)


class TestUpdateOrderStatus:
    def test_moves_along_the_machine(self, paid_order):
        order = paid_order()
        _status(order.id, "processing")
        _status(order.id, "ready_to_ship")
        _status(order.id, "shipped", tracking_number="TRK-1", carrier="ups")

        shipped = _order(order.id)
        assert shipped.status == OrderStatus.SHIPPED.value
        assert shipped.tracking_number == "TRK-1"

    def test_illegal_jump(self, paid_order):
        order = paid_order()
        with pytest.raises(InvalidOperationError):
            _status(order.id, "delivered")


class TestCancelOrder:
    def test_cancelling_paid_order_restores_stock(self, paid_order):
        order = paid_order(lines=((10.0, 2),))
        product_id = order.items[0].product_id
        assert current_domain.repository_for(Product).get(product_id).stock == 48

        current_domain.process(CancelOrder(order_id=order.id, reason="customer_request"), asynchronous=False)

        cancelled = _order(order.id)
        assert cancelled.status == OrderStatus.CANCELLED.value
        assert not cancelled.stock_committed
        assert current_domain.repository_for(Product).get(product_id).stock == 50

    def test_cancelling_reserved_order_releases_holds(self, make_product):
        product = make_product(stock=10)
        order = Order.place(
            order_number="ORD-20260101-000000-1000",
            user_id="user-1",
            items=[{"product_id": str(product.id), "quantity": 2, "price": 10.0}],
            subtotal=20.0,
        )
        current_domain.repository_for(Order).add(order)
        current_domain.process(
            ReserveStockForOrder(
                order_id=order.id,
                items=json.dumps([{"product_id": str(product.id), "quantity": 2}]),
            ),
            asynchronous=False,
        )

        current_domain.process(CancelOrder(order_id=order.id), asynchronous=False)

        [reservation] = current_domain.repository_for(StockReservation).for_order(order.id)
        assert reservation.status == ReservationStatus.RELEASED.value
        assert current_domain.repository_for(Product).get(product.id).stock == 10

    def test_shipped_order_cannot_be_cancelled(self, paid_order):
        order = paid_order()
        for status in ("processing", "ready_to_ship", "shipped"):
            _status(order.id, status)
        with pytest.raises(InvalidOperationError):
            current_domain.process(CancelOrder(order_id=order.id), asynchronous=False)
