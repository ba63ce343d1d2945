"""Application tests for shipping methods, quotes, shipments and returns."""

import pytest
from protean import current_domain
from protean.exceptions import InvalidOperationError, ValidationError

from storefront.orders.management import CancelOrder, UpdateOrderStatus
from storefront.orders.order import Order, OrderStatus
from storefront.shipping.carrier import get_carrier
from storefront.shipping.management import (
    CreateShipment,
    CreateShippingMethod,
    SetShippingMethodActive,
    UpdateShipmentStatus,
    track_shipment,
)
from storefront.shipping.method import ShippingMethod
from storefront.shipping.rates import quote_shipping, shipping_options
from storefront.shipping.returns import CreateReturn, ProcessReturn, ReturnRequest
from storefront.shipping.shipment import Shipment


def _create_method(**fields):
    return current_domain.process(CreateShippingMethod(**fields), asynchronous=False)


def _process(order):
    current_domain.process(UpdateOrderStatus(order_id=order.id, status="processing"), asynchronous=False)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestShippingMethods:
    def test_create_method(self):
        method_id = _create_method(name="Express", method_type="express", base_cost=15.0, carrier="dhl")
        method = current_domain.repository_for(ShippingMethod).get(method_id)
        assert method.is_active
        assert method.base_cost == 15.0

    def test_deactivated_method_cannot_be_quoted(self):
        method_id = _create_method(name="Standard", base_cost=5.0)
        current_domain.process(SetShippingMethodActive(method_id=method_id, is_active=False), asynchronous=False)

        with pytest.raises(ValidationError):
            quote_shipping(method_id)

    def test_quote_over_weight_limit(self):
        method_id = _create_method(name="Letter", base_cost=1.0, max_weight=0.5)
        with pytest.raises(ValidationError):
            quote_shipping(method_id, weight=2.0)

    def test_quote(self):
        method_id = _create_method(name="Standard", base_cost=5.0, cost_per_kg=1.5)
        assert quote_shipping(method_id, weight=2.0) == 8.0


class TestShippingOptions:
    def test_cheapest_first_and_heavy_excluded(self):
        _create_method(name="Express", base_cost=20.0)
        _create_method(name="Standard", base_cost=5.0)
        _create_method(name="Letter", base_cost=1.0, max_weight=0.5)

        options = shipping_options(weight=3.0)

        assert [o.name for o in options] == ["Standard", "Express"]
        assert options[0].min_delivery_date <= options[0].max_delivery_date

    def test_inactive_methods_are_hidden(self):
        method_id = _create_method(name="Standard", base_cost=5.0)
        current_domain.process(SetShippingMethodActive(method_id=method_id, is_active=False), asynchronous=False)
        assert shipping_options() == []


class TestCreateShipment:
    def test_ships_a_processing_order(self, paid_order):
        order = paid_order()
        _process(order)
        method_id = _create_method(name="Standard", carrier="ups", base_cost=5.0)

        shipment_id = current_domain.process(
            CreateShipment(order_id=order.id, shipping_method_id=method_id), asynchronous=False
        )

        shipment = current_domain.repository_for(Shipment).get(shipment_id)
        assert shipment.status == "shipped"
        assert shipment.tracking_number.startswith("UPS-")
        assert shipment.estimated_delivery is not None

        shipped = _order(order.id)
        assert shipped.status == OrderStatus.SHIPPED.value
        assert shipped.tracking_number == shipment.tracking_number
        assert shipped.carrier == "ups"

    def test_confirmed_order_cannot_ship(self, paid_order):
        order = paid_order()
        with pytest.raises(InvalidOperationError):
            current_domain.process(CreateShipment(order_id=order.id), asynchronous=False)

    def test_carrier_refusal(self, paid_order):
        order = paid_order()
        _process(order)
        get_carrier().configure(should_succeed=False, failure_reason="No pickup slots")

        with pytest.raises(ValidationError) as exc:
            current_domain.process(CreateShipment(order_id=order.id), asynchronous=False)

        assert "No pickup slots" in str(exc.value.messages)
        assert _order(order.id).status == OrderStatus.PROCESSING.value


class TestShipmentProgress:
    @pytest.fixture
    def shipped(self, paid_order):
        order = paid_order()
        _process(order)
        shipment_id = current_domain.process(CreateShipment(order_id=order.id, carrier="fedex"), asynchronous=False)
        return order, current_domain.repository_for(Shipment).get(shipment_id)

    def test_delivery_moves_order(self, shipped):
        order, shipment = shipped
        current_domain.process(
            UpdateShipmentStatus(shipment_id=shipment.id, status="delivered", location="Front door"),
            asynchronous=False,
        )
        assert _order(order.id).status == OrderStatus.DELIVERED.value

    def test_in_transit_leaves_order_shipped(self, shipped):
        order, shipment = shipped
        current_domain.process(UpdateShipmentStatus(shipment_id=shipment.id, status="in_transit"), asynchronous=False)
        assert _order(order.id).status == OrderStatus.SHIPPED.value

    def test_track_shipment(self, shipped):
        order, shipment = shipped
        current_domain.process(
            UpdateShipmentStatus(shipment_id=shipment.id, status="in_transit", location="Leeds hub"),
            asynchronous=False,
        )

        tracking = track_shipment(shipment.tracking_number)

        assert tracking["order_id"] == str(order.id)
        assert tracking["status"] == "in_transit"
        assert [e["status"] for e in tracking["events"]] == ["pending", "processing", "shipped", "in_transit"]
        assert tracking["events"][-1]["location"] == "Leeds hub"
        assert tracking["carrier_tracking"]["status"] == "in_transit"

    def test_unknown_tracking_number(self):
        with pytest.raises(ValidationError):
            track_shipment("NOPE-000")


class TestReturns:
    @pytest.fixture
    def delivered(self, paid_order):
        order = paid_order()
        for status in ("processing", "ready_to_ship", "shipped", "delivered"):
            current_domain.process(UpdateOrderStatus(order_id=order.id, status=status), asynchronous=False)
        return _order(order.id)

    def _create(self, order, user_id="user-1"):
        return current_domain.process(
            CreateReturn(order_id=order.id, user_id=user_id, reason="defective", description="Cracked screen"),
            asynchronous=False,
        )

    def _act(self, return_id, action, **extra):
        current_domain.process(ProcessReturn(return_id=return_id, action=action, **extra), asynchronous=False)

    def test_request_captures_refund_amount(self, delivered):
        request = current_domain.repository_for(ReturnRequest).get(self._create(delivered))
        assert request.status == "requested"
        assert request.refund_amount == delivered.total

    def test_other_users_order_is_rejected(self, delivered):
        with pytest.raises(ValidationError):
            self._create(delivered, user_id="user-2")

    def test_cancelled_order_is_not_returnable(self, paid_order):
        order = paid_order()
        current_domain.process(CancelOrder(order_id=order.id, reason="Changed mind"), asynchronous=False)
        with pytest.raises(InvalidOperationError):
            self._create(order)

    def test_full_return_marks_order_returned(self, delivered):
        return_id = self._create(delivered)
        self._act(return_id, "approve", notes="Approved")
        self._act(return_id, "ship", tracking_number="RET-1")
        self._act(return_id, "receive")

        request = current_domain.repository_for(ReturnRequest).get(return_id)
        assert request.status == "received"
        assert request.return_tracking_number == "RET-1"
        assert request.received_at is not None
        assert _order(delivered.id).status == OrderStatus.RETURNED.value

    def test_rejected_return_cannot_ship(self, delivered):
        return_id = self._create(delivered)
        self._act(return_id, "reject")
        with pytest.raises(InvalidOperationError):
            self._act(return_id, "ship")

    def test_unknown_action(self, delivered):
        with pytest.raises(ValidationError):
            self._act(self._create(delivered), "refurbish")
