"""Return requests: buyers sending delivered goods back."""

from enum import Enum

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.orders.order import Order, OrderStatus
from storefront.shared.clock import utcnow
from storefront.shipping.events import ReturnRequested, ReturnStatusChanged

logger = structlog.get_logger(__name__)


class ReturnStatus(Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    SHIPPED = "shipped"
    RECEIVED = "received"


class ReturnReason(Enum):
    DEFECTIVE = "defective"
    WRONG_ITEM = "wrong_item"
    NOT_AS_DESCRIBED = "not_as_described"
    DAMAGED = "damaged"
    CHANGED_MIND = "changed_mind"
    SIZE_ISSUE = "size_issue"
    OTHER = "other"


_ACTIONS = {
    "approve": (ReturnStatus.REQUESTED, ReturnStatus.APPROVED),
    "reject": (ReturnStatus.REQUESTED, ReturnStatus.REJECTED),
    "ship": (ReturnStatus.APPROVED, ReturnStatus.SHIPPED),
    "receive": (ReturnStatus.SHIPPED, ReturnStatus.RECEIVED),
}


@storefront.aggregate
class ReturnRequest:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String(choices=ReturnReason, required=True)
    description = Text()
    status = String(choices=ReturnStatus, default=ReturnStatus.REQUESTED.value)
    refund_amount = Float(default=0.0, min_value=0.0)
    return_tracking_number = String(max_length=100)
    admin_notes = Text()
    requested_at = DateTime()
    approved_at = DateTime()
    received_at = DateTime()

    @classmethod
    def request(cls, order, reason, description=None):
        request = cls(
            order_id=order.id,
            user_id=order.user_id,
            reason=reason,
            description=description,
            refund_amount=order.total,
            requested_at=utcnow(),
        )
        request.raise_(ReturnRequested(return_id=request.id, order_id=order.id, user_id=order.user_id, reason=reason))
        return request

    def apply(self, action, notes=None, tracking_number=None):
        if action not in _ACTIONS:
            raise ValidationError({"action": [f"Unknown return action: {action}"]})
        expected, target = _ACTIONS[action]
        if self.status != expected.value:
            raise InvalidOperationError(f"Cannot {action} a return in status {self.status}")

        now = utcnow()
        previous = self.status
        self.status = target.value
        if notes:
            self.admin_notes = notes
        if tracking_number:
            self.return_tracking_number = tracking_number
        if target == ReturnStatus.APPROVED:
            self.approved_at = now
        elif target == ReturnStatus.RECEIVED:
            self.received_at = now

        self.raise_(
            ReturnStatusChanged(
                return_id=self.id,
                order_id=self.order_id,
                previous_status=previous,
                new_status=target.value,
                occurred_at=now,
            )
        )


@storefront.command(part_of="ReturnRequest")
class CreateReturn:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String(required=True, max_length=30)
    description = Text()


@storefront.command(part_of="ReturnRequest")
class ProcessReturn:
    return_id = Identifier(required=True)
    action = String(required=True, max_length=10)  # approve, reject, ship or receive
    notes = Text()
    tracking_number = String(max_length=100)


@storefront.command_handler(part_of=ReturnRequest)
class ReturnsHandler:
    @handle(CreateReturn)
    def create_return(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        if str(order.user_id) != str(command.user_id):
            raise ValidationError({"order_id": ["Order does not belong to this user"]})
        if not order.can_be_refunded():
            raise InvalidOperationError(f"Order {order.order_number} is not eligible for a return")

        request = ReturnRequest.request(order, command.reason, command.description)
        current_domain.repository_for(ReturnRequest).add(request)
        return str(request.id)

    @handle(ProcessReturn)
    def process_return(self, command):
        repo = current_domain.repository_for(ReturnRequest)
        request = repo.get(command.return_id)
        request.apply(command.action, notes=command.notes, tracking_number=command.tracking_number)
        repo.add(request)

        if request.status == ReturnStatus.RECEIVED.value:
            order_repo = current_domain.repository_for(Order)
            order = order_repo.get(request.order_id)
            if order.can_transition_to(OrderStatus.RETURNED.value):
                order.transition_to(OrderStatus.RETURNED.value)
                order_repo.add(order)
            else:
                logger.warning(
                    "Return received for order that cannot be marked returned",
                    order_id=str(order.id),
                    status=order.status,
                )
