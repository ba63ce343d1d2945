"""Payment gateway port: the contract every payment provider adapter fulfils."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeResult:
    success: bool
    transaction_id: str | None = None
    status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    success: bool
    refund_id: str | None = None
    status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    provider: str = "unknown"

    @abstractmethod
    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method: str,
        order_reference: str,
        idempotency_key: str,
    ) -> ChargeResult:
        """Charge ``amount`` for the order identified by ``order_reference``."""
        ...

    @abstractmethod
    def create_refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        ...
