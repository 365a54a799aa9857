"""Payment gateway port (abstract interface).

Every provider adapter implements this contract so the payment service can
initialize, confirm and refund payments, and read webhooks, without knowing
which processor sits behind it.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

PAYMENT_SUCCEEDED = 'payment.succeeded'
PAYMENT_FAILED = 'payment.failed'
PAYMENT_REFUNDED = 'payment.refunded'


class WebhookVerificationError(Exception):
    """The webhook payload could not be authenticated."""


@dataclass(frozen=True)
class PaymentIntent:
    provider: str
    intent_id: str
    client_secret: Optional[str] = None


@dataclass(frozen=True)
class PaymentResult:
    status: str  # completed, pending, failed
    transaction_id: str
    payment_date: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 'completed'


@dataclass(frozen=True)
class RefundResult:
    refund_id: str
    status: str
    refund_date: Optional[datetime] = None


@dataclass(frozen=True)
class WebhookEvent:
    type: Optional[str]
    intent_id: Optional[str]
    raw_type: str = ''


class PaymentGateway(ABC):
    name = 'abstract'

    @abstractmethod
    def create_payment(self, order) -> PaymentIntent:
        """Create a payment intent for the order's final amount."""

    @abstractmethod
    def confirm_payment(self, intent_id: str) -> PaymentResult:
        """Look up the intent after the client finished the gateway flow."""

    @abstractmethod
    def refund_payment(self, order) -> RefundResult:
        """Refund the order's captured payment."""

    @abstractmethod
    def parse_webhook(self, payload: bytes, headers: Mapping[str, str]) -> WebhookEvent:
        """Verify the signature and translate the event.

        Raises WebhookVerificationError when the signature does not match.
        """
