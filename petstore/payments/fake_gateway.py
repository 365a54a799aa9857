"""Configurable fake payment gateway for development and testing.

No external calls are made. Payments can be set to succeed or fail at
runtime, and webhooks are authenticated by comparing the
``X-Webhook-Signature`` header with a shared secret.
"""
import hmac
import json
from uuid import uuid4

from petstore.errors import GatewayError
from petstore.payments.port import (
    PaymentGateway, PaymentIntent, PaymentResult, RefundResult, WebhookEvent, WebhookVerificationError
)
from petstore.utils.util import utcnow

SIGNATURE_HEADER = 'X-Webhook-Signature'


class FakeGateway(PaymentGateway):

    def __init__(self, name, webhook_secret):
        self.name = name
        self.webhook_secret = webhook_secret
        self.should_succeed = True
        self.available = True
        self.calls = []

    def configure(self, should_succeed=True, available=True):
        self.should_succeed = should_succeed
        self.available = available

    def _record(self, method, **kwargs):
        self.calls.append({'method': method, **kwargs})
        if not self.available:
            raise GatewayError(f'{self.name} gateway unavailable')

    def create_payment(self, order):
        self._record('create_payment', order_id=order.id, amount=order.final_amount)
        intent_id = f"fake_pi_{uuid4().hex[:12]}"
        return PaymentIntent(provider=self.name, intent_id=intent_id, client_secret=f"{intent_id}_secret")

    def confirm_payment(self, intent_id):
        self._record('confirm_payment', intent_id=intent_id)
        status = 'completed' if self.should_succeed else 'failed'
        return PaymentResult(status=status, transaction_id=intent_id, payment_date=utcnow())

    def refund_payment(self, order):
        self._record('refund_payment', order_id=order.id, amount=order.final_amount)
        if not self.should_succeed:
            raise GatewayError('Refund processing failed')
        return RefundResult(refund_id=f"fake_re_{uuid4().hex[:12]}", status='succeeded', refund_date=utcnow())

    def parse_webhook(self, payload, headers):
        signature = headers.get(SIGNATURE_HEADER) or ''
        if not hmac.compare_digest(signature, self.webhook_secret):
            raise WebhookVerificationError('Signature mismatch')
        try:
            body = json.loads(payload or b'{}')
        except ValueError as e:
            raise WebhookVerificationError(f'Malformed payload: {e}')
        if not isinstance(body, dict):
            raise WebhookVerificationError('Malformed payload: expected a JSON object')
        return WebhookEvent(type=body.get('type'), intent_id=body.get('intentId'), raw_type=body.get('type', ''))
