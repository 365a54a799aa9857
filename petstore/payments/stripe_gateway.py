import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

import stripe

from petstore.errors import GatewayError
from petstore.payments.port import (
    PAYMENT_FAILED, PAYMENT_REFUNDED, PAYMENT_SUCCEEDED, PaymentGateway, PaymentIntent,
    PaymentResult, RefundResult, WebhookEvent, WebhookVerificationError
)

logger = logging.getLogger(__name__)

EVENT_TYPES = {
    'payment_intent.succeeded': PAYMENT_SUCCEEDED,
    'payment_intent.payment_failed': PAYMENT_FAILED,
    'charge.refunded': PAYMENT_REFUNDED,
}


def to_cents(amount):
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _from_timestamp(ts):
    if not ts:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


class StripeGateway(PaymentGateway):
    name = 'stripe'

    def __init__(self, api_key, webhook_secret, currency='usd'):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    def create_payment(self, order):
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_cents(order.final_amount),
                currency=self.currency,
                metadata={'orderId': str(order.id), 'userId': str(order.user_id)},
                api_key=self.api_key
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe payment intent creation failed for order {order.id}: {e}")
            raise GatewayError('Payment initialization failed')
        return PaymentIntent(provider=self.name, intent_id=intent.id, client_secret=intent.client_secret)

    def confirm_payment(self, intent_id):
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe payment confirmation failed for {intent_id}: {e}")
            raise GatewayError('Payment confirmation failed')
        status = {'succeeded': 'completed', 'canceled': 'failed'}.get(intent.status, 'pending')
        return PaymentResult(status=status, transaction_id=intent.id, payment_date=_from_timestamp(intent.created))

    def refund_payment(self, order):
        try:
            refund = stripe.Refund.create(
                payment_intent=order.payment_transaction_id,
                amount=to_cents(order.final_amount),
                api_key=self.api_key
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe refund failed for order {order.id}: {e}")
            raise GatewayError('Refund processing failed')
        return RefundResult(refund_id=refund.id, status=refund.status, refund_date=_from_timestamp(refund.created))

    def parse_webhook(self, payload, headers):
        signature = headers.get('Stripe-Signature')
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise WebhookVerificationError(str(e))
        obj = event['data']['object']
        if event['type'].startswith('charge.'):
            intent_id = obj.get('payment_intent')
        else:
            intent_id = obj.get('id')
        return WebhookEvent(type=EVENT_TYPES.get(event['type']), intent_id=intent_id, raw_type=event['type'])
