# Payment service module: gateway initialization, confirmation, refunds and webhooks
import logging

from petstore import db
from petstore.errors import AuthorizationError, ValidationError
from petstore.models import Order, OrderStatus, PaymentStatus
from petstore.payments import get_gateway
from petstore.payments.port import (
    PAYMENT_FAILED, PAYMENT_REFUNDED, PAYMENT_SUCCEEDED, WebhookVerificationError
)
from petstore.services import get_or_404
from petstore.services.order_service import mark_cancelled
from petstore.utils.email import send_email
from petstore.utils.util import money, utcnow

logger = logging.getLogger(__name__)


def _owned_order(order_id, user):
    order = get_or_404(Order, order_id, 'Order')
    if order.user_id != user.id:
        raise AuthorizationError('Not authorized to access this order')
    return order


def initialize_payment(order_id, user, payment_method):
    order = _owned_order(order_id, user)
    if order.payment_status == PaymentStatus.COMPLETED:
        raise ValidationError('Order is already paid')
    if order.status == OrderStatus.CANCELLED:
        raise ValidationError('Order is cancelled')

    gateway = get_gateway(payment_method)
    intent = gateway.create_payment(order)

    order.payment_provider = gateway.name
    order.payment_transaction_id = intent.intent_id
    db.session.commit()
    logger.info(f"Payment initialized for order {order.id} via {gateway.name}: {intent.intent_id}")
    return {
        'clientSecret': intent.client_secret,
        'paymentIntentId': intent.intent_id,
        'orderId': order.id,
        'paymentMethod': gateway.name,
        'amount': money(order.final_amount)
    }


def _record_success(order, transaction_id, payment_date):
    order.payment_status = PaymentStatus.COMPLETED
    order.payment_transaction_id = transaction_id
    order.payment_date = payment_date or utcnow()
    order.payment_amount = order.final_amount


def confirm_payment(order_id, user, payment_intent_id):
    order = _owned_order(order_id, user)
    if order.payment_status == PaymentStatus.COMPLETED:
        raise ValidationError('Order is already paid')
    if order.status == OrderStatus.CANCELLED:
        raise ValidationError('Order is cancelled')
    if not order.payment_provider or not order.payment_transaction_id:
        raise ValidationError('Payment has not been initialized for this order')
    if payment_intent_id != order.payment_transaction_id:
        raise ValidationError('Payment intent does not match this order')

    gateway = get_gateway(order.payment_provider)
    result = gateway.confirm_payment(payment_intent_id)
    if not result.succeeded:
        logger.warning(f"Payment {payment_intent_id} for order {order.id} not successful: {result.status}")
        raise ValidationError('Payment not successful')

    _record_success(order, result.transaction_id, result.payment_date)
    db.session.commit()
    logger.info(f"Payment completed for order {order.id}")

    send_email(
        user.email, 'Payment Confirmation', 'payment_confirmation',
        name=user.name,
        order_id=order.id,
        amount=order.payment_amount,
        transaction_id=order.payment_transaction_id,
        payment_method=order.payment_provider
    )
    return order


def refund_payment(order_id):
    order = get_or_404(Order, order_id, 'Order')
    if order.payment_status != PaymentStatus.COMPLETED:
        raise ValidationError('Order is not eligible for refund')

    gateway = get_gateway(order.payment_provider)
    refund = gateway.refund_payment(order)

    # Payment and order status change together or not at all.
    try:
        order.payment_status = PaymentStatus.REFUNDED
        mark_cancelled(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.error(f"Refund {refund.refund_id} issued but order {order.id} could not be updated")
        raise

    logger.info(f"Order {order.id} refunded ({refund.refund_id})")
    send_email(
        order.user.email, 'Refund Processed', 'refund_confirmation',
        name=order.user.name,
        order_id=order.id,
        amount=order.final_amount,
        refund_id=refund.refund_id
    )
    return order, refund


def apply_webhook_event(order, event_type):
    """Move the order's payment state for a verified gateway event.

    Returns True when something changed. Events that would move a settled
    payment backwards (e.g. a late failure after completion) are ignored.
    A cancelled order is never marked paid.
    """
    if event_type == PAYMENT_SUCCEEDED:
        if order.status == OrderStatus.CANCELLED:
            return False
        if order.payment_status not in (PaymentStatus.PENDING, PaymentStatus.FAILED):
            return False
        _record_success(order, order.payment_transaction_id, utcnow())
        return True
    if event_type == PAYMENT_FAILED:
        if order.payment_status != PaymentStatus.PENDING:
            return False
        order.payment_status = PaymentStatus.FAILED
        return True
    if event_type == PAYMENT_REFUNDED:
        if order.payment_status == PaymentStatus.REFUNDED:
            return False
        order.payment_status = PaymentStatus.REFUNDED
        mark_cancelled(order)
        return True
    return False


def _refund_captured_payment(gateway, order):
    # The customer cancelled before the gateway settled; give the money back.
    if order.payment_status == PaymentStatus.REFUNDED:
        return
    logger.warning(f"Payment {order.payment_transaction_id} captured for cancelled order {order.id}, refunding")
    refund = gateway.refund_payment(order)
    try:
        order.payment_status = PaymentStatus.REFUNDED
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.error(f"Refund {refund.refund_id} issued but order {order.id} could not be updated")
        raise
    logger.info(f"Order {order.id} refunded ({refund.refund_id}) after late payment")


def handle_webhook(provider, payload, headers):
    gateway = get_gateway(provider)
    try:
        event = gateway.parse_webhook(payload, headers)
    except WebhookVerificationError as e:
        logger.warning(f"Rejected {provider} webhook: {e}")
        raise ValidationError(f'{provider} webhook signature verification failed')

    if not event.type or not event.intent_id:
        logger.info(f"Ignoring {provider} webhook event {event.raw_type}")
        return {'received': True}

    order = Order.query.filter_by(payment_provider=gateway.name, payment_transaction_id=event.intent_id).first()
    if order is None:
        logger.warning(f"No order for {provider} payment {event.intent_id} ({event.raw_type})")
        return {'received': True}

    if event.type == PAYMENT_SUCCEEDED and order.status == OrderStatus.CANCELLED:
        _refund_captured_payment(gateway, order)
        return {'received': True}

    try:
        changed = apply_webhook_event(order, event.type)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    if changed:
        logger.info(f"Order {order.id} payment is now {order.payment_status.value} after {event.raw_type}")
    return {'received': True}
