import json

import pytest

from conftest import stock_of
from petstore import db
from petstore.models import Order
from petstore.payments.fake_gateway import SIGNATURE_HEADER

SIGNED = {SIGNATURE_HEADER: 'test-signature', 'Content-Type': 'application/json'}


def _initialize(client, account, order_id, provider='stripe'):
    return client.post(f'/api/payments/orders/{order_id}/initialize',
                       json={'paymentMethod': provider}, headers=account.headers)


def _confirm(client, account, order_id, intent_id):
    return client.post(f'/api/payments/orders/{order_id}/confirm',
                       json={'paymentIntentId': intent_id}, headers=account.headers)


def _webhook(client, provider, event_type, intent_id, headers=SIGNED):
    body = json.dumps({'type': event_type, 'intentId': intent_id})
    return client.post(f'/api/payments/webhook/{provider}', data=body, headers=headers)


def _order(app, order_id):
    with app.app_context():
        order = db.session.get(Order, order_id)
        return order.status.value, order.payment_status.value


@pytest.fixture
def initialized(client, customer, placed_order):
    response = _initialize(client, customer, placed_order['id'])
    assert response.status_code == 200
    return response.get_json()


def test_initialize_stores_intent(app, client, customer, placed_order, gateways):
    response = _initialize(client, customer, placed_order['id'], 'paypal')

    assert response.status_code == 200
    data = response.get_json()
    assert data['orderId'] == placed_order['id']
    assert data['paymentMethod'] == 'paypal'
    assert data['amount'] == 51.0
    assert data['paymentIntentId'].startswith('fake_pi_')
    assert data['clientSecret'] == f"{data['paymentIntentId']}_secret"
    assert gateways['paypal'].calls[0]['method'] == 'create_payment'
    with app.app_context():
        order = db.session.get(Order, placed_order['id'])
        assert order.payment_provider == 'paypal'
        assert order.payment_transaction_id == data['paymentIntentId']


def test_initialize_requires_owner(client, other_customer, placed_order):
    response = _initialize(client, other_customer, placed_order['id'])

    assert response.status_code == 403


def test_initialize_rejects_unknown_provider(client, customer, placed_order):
    response = _initialize(client, customer, placed_order['id'], 'bitcoin')

    assert response.status_code == 400


def test_initialize_cancelled_order(client, customer, placed_order):
    client.post(f"/api/orders/{placed_order['id']}/cancel", headers=customer.headers)

    response = _initialize(client, customer, placed_order['id'])

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Order is cancelled'


def test_gateway_outage_is_502(client, customer, placed_order, gateways):
    gateways['stripe'].configure(available=False)

    response = _initialize(client, customer, placed_order['id'])

    assert response.status_code == 502
    assert response.get_json()['status'] == 'error'


def test_confirm_payment_success(app, client, customer, placed_order, initialized):
    response = _confirm(client, customer, placed_order['id'], initialized['paymentIntentId'])

    assert response.status_code == 200
    order = response.get_json()['order']
    assert order['paymentStatus'] == 'completed'
    assert order['paymentDetails']['transactionId'] == initialized['paymentIntentId']
    assert order['paymentDetails']['amount'] == 51.0
    assert order['paymentDetails']['paymentDate'] is not None

    again = _initialize(client, customer, placed_order['id'])
    assert again.status_code == 400
    assert again.get_json()['message'] == 'Order is already paid'


def test_failed_confirmation_leaves_order_unchanged(app, client, customer, placed_order,
                                                    initialized, gateways):
    gateways['stripe'].configure(should_succeed=False)

    response = _confirm(client, customer, placed_order['id'], initialized['paymentIntentId'])

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Payment not successful'
    assert _order(app, placed_order['id']) == ('pending', 'pending')


def test_confirm_with_foreign_intent(client, customer, placed_order, initialized):
    response = _confirm(client, customer, placed_order['id'], 'fake_pi_someoneelse')

    assert response.status_code == 400


def test_confirm_before_initialize(client, customer, placed_order):
    response = _confirm(client, customer, placed_order['id'], 'fake_pi_x')

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Payment has not been initialized for this order'


def test_webhook_with_bad_signature_changes_nothing(app, client, placed_order, initialized):
    headers = {SIGNATURE_HEADER: 'forged', 'Content-Type': 'application/json'}

    response = _webhook(client, 'stripe', 'payment.succeeded', initialized['paymentIntentId'], headers)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'stripe webhook signature verification failed'
    assert _order(app, placed_order['id']) == ('pending', 'pending')


def test_webhook_success_marks_order_paid(app, client, placed_order, initialized):
    response = _webhook(client, 'stripe', 'payment.succeeded', initialized['paymentIntentId'])

    assert response.status_code == 200
    assert response.get_json() == {'received': True}
    assert _order(app, placed_order['id']) == ('pending', 'completed')


def test_webhook_failure_then_late_failure_after_success(app, client, placed_order, initialized):
    intent = initialized['paymentIntentId']

    _webhook(client, 'stripe', 'payment.failed', intent)
    assert _order(app, placed_order['id']) == ('pending', 'failed')

    _webhook(client, 'stripe', 'payment.succeeded', intent)
    _webhook(client, 'stripe', 'payment.failed', intent)
    assert _order(app, placed_order['id']) == ('pending', 'completed')


def test_webhook_refund_cancels_and_restocks(app, client, product, placed_order, initialized):
    intent = initialized['paymentIntentId']
    _webhook(client, 'stripe', 'payment.succeeded', intent)

    _webhook(client, 'stripe', 'payment.refunded', intent)
    _webhook(client, 'stripe', 'payment.refunded', intent)

    assert _order(app, placed_order['id']) == ('cancelled', 'refunded')
    assert stock_of(app, product) == 10


def test_webhook_for_unknown_intent_is_acknowledged(client):
    response = _webhook(client, 'paypal', 'payment.succeeded', 'fake_pi_nobody')

    assert response.status_code == 200
    assert response.get_json() == {'received': True}


def test_webhook_provider_mismatch_is_ignored(app, client, placed_order, initialized):
    _webhook(client, 'paypal', 'payment.succeeded', initialized['paymentIntentId'])

    assert _order(app, placed_order['id']) == ('pending', 'pending')


def test_webhook_for_unknown_provider(client):
    response = _webhook(client, 'bitcoin', 'payment.succeeded', 'x')

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Invalid payment method'


def test_admin_refund(app, client, admin, customer, product, placed_order, initialized, gateways):
    _confirm(client, customer, placed_order['id'], initialized['paymentIntentId'])

    response = client.post(f"/api/payments/orders/{placed_order['id']}/refund", headers=admin.headers)

    assert response.status_code == 200
    data = response.get_json()
    assert data['refundId'].startswith('fake_re_')
    assert data['order']['paymentStatus'] == 'refunded'
    assert data['order']['status'] == 'cancelled'
    assert stock_of(app, product) == 10
    assert gateways['stripe'].calls[-1]['method'] == 'refund_payment'


def test_refund_requires_completed_payment(client, admin, placed_order):
    response = client.post(f"/api/payments/orders/{placed_order['id']}/refund", headers=admin.headers)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Order is not eligible for refund'


def test_failed_refund_keeps_order_paid(app, client, admin, customer, placed_order, initialized, gateways):
    _confirm(client, customer, placed_order['id'], initialized['paymentIntentId'])
    gateways['stripe'].configure(should_succeed=False)

    response = client.post(f"/api/payments/orders/{placed_order['id']}/refund", headers=admin.headers)

    assert response.status_code == 502
    assert _order(app, placed_order['id']) == ('pending', 'completed')


def test_refund_requires_admin(client, customer, placed_order):
    response = client.post(f"/api/payments/orders/{placed_order['id']}/refund", headers=customer.headers)

    assert response.status_code == 403


def test_confirm_after_cancel_is_refused(app, client, customer, product, placed_order, initialized, gateways):
    client.post(f"/api/orders/{placed_order['id']}/cancel", headers=customer.headers)

    response = _confirm(client, customer, placed_order['id'], initialized['paymentIntentId'])

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Order is cancelled'
    assert _order(app, placed_order['id']) == ('cancelled', 'pending')
    assert stock_of(app, product) == 10
    assert 'confirm_payment' not in [call['method'] for call in gateways['stripe'].calls]


def test_late_webhook_success_on_cancelled_order_is_refunded(app, client, customer, product, placed_order,
                                                             initialized, gateways):
    client.post(f"/api/orders/{placed_order['id']}/cancel", headers=customer.headers)

    response = _webhook(client, 'stripe', 'payment.succeeded', initialized['paymentIntentId'])
    _webhook(client, 'stripe', 'payment.succeeded', initialized['paymentIntentId'])

    assert response.status_code == 200
    assert response.get_json() == {'received': True}
    assert _order(app, placed_order['id']) == ('cancelled', 'refunded')
    assert stock_of(app, product) == 10
    refunds = [call for call in gateways['stripe'].calls if call['method'] == 'refund_payment']
    assert len(refunds) == 1


def test_webhook_body_must_be_an_object(app, client, placed_order, initialized):
    response = client.post('/api/payments/webhook/stripe', data=json.dumps(['payment.succeeded']),
                           headers=SIGNED)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'stripe webhook signature verification failed'
    assert _order(app, placed_order['id']) == ('pending', 'pending')
