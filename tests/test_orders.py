from conftest import stock_of
from petstore import mail


def test_list_orders_is_scoped_to_owner(client, customer, other_customer, admin, product,
                                        add_to_cart, checkout):
    add_to_cart(customer, product, 1)
    checkout(customer)
    add_to_cart(other_customer, product, 1)
    checkout(other_customer)

    own = client.get('/api/orders', headers=customer.headers).get_json()
    everything = client.get('/api/orders', headers=admin.headers).get_json()

    assert [o['userId'] for o in own] == [customer.id]
    assert len(everything) == 2


def test_list_orders_status_filter(client, admin, placed_order):
    pending = client.get('/api/orders?status=pending', headers=admin.headers).get_json()
    shipped = client.get('/api/orders?status=shipped', headers=admin.headers).get_json()

    assert [o['id'] for o in pending] == [placed_order['id']]
    assert shipped == []
    assert client.get('/api/orders?status=lost', headers=admin.headers).status_code == 400


def test_get_order_access(client, customer, other_customer, admin, placed_order):
    url = f"/api/orders/{placed_order['id']}"

    assert client.get(url, headers=customer.headers).status_code == 200
    assert client.get(url, headers=admin.headers).status_code == 200
    response = client.get(url, headers=other_customer.headers)
    assert response.status_code == 403
    assert client.get('/api/orders/999', headers=admin.headers).status_code == 404


def test_order_detail_includes_payment_details(client, customer, placed_order):
    order = client.get(f"/api/orders/{placed_order['id']}", headers=customer.headers).get_json()

    assert order['paymentDetails'] == {
        'provider': None, 'transactionId': None, 'paymentDate': None, 'amount': None
    }


def test_admin_moves_order_through_lifecycle(client, admin, placed_order):
    url = f"/api/orders/{placed_order['id']}/status"

    response = client.patch(url, json={'status': 'processing'}, headers=admin.headers)
    assert response.status_code == 200
    response = client.patch(url, json={
        'status': 'shipped',
        'trackingNumber': 'TRK-123',
        'estimatedDelivery': '2031-05-01T12:00:00Z'
    }, headers=admin.headers)
    assert response.status_code == 200
    order = response.get_json()
    assert order['status'] == 'shipped'
    assert order['trackingNumber'] == 'TRK-123'
    assert order['estimatedDelivery'] == '2031-05-01T12:00:00'

    response = client.patch(url, json={'status': 'delivered'}, headers=admin.headers)
    assert response.get_json()['status'] == 'delivered'


def test_invalid_transition_is_rejected(client, admin, placed_order):
    response = client.patch(f"/api/orders/{placed_order['id']}/status",
                            json={'status': 'delivered'}, headers=admin.headers)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Invalid status transition from pending to delivered'


def test_status_update_requires_admin(client, customer, placed_order):
    response = client.patch(f"/api/orders/{placed_order['id']}/status",
                            json={'status': 'processing'}, headers=customer.headers)

    assert response.status_code == 403


def test_status_update_sends_email(client, admin, customer, placed_order):
    with mail.record_messages() as outbox:
        client.patch(f"/api/orders/{placed_order['id']}/status",
                     json={'status': 'processing'}, headers=admin.headers)

    assert [m.subject for m in outbox] == ['Order Status Update']
    assert outbox[0].recipients == [customer.email]


def test_admin_cancel_through_status_restocks(app, client, admin, product, placed_order):
    assert stock_of(app, product) == 8

    response = client.patch(f"/api/orders/{placed_order['id']}/status",
                            json={'status': 'cancelled'}, headers=admin.headers)

    assert response.status_code == 200
    assert stock_of(app, product) == 10


def test_customer_cancels_pending_order(app, client, customer, product, placed_order):
    response = client.post(f"/api/orders/{placed_order['id']}/cancel", headers=customer.headers)

    assert response.status_code == 200
    assert response.get_json()['status'] == 'cancelled'
    assert stock_of(app, product) == 10

    # A second cancel is rejected and does not restock again.
    response = client.post(f"/api/orders/{placed_order['id']}/cancel", headers=customer.headers)
    assert response.status_code == 400
    assert stock_of(app, product) == 10


def test_cannot_cancel_delivered_order(app, client, customer, admin, product, placed_order):
    url = f"/api/orders/{placed_order['id']}/status"
    for status in ('processing', 'shipped', 'delivered'):
        client.patch(url, json={'status': status}, headers=admin.headers)

    response = client.post(f"/api/orders/{placed_order['id']}/cancel", headers=customer.headers)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Order cannot be cancelled'
    assert stock_of(app, product) == 8


def test_other_user_cannot_cancel(client, other_customer, placed_order):
    response = client.post(f"/api/orders/{placed_order['id']}/cancel", headers=other_customer.headers)

    assert response.status_code == 403
