import pytest


@pytest.fixture
def delivered(client, admin, placed_order):
    url = f"/api/orders/{placed_order['id']}/status"
    for status in ('processing', 'shipped', 'delivered'):
        assert client.patch(url, json={'status': status}, headers=admin.headers).status_code == 200
    return placed_order


def _review(client, account, product_id, rating=5, comment='My dog loves it'):
    return client.post(f'/api/products/{product_id}/reviews',
                       json={'rating': rating, 'comment': comment}, headers=account.headers)


def test_review_requires_delivered_purchase(client, customer, product, placed_order):
    response = _review(client, customer, product)

    assert response.status_code == 403
    assert response.get_json()['message'] == 'You can only review products you have purchased'


def test_review_updates_product_rating(client, customer, product, delivered):
    response = _review(client, customer, product, rating=4)

    assert response.status_code == 201
    assert response.get_json()['isVerified'] is True
    data = client.get(f'/api/products/{product}').get_json()
    assert data['rating'] == 4.0
    assert data['reviewCount'] == 1
    reviews = client.get(f'/api/products/{product}/reviews').get_json()
    assert [r['userName'] for r in reviews] == ['Alice']


def test_one_review_per_product(client, customer, product, delivered):
    _review(client, customer, product)

    response = _review(client, customer, product)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'You have already reviewed this product'


def test_rating_must_be_in_range(client, customer, product, delivered):
    assert _review(client, customer, product, rating=6).status_code == 400


def test_edit_and_delete_review(client, customer, other_customer, admin, product, delivered):
    review = _review(client, customer, product, rating=2).get_json()
    url = f"/api/reviews/{review['id']}"

    assert client.put(url, json={'rating': 5}, headers=other_customer.headers).status_code == 403

    response = client.put(url, json={'rating': 5, 'comment': 'Grew on us'}, headers=customer.headers)
    assert response.get_json()['comment'] == 'Grew on us'
    assert client.get(f'/api/products/{product}').get_json()['rating'] == 5.0

    assert client.delete(url, headers=admin.headers).status_code == 200
    data = client.get(f'/api/products/{product}').get_json()
    assert data['rating'] == 0
    assert data['reviewCount'] == 0
