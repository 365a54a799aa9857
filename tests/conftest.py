from collections import namedtuple
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from petstore import bcrypt, create_app, db
from petstore.config import TestingConfig
from petstore.models import PROFESSIONAL_ROLES, Pet, Product, ProfessionalInfo, Role, User
from petstore.services.user_service import issue_token

PASSWORD = 'Passw0rd!'

SHIPPING_ADDRESS = {
    'street': '12 Bark Street',
    'city': 'Springfield',
    'state': 'IL',
    'country': 'USA',
    'zipCode': '62701'
}

Account = namedtuple('Account', 'id email headers')


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        UPLOAD_FOLDER = str(tmp_path / 'uploads')

    app = create_app(Config)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def gateways(app):
    return app.extensions['payment_gateways']


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make_user(role=Role.CUSTOMER, name=None, email=None, specialization='General care',
                   is_active=True, rating=0):
        counter['n'] += 1
        email = email or f"{role.value}{counter['n']}@example.com"
        with app.app_context():
            user = User(
                name=name or f"{role.value.title()} {counter['n']}",
                email=email,
                password=bcrypt.generate_password_hash(PASSWORD).decode('utf-8'),
                role=role
            )
            if role in PROFESSIONAL_ROLES:
                user.professional_info = ProfessionalInfo(
                    specialization=specialization, qualifications=['DVM'], availability={},
                    is_active=is_active, rating=rating
                )
            db.session.add(user)
            db.session.commit()
            headers = {'Authorization': f'Bearer {issue_token(user)}'}
            return Account(user.id, email, headers)

    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user(Role.CUSTOMER, name='Alice')


@pytest.fixture
def other_customer(make_user):
    return make_user(Role.CUSTOMER, name='Bob')


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, name='Admin')


@pytest.fixture
def vet(make_user):
    return make_user(Role.VETERINARIAN, name='Dr. Vet', specialization='Surgery', rating=4.5)


@pytest.fixture
def make_product(app):
    def _make_product(name='Dog Food', price='25.50', stock=10, is_active=True, category_id=None):
        with app.app_context():
            product = Product(name=name, price=Decimal(price), stock=stock,
                              is_active=is_active, category_id=category_id)
            db.session.add(product)
            db.session.commit()
            return product.id

    return _make_product


@pytest.fixture
def product(make_product):
    return make_product()


@pytest.fixture
def make_pet(app):
    def _make_pet(owner_id, name='Rex', species='dog'):
        with app.app_context():
            pet = Pet(owner_id=owner_id, name=name, species=species)
            db.session.add(pet)
            db.session.commit()
            return pet.id

    return _make_pet


@pytest.fixture
def add_to_cart(client):
    def _add_to_cart(account, product_id, quantity):
        return client.post('/api/cart', json={'productId': product_id, 'quantity': quantity},
                           headers=account.headers)

    return _add_to_cart


@pytest.fixture
def checkout(client):
    def _checkout(account, payment_method='stripe', **extra):
        payload = {'shippingAddress': SHIPPING_ADDRESS, 'paymentMethod': payment_method, **extra}
        return client.post('/api/orders', json=payload, headers=account.headers)

    return _checkout


@pytest.fixture
def placed_order(add_to_cart, checkout, customer, product):
    """A pending order of 2 x product for ``customer``."""
    assert add_to_cart(customer, product, 2).status_code == 200
    response = checkout(customer)
    assert response.status_code == 201
    return response.get_json()


def stock_of(app, product_id):
    with app.app_context():
        return db.session.get(Product, product_id).stock


def future_iso(days=3, hour=10):
    moment = datetime.now(timezone.utc) + timedelta(days=days)
    return moment.replace(hour=hour, minute=0, second=0, microsecond=0).isoformat()
