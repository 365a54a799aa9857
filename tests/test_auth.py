from conftest import PASSWORD
from petstore.models import Role


def _register(client, **overrides):
    payload = {'name': 'Carol', 'email': 'carol@example.com', 'password': 'Secret123', **overrides}
    return client.post('/api/auth/register', json=payload)


def test_register_returns_token_and_profile(client):
    response = _register(client, phoneNumber='555-0101')

    assert response.status_code == 201
    data = response.get_json()
    assert data['access_token']
    assert data['user']['email'] == 'carol@example.com'
    assert data['user']['role'] == 'customer'
    assert 'manage_cart' in data['user']['permissions']['actions']

    me = client.get('/api/auth/me', headers={'Authorization': f"Bearer {data['access_token']}"})
    assert me.get_json()['user']['phoneNumber'] == '555-0101'


def test_register_normalizes_email_and_rejects_duplicates(client):
    _register(client, email='Carol@Example.com')

    response = _register(client, email='carol@example.com')

    assert response.status_code == 409
    assert response.get_json() == {'status': 'fail', 'message': 'Email already registered.'}


def test_register_validation(client):
    assert _register(client, password='short1').status_code == 400
    assert _register(client, password='lettersonly').status_code == 400
    assert _register(client, email='not-an-email').status_code == 400

    response = client.post('/api/auth/register', json={'email': 'x@example.com', 'password': 'Secret123'})
    assert response.status_code == 400
    assert 'name' in response.get_json()['errors']


def test_login(client, customer):
    response = client.post('/api/auth/login', json={'email': customer.email, 'password': PASSWORD})

    assert response.status_code == 200
    assert response.get_json()['user']['id'] == customer.id


def test_login_with_wrong_password(client, customer):
    response = client.post('/api/auth/login', json={'email': customer.email, 'password': 'Wrong1234'})

    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid email or password.'


def test_me_requires_valid_token(client):
    assert client.get('/api/auth/me').status_code == 401
    response = client.get('/api/auth/me', headers={'Authorization': 'Bearer garbage'})
    assert response.status_code == 401
    assert response.get_json()['status'] == 'fail'


def test_professional_profile_includes_info(client, vet):
    user = client.get('/api/auth/me', headers=vet.headers).get_json()['user']

    assert user['role'] == 'veterinarian'
    assert user['professionalInfo']['specialization'] == 'Surgery'
    assert 'confirm_appointment' in user['permissions']['actions']


def test_admin_lists_and_creates_users(client, admin, customer):
    users = client.get('/api/users', headers=admin.headers).get_json()
    assert {u['id'] for u in users} == {admin.id, customer.id}
    customers = client.get('/api/users?role=customer', headers=admin.headers).get_json()
    assert [u['id'] for u in customers] == [customer.id]

    response = client.post('/api/users', json={
        'name': 'Gina', 'email': 'gina@example.com', 'password': 'Groom1234', 'role': 'groomer',
        'professionalInfo': {'specialization': 'Poodles', 'experience': 4}
    }, headers=admin.headers)
    assert response.status_code == 201
    assert response.get_json()['professionalInfo']['experience'] == 4


def test_professional_without_info_is_rejected(client, admin):
    response = client.post('/api/users', json={
        'name': 'Tim', 'email': 'tim@example.com', 'password': 'Train1234', 'role': 'trainer'
    }, headers=admin.headers)

    assert response.status_code == 400


def test_user_admin_requires_admin(client, customer):
    assert client.get('/api/users', headers=customer.headers).status_code == 403


def test_role_change(client, admin, customer, vet):
    response = client.patch(f'/api/users/{customer.id}/role', json={'role': 'admin'}, headers=admin.headers)
    assert response.status_code == 200
    assert response.get_json()['role'] == 'admin'

    # The new role applies on the next request with the old token.
    assert client.get('/api/users', headers=customer.headers).status_code == 200

    response = client.patch(f'/api/users/{vet.id}/role', json={'role': 'groomer'}, headers=admin.headers)
    assert response.get_json()['role'] == 'groomer'


def test_role_change_guards(client, admin, make_user):
    plain = make_user(Role.CUSTOMER)

    response = client.patch(f'/api/users/{plain.id}/role', json={'role': 'trainer'}, headers=admin.headers)
    assert response.status_code == 400

    response = client.patch(f'/api/users/{admin.id}/role', json={'role': 'customer'}, headers=admin.headers)
    assert response.status_code == 400


def test_banned_user_is_locked_out(client, admin, customer):
    response = client.patch(f'/api/users/{customer.id}/ban', json={'banned': True}, headers=admin.headers)
    assert response.get_json()['isBanned'] is True

    assert client.get('/api/cart', headers=customer.headers).status_code == 403
    response = client.post('/api/auth/login', json={'email': customer.email, 'password': PASSWORD})
    assert response.status_code == 403

    client.patch(f'/api/users/{customer.id}/ban', json={'banned': False}, headers=admin.headers)
    assert client.get('/api/cart', headers=customer.headers).status_code == 200


def test_admin_cannot_ban_self(client, admin):
    response = client.patch(f'/api/users/{admin.id}/ban', json={'banned': True}, headers=admin.headers)

    assert response.status_code == 400
