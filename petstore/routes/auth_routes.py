from flask import request
from flask_restx import Namespace, Resource, fields

from petstore.services import user_service
from petstore.utils.auth_middleware import current_user, login_required
from petstore.utils.role_utils import get_user_data_with_permissions

auth_ns = Namespace('auth', description='Authentication operations')

register_model = auth_ns.model('Register', {
    'name': fields.String(required=True, min_length=1, description='Full name'),
    'email': fields.String(required=True, description='Email address'),
    'password': fields.String(required=True, description='At least 8 characters, one letter and one digit'),
    'phoneNumber': fields.String(description='Phone number'),
    'address': fields.String(description='Postal address')
})

login_model = auth_ns.model('Login', {
    'email': fields.String(required=True, description='Email address'),
    'password': fields.String(required=True, description='Password')
})


def _auth_response(user, message):
    return {
        'message': message,
        'access_token': user_service.issue_token(user),
        'user': get_user_data_with_permissions(user)
    }


@auth_ns.route('/register')
class Register(Resource):
    @auth_ns.expect(register_model, validate=True)
    def post(self):
        """Register a new customer account"""
        user = user_service.register(request.get_json())
        return _auth_response(user, 'User registered successfully.'), 201


@auth_ns.route('/login')
class Login(Resource):
    @auth_ns.expect(login_model, validate=True)
    def post(self):
        """Log in and receive a bearer token"""
        data = request.get_json()
        user = user_service.authenticate(data['email'], data['password'])
        return _auth_response(user, 'Logged in successfully.'), 200


@auth_ns.route('/me')
class Me(Resource):
    @auth_ns.doc('current_user', security='BearerAuth')
    @login_required
    def get(self):
        """Current user profile with permissions"""
        return {'user': get_user_data_with_permissions(current_user())}, 200
