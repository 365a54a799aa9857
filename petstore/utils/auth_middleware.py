from functools import wraps

from flask import g, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from petstore import db
from petstore.errors import AuthenticationError, AuthorizationError
from petstore.models.user_model import User


def load_current_user():
    """Verify the bearer token of this request and return its user.

    Nothing is cached between requests: the token is checked and the user
    re-read on every call, so bans and role changes apply immediately.
    """
    try:
        verify_jwt_in_request()
        identity = get_jwt_identity()
    except (JWTExtendedException, PyJWTError) as e:
        raise AuthenticationError(f'Authentication required: {e}')
    try:
        user = db.session.get(User, int(identity))
    except (TypeError, ValueError):
        user = None
    if not user:
        raise AuthenticationError('User not found')
    if user.is_banned:
        raise AuthorizationError('Your account is banned. Contact support.')
    return user


def login_required(fn):
    @wraps(fn)
    def decorated(*args, **kwargs):
        g.user = load_current_user()
        return fn(*args, **kwargs)
    return decorated


def role_required(*roles):
    def wrapper(fn):
        @wraps(fn)
        def decorated(*args, **kwargs):
            user = load_current_user()
            if user.role not in roles:
                raise AuthorizationError('Access denied')
            g.user = user
            return fn(*args, **kwargs)
        return decorated
    return wrapper


def current_user():
    return g.user


def optional_current_user():
    """The requesting user, or None for anonymous requests."""
    if not request.headers.get('Authorization'):
        return None
    return load_current_user()
