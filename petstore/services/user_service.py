# User and authentication service module
import logging
import re

from flask_jwt_extended import create_access_token
from sqlalchemy.exc import IntegrityError

from petstore import bcrypt, db
from petstore.errors import AuthenticationError, AuthorizationError, ConflictError, ValidationError
from petstore.models import PROFESSIONAL_ROLES, Role, User
from petstore.services import get_or_404
from petstore.services.professional_service import apply_professional_info

logger = logging.getLogger(__name__)

PASSWORD_REGEX = re.compile(r'^(?=.*[A-Za-z])(?=.*\d).{8,}$')
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$')


def issue_token(user):
    return create_access_token(identity=str(user.id), additional_claims={'role': user.role.value})


def _parse_role(value):
    try:
        return Role(str(value).lower())
    except ValueError:
        raise ValidationError(f"Invalid role. Allowed: {', '.join(r.value for r in Role)}")


def create_user(data, role=Role.CUSTOMER):
    email = data['email'].strip().lower()
    if not EMAIL_REGEX.match(email):
        raise ValidationError('Invalid email format.')
    if not PASSWORD_REGEX.match(data['password']):
        raise ValidationError('Password must be at least 8 characters and contain at least one letter and one number.')
    if User.query.filter_by(email=email).first():
        raise ConflictError('Email already registered.', 409)

    user = User(
        name=data['name'],
        email=email,
        phone_number=data.get('phoneNumber'),
        address=data.get('address'),
        password=bcrypt.generate_password_hash(data['password']).decode('utf-8'),
        role=role
    )
    if user.is_professional:
        apply_professional_info(user, data.get('professionalInfo') or {})

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('Email already registered.', 409)
    logger.info(f"User {user.id} registered as {role.value}")
    return user


def register(data):
    return create_user(data, Role.CUSTOMER)


def create_user_as_admin(data):
    return create_user(data, _parse_role(data.get('role', Role.CUSTOMER.value)))


def authenticate(email, password):
    user = User.query.filter_by(email=(email or '').strip().lower()).first()
    if not user or not bcrypt.check_password_hash(user.password, password):
        raise AuthenticationError('Invalid email or password.')
    if user.is_banned:
        raise AuthorizationError('Your account is banned. Contact support.')
    return user


def list_users(role=None):
    query = User.query
    if role:
        query = query.filter_by(role=_parse_role(role))
    return query.order_by(User.id).all()


def update_user_role(user_id, new_role, actor):
    user = get_or_404(User, user_id, 'User')
    role = _parse_role(new_role)
    if user.id == actor.id and role != Role.ADMIN:
        raise ValidationError('Admins cannot demote themselves')
    if role in PROFESSIONAL_ROLES and user.professional_info is None:
        raise ValidationError('Professional roles require professional info')
    user.role = role
    db.session.commit()
    logger.info(f"User {user.id} role changed to {role.value} by {actor.id}")
    return user


def set_banned(user_id, banned, actor):
    user = get_or_404(User, user_id, 'User')
    if user.id == actor.id:
        raise ValidationError('You cannot ban yourself')
    user.is_banned = banned
    db.session.commit()
    logger.info(f"User {user.id} {'banned' if banned else 'unbanned'} by {actor.id}")
    return user
