"""Application error taxonomy and the flask-restx handlers that render it.

Services raise these exceptions; the Api handlers roll back the session and
turn them into ``{"status": ..., "message": ...}`` responses.
"""
import logging
import traceback

from flask import current_app, request
from flask_limiter import RateLimitExceeded
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self):
        return 'fail' if str(self.status_code).startswith('4') else 'error'

    def to_dict(self):
        return {'status': self.status, 'message': self.message}


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 400


class GatewayError(AppError):
    status_code = 502


class EmptyCartError(ValidationError):
    def __init__(self):
        super().__init__('Cart is empty')


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id=None):
        super().__init__('Product not found')
        self.product_id = product_id


class ProductInactiveError(ValidationError):
    def __init__(self, product_name):
        super().__init__(f'Product {product_name} is not available')


class InsufficientStockError(ConflictError):
    def __init__(self, product_name):
        super().__init__(f'Insufficient stock for {product_name}')


def _rollback():
    from petstore import db
    db.session.rollback()


def handle_app_error(error):
    _rollback()
    if error.status_code >= 500:
        logger.error(f"{type(error).__name__}: {error.message}")
    else:
        logger.info(f"{type(error).__name__}: {error.message}")
    return error.to_dict(), error.status_code


def handle_rate_limit(error):
    logger.warning(f"Rate limit exceeded for {request.remote_addr}: {error.description}")
    return {'status': 'error', 'message': 'Too many requests from this IP, please try again after a minute'}, 429


def handle_unexpected_error(error):
    if isinstance(error, HTTPException):
        data = getattr(error, 'data', None) or {'message': error.description}
        return data, error.code

    _rollback()
    logger.exception('Unhandled error')
    body = {'status': 'error', 'message': 'Something went wrong!'}
    if current_app.config.get('APP_ENV') != 'production':
        body['error'] = str(error)
        body['stack'] = traceback.format_exception(type(error), error, error.__traceback__)
    return body, 500


def register_error_handlers(api):
    api.errorhandler(AppError)(handle_app_error)
    api.errorhandler(RateLimitExceeded)(handle_rate_limit)
    api.app.register_error_handler(RateLimitExceeded, handle_rate_limit)
    api.errorhandler(Exception)(handle_unexpected_error)
