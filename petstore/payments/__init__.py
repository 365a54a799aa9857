"""Payment gateway registry.

Gateways are built once per application from its configuration and kept in
``app.extensions['payment_gateways']`` keyed by provider name.
"""
import logging

from flask import current_app

from petstore.errors import ValidationError
from petstore.payments.fake_gateway import FakeGateway
from petstore.payments.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)

PROVIDERS = ('stripe', 'paypal')


def register_payment_gateways(app):
    gateways = {}
    if app.config.get('STRIPE_SECRET_KEY'):
        gateways['stripe'] = StripeGateway(
            app.config['STRIPE_SECRET_KEY'],
            app.config.get('STRIPE_WEBHOOK_SECRET'),
            currency=app.config.get('PAYMENT_CURRENCY', 'usd')
        )
    if app.config.get('USE_FAKE_PAYMENT_GATEWAY'):
        for provider in PROVIDERS:
            gateways.setdefault(provider, FakeGateway(provider, app.config['FAKE_WEBHOOK_SECRET']))
    app.extensions['payment_gateways'] = gateways
    logger.info(f"Payment gateways: {', '.join(sorted(gateways)) or 'none'}")
    return gateways


def get_gateway(provider):
    gateway = current_app.extensions.get('payment_gateways', {}).get(provider)
    if gateway is None:
        raise ValidationError('Invalid payment method')
    return gateway
