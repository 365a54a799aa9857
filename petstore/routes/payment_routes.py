from flask import request
from flask_restx import Namespace, Resource, fields

from petstore.models import Role
from petstore.payments import PROVIDERS
from petstore.services import payment_service
from petstore.services.order_service import format_order
from petstore.utils.auth_middleware import current_user, login_required, role_required

payment_ns = Namespace('payments', description='Payment processing')

initialize_model = payment_ns.model('PaymentInitialize', {
    'paymentMethod': fields.String(required=True, enum=list(PROVIDERS))
})

confirm_model = payment_ns.model('PaymentConfirm', {
    'paymentIntentId': fields.String(required=True, min_length=1)
})


@payment_ns.route('/orders/<int:order_id>/initialize')
class PaymentInitialize(Resource):
    @payment_ns.expect(initialize_model, validate=True)
    @payment_ns.doc('initialize_payment', security='BearerAuth')
    @login_required
    def post(self, order_id):
        """Create a payment intent with the chosen provider"""
        return payment_service.initialize_payment(
            order_id, current_user(), request.get_json()['paymentMethod']), 200


@payment_ns.route('/orders/<int:order_id>/confirm')
class PaymentConfirm(Resource):
    @payment_ns.expect(confirm_model, validate=True)
    @payment_ns.doc('confirm_payment', security='BearerAuth')
    @login_required
    def post(self, order_id):
        """Confirm the payment intent and mark the order paid"""
        order = payment_service.confirm_payment(
            order_id, current_user(), request.get_json()['paymentIntentId'])
        return {'message': 'Payment successful', 'order': format_order(order)}, 200


@payment_ns.route('/orders/<int:order_id>/refund')
class PaymentRefund(Resource):
    @payment_ns.doc('refund_payment', security='BearerAuth')
    @role_required(Role.ADMIN)
    def post(self, order_id):
        """Refund a paid order and cancel it"""
        order, refund = payment_service.refund_payment(order_id)
        return {
            'message': 'Refund processed successfully',
            'refundId': refund.refund_id,
            'order': format_order(order)
        }, 200


@payment_ns.route('/webhook/<string:provider>')
class PaymentWebhook(Resource):
    @payment_ns.doc('payment_webhook')
    def post(self, provider):
        """Gateway callback; the signature is checked against the raw body"""
        return payment_service.handle_webhook(provider, request.get_data(), request.headers), 200
