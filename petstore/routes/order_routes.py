from flask import request
from flask_restx import Namespace, Resource, fields

from petstore.models import OrderStatus, PaymentMethod, Role
from petstore.services import order_service
from petstore.services.order_service import format_order
from petstore.utils.auth_middleware import current_user, login_required, role_required

order_ns = Namespace('orders', description='Checkout and order management')

address_model = order_ns.model('ShippingAddress', {
    'street': fields.String(required=True, min_length=1),
    'city': fields.String(required=True, min_length=1),
    'state': fields.String(required=True, min_length=1),
    'country': fields.String(required=True, min_length=1),
    'zipCode': fields.String(required=True, min_length=1)
})

checkout_model = order_ns.model('Checkout', {
    'shippingAddress': fields.Nested(address_model, required=True),
    'paymentMethod': fields.String(required=True, enum=[m.value for m in PaymentMethod]),
    'notes': fields.String()
})

status_model = order_ns.model('OrderStatusUpdate', {
    'status': fields.String(required=True, enum=[s.value for s in OrderStatus]),
    'trackingNumber': fields.String(),
    'estimatedDelivery': fields.String(description='ISO 8601 date'),
    'notes': fields.String()
})


@order_ns.route('')
class OrderList(Resource):
    @order_ns.expect(checkout_model, validate=True)
    @order_ns.doc('checkout', security='BearerAuth')
    @login_required
    def post(self):
        """Turn the cart into an order"""
        order = order_service.checkout(current_user(), request.get_json())
        return format_order(order, include_payment=False), 201

    @order_ns.doc('list_orders', security='BearerAuth', params={'status': 'Filter by order status'})
    @login_required
    def get(self):
        """Own orders; admins see every order"""
        orders = order_service.list_orders(current_user(), request.args.get('status'))
        return [format_order(o) for o in orders], 200


@order_ns.route('/<int:order_id>')
class OrderResource(Resource):
    @order_ns.doc('get_order', security='BearerAuth')
    @login_required
    def get(self, order_id):
        """Get an order by ID"""
        return format_order(order_service.get_order(order_id, current_user())), 200


@order_ns.route('/<int:order_id>/status')
class OrderStatusResource(Resource):
    @order_ns.expect(status_model, validate=True)
    @order_ns.doc('update_order_status', security='BearerAuth')
    @role_required(Role.ADMIN)
    def patch(self, order_id):
        """Move an order along its lifecycle"""
        order = order_service.update_order_status(order_id, request.get_json())
        return format_order(order), 200


@order_ns.route('/<int:order_id>/cancel')
class OrderCancel(Resource):
    @order_ns.doc('cancel_order', security='BearerAuth')
    @login_required
    def post(self, order_id):
        """Cancel a pending or processing order and restock its items"""
        order = order_service.cancel_order(order_id, current_user())
        return format_order(order), 200
