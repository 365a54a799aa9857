from flask import request
from flask_restx import Namespace, Resource, fields

from petstore.services import cart_service
from petstore.services.cart_service import format_cart
from petstore.utils.auth_middleware import current_user, login_required

cart_ns = Namespace('cart', description="Shopping cart of the current user")

cart_item_model = cart_ns.model('CartItem', {
    'productId': fields.Integer(required=True, description='Product ID'),
    'quantity': fields.Integer(required=True, min=1, description='Quantity to add')
})

quantity_model = cart_ns.model('CartQuantity', {
    'quantity': fields.Integer(required=True, min=1, description='New quantity')
})

discount_model = cart_ns.model('CartDiscount', {
    'discountCode': fields.String(required=True, description='Discount code, evaluated at checkout')
})


@cart_ns.route('')
class CartResource(Resource):
    @cart_ns.doc('get_cart', security='BearerAuth')
    @login_required
    def get(self):
        """Get the cart, creating an empty one on first access"""
        return format_cart(cart_service.get_or_create_cart(current_user())), 200

    @cart_ns.expect(cart_item_model, validate=True)
    @cart_ns.doc('add_to_cart', security='BearerAuth')
    @login_required
    def post(self):
        """Add a product to the cart"""
        data = request.get_json()
        cart = cart_service.add_item(current_user(), data['productId'], data['quantity'])
        return format_cart(cart), 200

    @cart_ns.doc('clear_cart', security='BearerAuth')
    @login_required
    def delete(self):
        """Remove every item and the discount code"""
        return format_cart(cart_service.clear_cart(current_user())), 200


@cart_ns.route('/items/<int:product_id>')
class CartItemResource(Resource):
    @cart_ns.expect(quantity_model, validate=True)
    @cart_ns.doc('update_cart_item', security='BearerAuth')
    @login_required
    def put(self, product_id):
        """Change the quantity of a cart line"""
        cart = cart_service.update_item(current_user(), product_id, request.get_json()['quantity'])
        return format_cart(cart), 200

    @cart_ns.doc('remove_cart_item', security='BearerAuth')
    @login_required
    def delete(self, product_id):
        """Remove a product from the cart"""
        return format_cart(cart_service.remove_item(current_user(), product_id)), 200


@cart_ns.route('/discount')
class CartDiscount(Resource):
    @cart_ns.expect(discount_model, validate=True)
    @cart_ns.doc('apply_discount', security='BearerAuth')
    @login_required
    def post(self):
        """Attach a discount code to the cart"""
        cart = cart_service.apply_discount(current_user(), request.get_json()['discountCode'])
        return format_cart(cart), 200
