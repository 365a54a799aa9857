# Cart service module for business logic
import logging

from petstore import db
from petstore.errors import (
    InsufficientStockError, NotFoundError, ProductInactiveError, ProductNotFoundError, ValidationError
)
from petstore.models import Cart, Product
from petstore.utils.util import isoformat, money

logger = logging.getLogger(__name__)


def format_cart(cart):
    items = []
    for item in cart.items:
        product = item.product
        items.append({
            'productId': item.product_id,
            'name': product.name if product else None,
            'quantity': item.quantity,
            'price': money(item.price),
            'stock': product.stock if product else 0,
            'subtotal': money(item.price * item.quantity)
        })
    return {
        'id': cart.id,
        'userId': cart.user_id,
        'items': items,
        'totalItems': sum(item.quantity for item in cart.items),
        'totalPrice': money(cart.total_price),
        'discount': money(cart.discount),
        'discountCode': cart.discount_code,
        'updatedAt': isoformat(cart.updated_at)
    }


def find_cart(user):
    return Cart.query.filter_by(user_id=user.id).first()


def _existing_cart(user):
    cart = find_cart(user)
    if not cart:
        raise NotFoundError('Cart not found')
    return cart


def get_or_create_cart(user):
    cart = find_cart(user)
    if cart is None:
        cart = Cart(user_id=user.id, discount=0)
        db.session.add(cart)
        db.session.commit()
        logger.debug(f"Created cart for user {user.id}")
    return cart


def _available_product(product_id):
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    if not product.is_active:
        raise ProductInactiveError(product.name)
    return product


def _check_quantity(quantity):
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise ValidationError('Quantity must be at least 1')


def add_item(user, product_id, quantity):
    _check_quantity(quantity)
    product = _available_product(product_id)
    cart = get_or_create_cart(user)
    existing = cart.find_item(product.id)
    wanted = quantity + (existing.quantity if existing else 0)
    if product.stock < wanted:
        raise InsufficientStockError(product.name)
    cart.add_item(product, quantity)
    db.session.commit()
    logger.info(f"User {user.id} added {quantity} x product {product.id} to cart")
    return cart


def update_item(user, product_id, quantity):
    _check_quantity(quantity)
    cart = _existing_cart(user)
    item = cart.find_item(product_id)
    if item is None:
        raise NotFoundError('Item not found in cart')
    product = _available_product(product_id)
    if product.stock < quantity:
        raise InsufficientStockError(product.name)
    item.quantity = quantity
    item.price = product.price
    db.session.commit()
    return cart


def remove_item(user, product_id):
    cart = _existing_cart(user)
    cart.remove_item(product_id)
    db.session.commit()
    return cart


def apply_discount(user, discount_code):
    """Store the code; it is only evaluated at checkout."""
    cart = _existing_cart(user)
    cart.discount_code = (discount_code or '').strip() or None
    cart.discount = 0
    db.session.commit()
    return cart


def clear_cart(user):
    cart = _existing_cart(user)
    cart.clear()
    db.session.commit()
    return cart
