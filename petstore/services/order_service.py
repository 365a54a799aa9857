# Order service module: checkout, status changes and cancellation
import logging
from decimal import Decimal, ROUND_FLOOR

from sqlalchemy import update

from petstore import db
from petstore.errors import (
    AuthorizationError, EmptyCartError, InsufficientStockError, ProductInactiveError,
    ProductNotFoundError, ValidationError
)
from petstore.models import (
    CANCELLABLE_STATUSES, Order, OrderItem, OrderStatus, PaymentMethod, Product, Role, STATUS_TRANSITIONS
)
from petstore.services import get_or_404
from petstore.services.cart_service import find_cart
from petstore.utils.email import send_email
from petstore.utils.util import isoformat, money, parse_datetime

logger = logging.getLogger(__name__)

# Percentage off the order total, keyed by discount code.
DISCOUNT_RULES = {
    'SUMMER10': Decimal('0.10'),
}

SHIPPING_FIELDS = ('street', 'city', 'state', 'country', 'zipCode')


def format_order(order, include_payment=True):
    data = {
        'id': order.id,
        'userId': order.user_id,
        'items': [
            {
                'productId': item.product_id,
                'name': item.product.name if item.product else None,
                'quantity': item.quantity,
                'price': money(item.price)
            }
            for item in order.items
        ],
        'totalItems': order.total_items,
        'totalAmount': money(order.total_amount),
        'discount': money(order.discount),
        'discountCode': order.discount_code,
        'finalAmount': money(order.final_amount),
        'shippingAddress': order.shipping_address,
        'paymentMethod': order.payment_method.value,
        'paymentStatus': order.payment_status.value,
        'status': order.status.value,
        'trackingNumber': order.tracking_number,
        'estimatedDelivery': isoformat(order.estimated_delivery),
        'notes': order.notes,
        'createdAt': isoformat(order.created_at),
        'updatedAt': isoformat(order.updated_at)
    }
    if include_payment:
        data['paymentDetails'] = {
            'provider': order.payment_provider,
            'transactionId': order.payment_transaction_id,
            'paymentDate': isoformat(order.payment_date),
            'amount': money(order.payment_amount)
        }
    return data


def resolve_discount(discount_code, total_amount):
    """Return ``(discount, applied_code)``; unknown codes give no discount."""
    if not discount_code:
        return Decimal('0'), None
    rate = DISCOUNT_RULES.get(discount_code.strip().upper())
    if rate is None:
        logger.warning(f"Invalid discount code ignored: {discount_code}")
        return Decimal('0'), None
    discount = (total_amount * rate).to_integral_value(rounding=ROUND_FLOOR)
    return discount, discount_code.strip().upper()


def reserve_stock(product_id, quantity, product_name):
    """Decrement stock only if enough is left.

    The check and the decrement are one UPDATE statement, so two
    transactions can never both take the last units of a product.
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity),
        execution_options={'synchronize_session': False}
    )
    if result.rowcount != 1:
        raise InsufficientStockError(product_name)


def restore_stock(order):
    for item in order.items:
        db.session.execute(
            update(Product)
            .where(Product.id == item.product_id)
            .values(stock=Product.stock + item.quantity),
            execution_options={'synchronize_session': False}
        )
    logger.info(f"Stock restored for order {order.id}")


def mark_cancelled(order):
    """Cancel the order, returning its items to stock exactly once."""
    if order.status == OrderStatus.CANCELLED:
        return
    order.status = OrderStatus.CANCELLED
    restore_stock(order)


def _parse_checkout(data):
    address = data.get('shippingAddress') or {}
    missing = [f for f in SHIPPING_FIELDS if not str(address.get(f) or '').strip()]
    if missing:
        raise ValidationError(f"Missing shipping address fields: {', '.join(missing)}")
    try:
        payment_method = PaymentMethod(data.get('paymentMethod'))
    except ValueError:
        raise ValidationError(f"Invalid payment method. Allowed: {', '.join(m.value for m in PaymentMethod)}")
    return address, payment_method


def _lock_products(product_ids):
    # Lock in id order so concurrent checkouts over the same products cannot deadlock.
    products = (Product.query
                .filter(Product.id.in_(sorted(product_ids)))
                .order_by(Product.id)
                .populate_existing()
                .with_for_update()
                .all())
    return {p.id: p for p in products}


def checkout(user, data):
    address, payment_method = _parse_checkout(data)

    cart = find_cart(user)
    if cart is None or not cart.items:
        raise EmptyCartError()

    try:
        products = _lock_products({item.product_id for item in cart.items})
        total_items = 0
        total_amount = Decimal('0')
        order_items = []
        for item in cart.items:
            product = products.get(item.product_id)
            if product is None:
                logger.warning(f"Product not found: {item.product_id}")
                raise ProductNotFoundError(item.product_id)
            if not product.is_active:
                logger.warning(f"Inactive product: {product.id}")
                raise ProductInactiveError(product.name)
            if product.stock < item.quantity:
                logger.warning(f"Insufficient stock for product: {product.id}")
                raise InsufficientStockError(product.name)
            # Live price; the cart line price is never trusted.
            price = product.price
            total_items += item.quantity
            total_amount += price * item.quantity
            order_items.append(OrderItem(product=product, quantity=item.quantity, price=price))

        discount, discount_code = resolve_discount(cart.discount_code, total_amount)

        order = Order(
            user_id=user.id,
            items=order_items,
            total_items=total_items,
            total_amount=total_amount,
            discount=discount,
            discount_code=discount_code,
            shipping_street=address['street'],
            shipping_city=address['city'],
            shipping_state=address['state'],
            shipping_country=address['country'],
            shipping_zip_code=address['zipCode'],
            payment_method=payment_method,
            notes=data.get('notes')
        )
        db.session.add(order)
        db.session.flush()

        for line in order_items:
            reserve_stock(line.product.id, line.quantity, line.product.name)

        cart.clear()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Order {order.id} created for user {user.id}: "
                f"{[(i.product_id, i.quantity, str(i.price)) for i in order.items]}")

    send_email(
        user.email, 'Order Confirmation', 'order_confirmation',
        name=user.name,
        order_id=order.id,
        items=[{'product_name': i.product.name, 'quantity': i.quantity, 'price': i.price} for i in order.items],
        total_amount=order.total_amount,
        discount=order.discount,
        final_amount=order.final_amount
    )
    return order


def check_authorization(order, user):
    return user.role == Role.ADMIN or order.user_id == user.id


def get_order(order_id, user):
    order = get_or_404(Order, order_id, 'Order')
    if not check_authorization(order, user):
        raise AuthorizationError('Not authorized to view this order')
    return order


def list_orders(user, status=None):
    query = Order.query
    if user.role != Role.ADMIN:
        query = query.filter_by(user_id=user.id)
    if status:
        try:
            query = query.filter_by(status=OrderStatus(status))
        except ValueError:
            raise ValidationError(f'Invalid status: {status}')
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def update_order_status(order_id, data):
    order = get_or_404(Order, order_id, 'Order')
    try:
        new_status = OrderStatus(data.get('status'))
    except ValueError:
        raise ValidationError(f"Invalid status: {data.get('status')}")

    if new_status not in STATUS_TRANSITIONS[order.status]:
        raise ValidationError(f'Invalid status transition from {order.status.value} to {new_status.value}')

    try:
        if new_status == OrderStatus.CANCELLED:
            mark_cancelled(order)
        else:
            order.status = new_status
        if data.get('trackingNumber'):
            order.tracking_number = data['trackingNumber']
        if data.get('estimatedDelivery'):
            order.estimated_delivery = parse_datetime(data['estimatedDelivery'], 'estimatedDelivery')
        if data.get('notes'):
            order.notes = data['notes']
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Order {order.id} status changed to {order.status.value}")
    send_email(
        order.user.email, 'Order Status Update', 'order_status_update',
        name=order.user.name,
        order_id=order.id,
        status=order.status.value,
        tracking_number=order.tracking_number,
        estimated_delivery=isoformat(order.estimated_delivery)
    )
    return order


def cancel_order(order_id, user):
    order = get_or_404(Order, order_id, 'Order')
    if not check_authorization(order, user):
        raise AuthorizationError('Not authorized to cancel this order')
    if order.status not in CANCELLABLE_STATUSES:
        raise ValidationError('Order cannot be cancelled')

    try:
        mark_cancelled(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Order {order.id} cancelled by user {user.id}")
    send_email(order.user.email, 'Order Cancelled', 'order_cancelled', name=order.user.name, order_id=order.id)
    return order
