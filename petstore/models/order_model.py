import enum

from petstore import db
from petstore.utils.util import utcnow


class OrderStatus(enum.Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'


class PaymentStatus(enum.Enum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'


class PaymentMethod(enum.Enum):
    CREDIT_CARD = 'credit_card'
    PAYPAL = 'paypal'
    STRIPE = 'stripe'


STATUS_TRANSITIONS = {
    OrderStatus.PENDING: [OrderStatus.PROCESSING, OrderStatus.CANCELLED],
    OrderStatus.PROCESSING: [OrderStatus.SHIPPED, OrderStatus.CANCELLED],
    OrderStatus.SHIPPED: [OrderStatus.DELIVERED],
    OrderStatus.DELIVERED: [],
    OrderStatus.CANCELLED: []
}

CANCELLABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING)


def _values(enum_cls):
    return [m.value for m in enum_cls]


class OrderItem(db.Model):
    __tablename__ = 'order_item'
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('order.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)

    order = db.relationship('Order', back_populates='items')
    product = db.relationship('Product')

    __table_args__ = (
        db.CheckConstraint('quantity >= 1', name='ck_order_item_quantity_positive'),
    )


class Order(db.Model):
    __tablename__ = 'order'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    total_items = db.Column(db.Integer, nullable=False)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_code = db.Column(db.String(50))

    shipping_street = db.Column(db.String(200), nullable=False)
    shipping_city = db.Column(db.String(100), nullable=False)
    shipping_state = db.Column(db.String(100), nullable=False)
    shipping_country = db.Column(db.String(100), nullable=False)
    shipping_zip_code = db.Column(db.String(20), nullable=False)

    payment_method = db.Column(db.Enum(PaymentMethod, name='payment_method', values_callable=_values),
                               nullable=False)
    payment_status = db.Column(db.Enum(PaymentStatus, name='payment_status', values_callable=_values),
                               nullable=False, default=PaymentStatus.PENDING, index=True)
    payment_provider = db.Column(db.String(30))
    # Gateway intent id stored at initialization; webhooks are matched on it.
    payment_transaction_id = db.Column(db.String(255), index=True)
    payment_date = db.Column(db.DateTime)
    payment_amount = db.Column(db.Numeric(10, 2))

    status = db.Column(db.Enum(OrderStatus, name='order_status', values_callable=_values),
                       nullable=False, default=OrderStatus.PENDING, index=True)
    tracking_number = db.Column(db.String(100))
    estimated_delivery = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship('User', back_populates='orders')
    items = db.relationship('OrderItem', back_populates='order', order_by='OrderItem.id',
                            cascade='all, delete-orphan')

    @property
    def final_amount(self):
        return self.total_amount - self.discount

    @property
    def shipping_address(self):
        return {
            'street': self.shipping_street,
            'city': self.shipping_city,
            'state': self.shipping_state,
            'country': self.shipping_country,
            'zipCode': self.shipping_zip_code
        }

    def __repr__(self):
        return f'<Order {self.id} by User {self.user_id} ({self.status.value})>'
