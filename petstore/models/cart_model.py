from decimal import Decimal

from petstore import db
from petstore.utils.util import utcnow


class CartItem(db.Model):
    __tablename__ = 'cart_item'
    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey('cart.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    # Price captured when the item was added; checkout never trusts it.
    price = db.Column(db.Numeric(10, 2), nullable=False)

    cart = db.relationship('Cart', back_populates='items')
    product = db.relationship('Product')

    __table_args__ = (
        db.UniqueConstraint('cart_id', 'product_id', name='uq_cart_item_product'),
        db.CheckConstraint('quantity >= 1', name='ck_cart_item_quantity_positive'),
    )


class Cart(db.Model):
    __tablename__ = 'cart'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, unique=True)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_code = db.Column(db.String(50))
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship('User', back_populates='cart')
    items = db.relationship('CartItem', back_populates='cart', order_by='CartItem.id',
                            cascade='all, delete-orphan')

    @property
    def total_price(self):
        return sum((item.price * item.quantity for item in self.items), Decimal('0'))

    def find_item(self, product_id):
        return next((item for item in self.items if item.product_id == product_id), None)

    def add_item(self, product, quantity):
        item = self.find_item(product.id)
        if item:
            item.quantity += quantity
            item.price = product.price
        else:
            item = CartItem(product_id=product.id, product=product, quantity=quantity, price=product.price)
            self.items.append(item)
        return item

    def remove_item(self, product_id):
        item = self.find_item(product_id)
        if item:
            self.items.remove(item)
        return item

    def clear(self):
        self.items = []
        self.discount = 0
        self.discount_code = None

    def __repr__(self):
        return f'<Cart of User {self.user_id} ({len(self.items)} items)>'
