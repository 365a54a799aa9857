# Product and category service module for business logic
import logging

from petstore import db
from petstore.errors import ConflictError, NotFoundError, ValidationError
from petstore.models import Category, Product
from petstore.services import get_or_404
from petstore.utils.storage import delete_image, image_url, save_image
from petstore.utils.util import isoformat, money, page_meta, to_decimal

logger = logging.getLogger(__name__)


def format_category(category):
    return {
        'id': category.id,
        'name': category.name,
        'description': category.description
    }


def format_product(product):
    return {
        'id': product.id,
        'name': product.name,
        'description': product.description,
        'price': money(product.price),
        'stock': product.stock,
        'isActive': product.is_active,
        'categoryId': product.category_id,
        'imageId': product.image_id,
        'imageUrl': image_url(product.image_id),
        'rating': product.rating,
        'reviewCount': product.review_count,
        'createdAt': isoformat(product.created_at)
    }


def _check_price_and_stock(price=None, stock=None):
    if price is not None and to_decimal(price) < 0:
        raise ValidationError('Price must be non-negative')
    if stock is not None and int(stock) < 0:
        raise ValidationError('Stock must be non-negative')


def _category_or_none(category_id):
    if category_id is None:
        return None
    return get_or_404(Category, category_id, 'Category').id


def list_products(page, limit, category_id=None, search=None, include_inactive=False):
    query = Product.query
    if not include_inactive:
        query = query.filter_by(is_active=True)
    if category_id:
        query = query.filter_by(category_id=category_id)
    if search:
        query = query.filter(Product.name.ilike(f'%{search}%'))
    pagination = query.order_by(Product.created_at.desc(), Product.id.desc()).paginate(
        page=page, per_page=limit, error_out=False)
    return {
        'products': [format_product(p) for p in pagination.items],
        'pagination': page_meta(pagination)
    }


def get_product(product_id, include_inactive=False):
    product = get_or_404(Product, product_id, 'Product')
    if not product.is_active and not include_inactive:
        raise NotFoundError('Product not found')
    return product


def create_product(data):
    _check_price_and_stock(data.get('price'), data.get('stock', 0))
    product = Product(
        name=data['name'],
        description=data.get('description'),
        price=to_decimal(data['price']),
        stock=data.get('stock', 0),
        is_active=data.get('isActive', True),
        category_id=_category_or_none(data.get('categoryId'))
    )
    db.session.add(product)
    db.session.commit()
    logger.info(f"Product {product.id} '{product.name}' created")
    return product


def update_product(product_id, data):
    product = get_or_404(Product, product_id, 'Product')
    _check_price_and_stock(data.get('price'), data.get('stock'))
    if 'name' in data:
        product.name = data['name']
    if 'description' in data:
        product.description = data['description']
    if 'price' in data:
        product.price = to_decimal(data['price'])
    if 'stock' in data:
        product.stock = data['stock']
    if 'isActive' in data:
        product.is_active = data['isActive']
    if 'categoryId' in data:
        product.category_id = _category_or_none(data['categoryId'])
    db.session.commit()
    logger.info(f"Product {product.id} updated")
    return product


def deactivate_product(product_id):
    """Soft delete: orders keep referencing the row."""
    product = get_or_404(Product, product_id, 'Product')
    product.is_active = False
    db.session.commit()
    logger.info(f"Product {product.id} deactivated")
    return product


def set_product_image(product_id, file_storage):
    product = get_or_404(Product, product_id, 'Product')
    public_id = save_image(file_storage)
    old_image = product.image_id
    product.image_id = public_id
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        delete_image(public_id)
        raise
    delete_image(old_image)
    return product


def list_categories():
    return Category.query.order_by(Category.name).all()


def create_category(data):
    if Category.query.filter_by(name=data['name']).first():
        raise ConflictError(f"Category with name '{data['name']}' already exists", 409)
    category = Category(name=data['name'], description=data.get('description'))
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id, data):
    category = get_or_404(Category, category_id, 'Category')
    if 'name' in data and data['name'] != category.name:
        if Category.query.filter(Category.id != category_id, Category.name == data['name']).first():
            raise ConflictError(f"Category with name '{data['name']}' already exists", 409)
        category.name = data['name']
    if 'description' in data:
        category.description = data['description']
    db.session.commit()
    return category


def delete_category(category_id):
    category = get_or_404(Category, category_id, 'Category')
    if category.products:
        raise ValidationError('Cannot delete category: it is associated with existing products.')
    db.session.delete(category)
    db.session.commit()
