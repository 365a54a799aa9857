# Review service module for business logic
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from petstore import db
from petstore.errors import AuthorizationError, ValidationError
from petstore.models import Order, OrderItem, OrderStatus, Product, Review, Role
from petstore.services import get_or_404
from petstore.utils.util import isoformat


def format_review(review):
    return {
        'id': review.id,
        'productId': review.product_id,
        'userId': review.user_id,
        'userName': review.user.name if review.user else None,
        'rating': review.rating,
        'comment': review.comment,
        'isVerified': review.is_verified,
        'createdAt': isoformat(review.created_at)
    }


def _check_rating(rating):
    if rating is not None and not 1 <= rating <= 5:
        raise ValidationError('Rating must be between 1 and 5')


def update_product_rating(product_id):
    avg, count = (db.session.query(func.avg(Review.rating), func.count(Review.id))
                  .filter(Review.product_id == product_id).one())
    product = db.session.get(Product, product_id)
    product.rating = round(float(avg), 1) if count else 0
    product.review_count = count


def has_purchased(user_id, product_id):
    return (db.session.query(Order.id)
            .join(OrderItem)
            .filter(Order.user_id == user_id,
                    Order.status == OrderStatus.DELIVERED,
                    OrderItem.product_id == product_id)
            .first() is not None)


def list_reviews(product_id):
    get_or_404(Product, product_id, 'Product')
    return Review.query.filter_by(product_id=product_id).order_by(Review.created_at.desc()).all()


def create_review(product_id, user, data):
    get_or_404(Product, product_id, 'Product')
    _check_rating(data.get('rating'))
    if not has_purchased(user.id, product_id):
        raise AuthorizationError('You can only review products you have purchased')
    if Review.query.filter_by(user_id=user.id, product_id=product_id).first():
        raise ValidationError('You have already reviewed this product')

    review = Review(user_id=user.id, product_id=product_id, rating=data['rating'],
                    comment=data['comment'], is_verified=True)
    db.session.add(review)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError('You have already reviewed this product')
    update_product_rating(product_id)
    db.session.commit()
    return review


def _editable_review(review_id, user):
    review = get_or_404(Review, review_id, 'Review')
    if user.role != Role.ADMIN and review.user_id != user.id:
        raise AuthorizationError('Not authorized to modify this review')
    return review


def update_review(review_id, user, data):
    review = _editable_review(review_id, user)
    _check_rating(data.get('rating'))
    if 'rating' in data:
        review.rating = data['rating']
    if 'comment' in data:
        review.comment = data['comment']
    db.session.flush()
    update_product_rating(review.product_id)
    db.session.commit()
    return review


def delete_review(review_id, user):
    review = _editable_review(review_id, user)
    product_id = review.product_id
    db.session.delete(review)
    db.session.flush()
    update_product_rating(product_id)
    db.session.commit()
