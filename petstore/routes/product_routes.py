from flask import request
from flask_restx import Namespace, Resource, fields

from petstore.models import Role
from petstore.services import product_service, review_service
from petstore.services.product_service import format_product
from petstore.services.review_service import format_review
from petstore.utils.auth_middleware import current_user, login_required, optional_current_user, role_required
from petstore.utils.util import page_args

product_ns = Namespace('products', description='Product catalogue operations')

product_model = product_ns.model('Product', {
    'name': fields.String(required=True, min_length=1),
    'description': fields.String(),
    'price': fields.Float(required=True, min=0),
    'stock': fields.Integer(min=0, default=0),
    'categoryId': fields.Integer(),
    'isActive': fields.Boolean(default=True)
})

product_update_model = product_ns.model('ProductUpdate', {
    'name': fields.String(min_length=1),
    'description': fields.String(),
    'price': fields.Float(min=0),
    'stock': fields.Integer(min=0),
    'categoryId': fields.Integer(),
    'isActive': fields.Boolean()
})

review_model = product_ns.model('Review', {
    'rating': fields.Integer(required=True, min=1, max=5),
    'comment': fields.String(required=True, min_length=1, max_length=500)
})


def _is_admin_request():
    """Admins browsing with a token also see inactive products."""
    user = optional_current_user()
    return user is not None and user.role == Role.ADMIN


@product_ns.route('')
class ProductList(Resource):
    @product_ns.doc('list_products', params={
        'page': 'Page number (default 1)',
        'limit': 'Page size (default 10)',
        'category': 'Category ID',
        'q': 'Search by name'
    })
    def get(self):
        """List products"""
        page, limit = page_args(request.args)
        return product_service.list_products(
            page, limit,
            category_id=request.args.get('category', type=int),
            search=request.args.get('q'),
            include_inactive=_is_admin_request()
        ), 200

    @product_ns.expect(product_model, validate=True)
    @product_ns.doc('create_product', security='BearerAuth')
    @role_required(Role.ADMIN)
    def post(self):
        """Create a product"""
        product = product_service.create_product(request.get_json())
        return format_product(product), 201


@product_ns.route('/<int:product_id>')
class ProductResource(Resource):
    @product_ns.doc('get_product')
    def get(self, product_id):
        """Get a product by ID"""
        product = product_service.get_product(product_id, include_inactive=_is_admin_request())
        return format_product(product), 200

    @product_ns.expect(product_update_model, validate=True)
    @product_ns.doc('update_product', security='BearerAuth')
    @role_required(Role.ADMIN)
    def put(self, product_id):
        """Update a product"""
        product = product_service.update_product(product_id, request.get_json())
        return format_product(product), 200

    @product_ns.doc('delete_product', security='BearerAuth')
    @role_required(Role.ADMIN)
    def delete(self, product_id):
        """Deactivate a product; existing orders keep referencing it"""
        product_service.deactivate_product(product_id)
        return {'message': 'Product deactivated'}, 200


@product_ns.route('/<int:product_id>/image')
class ProductImage(Resource):
    @product_ns.doc('upload_product_image', security='BearerAuth',
                    params={'image': {'in': 'formData', 'type': 'file', 'required': True}})
    @role_required(Role.ADMIN)
    def post(self, product_id):
        """Upload or replace the product image (multipart field ``image``)"""
        product = product_service.set_product_image(product_id, request.files.get('image'))
        return format_product(product), 200


@product_ns.route('/<int:product_id>/reviews')
class ProductReviews(Resource):
    @product_ns.doc('list_reviews')
    def get(self, product_id):
        """Reviews for a product, newest first"""
        return [format_review(r) for r in review_service.list_reviews(product_id)], 200

    @product_ns.expect(review_model, validate=True)
    @product_ns.doc('create_review', security='BearerAuth')
    @login_required
    def post(self, product_id):
        """Review a product you received"""
        review = review_service.create_review(product_id, current_user(), request.get_json())
        return format_review(review), 201
