from flask import request
from flask_restx import Namespace, Resource, fields

from petstore.models import Category, Role
from petstore.services import get_or_404, product_service
from petstore.services.product_service import format_category
from petstore.utils.auth_middleware import role_required

category_ns = Namespace('categories', description='Category operations')

category_model = category_ns.model('Category', {
    'name': fields.String(required=True, min_length=1, description='Category name'),
    'description': fields.String(description='Category description')
})

category_update_model = category_ns.model('CategoryUpdate', {
    'name': fields.String(min_length=1, description='Category name'),
    'description': fields.String(description='Category description')
})


@category_ns.route('')
class CategoryList(Resource):
    @category_ns.doc('list_categories')
    def get(self):
        """List all categories"""
        return [format_category(c) for c in product_service.list_categories()], 200

    @category_ns.expect(category_model, validate=True)
    @category_ns.doc('create_category', security='BearerAuth')
    @role_required(Role.ADMIN)
    def post(self):
        """Create a new category"""
        category = product_service.create_category(request.get_json())
        return format_category(category), 201


@category_ns.route('/<int:category_id>')
class CategoryResource(Resource):
    @category_ns.doc('get_category')
    def get(self, category_id):
        """Get a category by ID"""
        return format_category(get_or_404(Category, category_id, 'Category')), 200

    @category_ns.expect(category_update_model, validate=True)
    @category_ns.doc('update_category', security='BearerAuth')
    @role_required(Role.ADMIN)
    def put(self, category_id):
        """Update a category"""
        category = product_service.update_category(category_id, request.get_json())
        return format_category(category), 200

    @category_ns.doc('delete_category', security='BearerAuth')
    @role_required(Role.ADMIN)
    def delete(self, category_id):
        """Delete a category without products"""
        product_service.delete_category(category_id)
        return {'message': 'Category deleted'}, 200
