from flask import request
from flask_restx import Namespace, Resource, fields

from petstore.services import review_service
from petstore.services.review_service import format_review
from petstore.utils.auth_middleware import current_user, login_required

review_ns = Namespace('reviews', description='Product review operations')

review_update_model = review_ns.model('ReviewUpdate', {
    'rating': fields.Integer(min=1, max=5),
    'comment': fields.String(min_length=1, max_length=500)
})


@review_ns.route('/<int:review_id>')
class ReviewResource(Resource):
    @review_ns.expect(review_update_model, validate=True)
    @review_ns.doc('update_review', security='BearerAuth')
    @login_required
    def put(self, review_id):
        """Edit a review (author or admin)"""
        review = review_service.update_review(review_id, current_user(), request.get_json())
        return format_review(review), 200

    @review_ns.doc('delete_review', security='BearerAuth')
    @login_required
    def delete(self, review_id):
        """Delete a review (author or admin)"""
        review_service.delete_review(review_id, current_user())
        return {'message': 'Review deleted'}, 200
