from flask import request
from flask_restx import Namespace, Resource, fields, inputs

from petstore.errors import ValidationError
from petstore.services import professional_service
from petstore.services.professional_service import format_professional
from petstore.utils.auth_middleware import current_user, login_required
from petstore.utils.util import page_args

professional_ns = Namespace('professionals', description='Veterinarians, groomers and trainers')

professional_info_model = professional_ns.model('ProfessionalInfoUpdate', {
    'specialization': fields.String(min_length=1),
    'qualifications': fields.List(fields.String),
    'experience': fields.Integer(min=0),
    'availability': fields.Raw(description='Weekly schedule keyed by day'),
    'bio': fields.String(max_length=500),
    'profileImage': fields.String(),
    'isActive': fields.Boolean()
})

professional_update_model = professional_ns.model('ProfessionalUpdate', {
    'name': fields.String(min_length=1),
    'phoneNumber': fields.String(),
    'address': fields.String(),
    'professionalInfo': fields.Nested(professional_info_model)
})


def _bool_arg(name):
    value = request.args.get(name)
    if value is None:
        return None
    try:
        return inputs.boolean(value)
    except ValueError:
        raise ValidationError(f'{name} must be true or false')


@professional_ns.route('')
class ProfessionalList(Resource):
    @professional_ns.doc('list_professionals', params={
        'role': 'veterinarian, groomer or trainer',
        'specialization': 'Substring match on specialization',
        'minRating': 'Minimum rating',
        'active': 'Only active (true) or inactive (false)',
        'page': 'Page number (default 1)',
        'limit': 'Page size (default 10)'
    })
    def get(self):
        """Browse professionals, best rated first"""
        page, limit = page_args(request.args)
        return professional_service.list_professionals(
            page, limit,
            role=request.args.get('role'),
            specialization=request.args.get('specialization'),
            min_rating=request.args.get('minRating', type=float),
            active=_bool_arg('active')
        ), 200


@professional_ns.route('/<int:professional_id>')
class ProfessionalResource(Resource):
    @professional_ns.doc('get_professional')
    def get(self, professional_id):
        """Get a professional's profile"""
        return format_professional(professional_service.get_professional(professional_id)), 200

    @professional_ns.expect(professional_update_model, validate=True)
    @professional_ns.doc('update_professional', security='BearerAuth')
    @login_required
    def patch(self, professional_id):
        """Update a professional profile (self or admin)"""
        user = professional_service.update_professional(professional_id, current_user(), request.get_json())
        return format_professional(user), 200
