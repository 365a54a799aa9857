from flask import request
from flask_restx import Namespace, Resource, fields

from petstore.models import Role
from petstore.services import user_service
from petstore.utils.auth_middleware import current_user, role_required
from petstore.utils.role_utils import get_user_data_with_permissions

users_ns = Namespace('users', description='User administration (admin only)')

professional_info_model = users_ns.model('ProfessionalInfoInput', {
    'specialization': fields.String(description='Specialization'),
    'qualifications': fields.List(fields.String, description='Qualifications'),
    'experience': fields.Integer(min=0, description='Years of experience'),
    'availability': fields.Raw(description='Weekly schedule keyed by day'),
    'bio': fields.String(max_length=500),
    'profileImage': fields.String(),
    'isActive': fields.Boolean()
})

user_model = users_ns.model('UserInput', {
    'name': fields.String(required=True, min_length=1),
    'email': fields.String(required=True),
    'password': fields.String(required=True),
    'role': fields.String(required=True, enum=[r.value for r in Role]),
    'phoneNumber': fields.String(),
    'address': fields.String(),
    'professionalInfo': fields.Nested(professional_info_model)
})

role_model = users_ns.model('RoleUpdate', {
    'role': fields.String(required=True, enum=[r.value for r in Role])
})

ban_model = users_ns.model('BanUpdate', {
    'banned': fields.Boolean(required=True)
})


@users_ns.route('')
class UserList(Resource):
    @users_ns.doc('list_users', security='BearerAuth', params={'role': 'Filter by role'})
    @role_required(Role.ADMIN)
    def get(self):
        """List users"""
        users = user_service.list_users(request.args.get('role'))
        return [get_user_data_with_permissions(u) for u in users], 200

    @users_ns.expect(user_model, validate=True)
    @users_ns.doc('create_user', security='BearerAuth')
    @role_required(Role.ADMIN)
    def post(self):
        """Create a user with any role (professionals need professionalInfo)"""
        user = user_service.create_user_as_admin(request.get_json())
        return get_user_data_with_permissions(user), 201


@users_ns.route('/<int:user_id>/role')
class UserRole(Resource):
    @users_ns.expect(role_model, validate=True)
    @users_ns.doc('update_user_role', security='BearerAuth')
    @role_required(Role.ADMIN)
    def patch(self, user_id):
        """Change a user's role"""
        user = user_service.update_user_role(user_id, request.get_json()['role'], current_user())
        return get_user_data_with_permissions(user), 200


@users_ns.route('/<int:user_id>/ban')
class UserBan(Resource):
    @users_ns.expect(ban_model, validate=True)
    @users_ns.doc('ban_user', security='BearerAuth')
    @role_required(Role.ADMIN)
    def patch(self, user_id):
        """Ban or unban a user"""
        user = user_service.set_banned(user_id, request.get_json()['banned'], current_user())
        return get_user_data_with_permissions(user), 200
