from flask import request
from flask_restx import Namespace, Resource, fields

from petstore.models import PetGender
from petstore.services import pet_service
from petstore.services.pet_service import format_pet
from petstore.utils.auth_middleware import current_user, login_required

pet_ns = Namespace('pets', description="Customers' pets")

pet_model = pet_ns.model('Pet', {
    'name': fields.String(required=True, min_length=1),
    'species': fields.String(required=True, min_length=1),
    'breed': fields.String(),
    'age': fields.Integer(min=0),
    'color': fields.String(),
    'gender': fields.String(enum=[g.value for g in PetGender]),
    'description': fields.String()
})

pet_update_model = pet_ns.model('PetUpdate', {
    'name': fields.String(min_length=1),
    'species': fields.String(min_length=1),
    'breed': fields.String(),
    'age': fields.Integer(min=0),
    'color': fields.String(),
    'gender': fields.String(enum=[g.value for g in PetGender]),
    'description': fields.String()
})


@pet_ns.route('')
class PetList(Resource):
    @pet_ns.doc('list_pets', security='BearerAuth', params={'ownerId': 'Owner filter (admin only)'})
    @login_required
    def get(self):
        """Own pets; admins may list everyone's"""
        pets = pet_service.list_pets(current_user(), request.args.get('ownerId', type=int))
        return [format_pet(p) for p in pets], 200

    @pet_ns.expect(pet_model, validate=True)
    @pet_ns.doc('create_pet', security='BearerAuth')
    @login_required
    def post(self):
        """Register a pet"""
        return format_pet(pet_service.create_pet(current_user(), request.get_json())), 201


@pet_ns.route('/<int:pet_id>')
class PetResource(Resource):
    @pet_ns.doc('get_pet', security='BearerAuth')
    @login_required
    def get(self, pet_id):
        """Get a pet by ID"""
        return format_pet(pet_service.get_pet(pet_id, current_user())), 200

    @pet_ns.expect(pet_update_model, validate=True)
    @pet_ns.doc('update_pet', security='BearerAuth')
    @login_required
    def put(self, pet_id):
        """Update a pet"""
        return format_pet(pet_service.update_pet(pet_id, current_user(), request.get_json())), 200

    @pet_ns.doc('delete_pet', security='BearerAuth')
    @login_required
    def delete(self, pet_id):
        """Delete a pet with no appointment history"""
        pet_service.delete_pet(pet_id, current_user())
        return {'message': 'Pet deleted'}, 200
