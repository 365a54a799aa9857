from flask import request
from flask_restx import Namespace, Resource, fields

from petstore.models import AppointmentStatus, PROFESSIONAL_ROLES
from petstore.services import appointment_service
from petstore.services.appointment_service import format_appointment
from petstore.utils.auth_middleware import current_user, login_required

appointment_ns = Namespace('appointments', description='Appointment booking with professionals')

appointment_model = appointment_ns.model('Appointment', {
    'professionalId': fields.Integer(required=True),
    'petId': fields.Integer(required=True),
    'serviceType': fields.String(required=True, enum=[r.value for r in PROFESSIONAL_ROLES]),
    'dateTime': fields.String(required=True, description='ISO 8601, e.g. 2030-01-31T10:00:00'),
    'duration': fields.Integer(min=1, default=30, description='Minutes'),
    'reason': fields.String(required=True, min_length=1, max_length=500),
    'notes': fields.String()
})

status_model = appointment_ns.model('AppointmentStatusUpdate', {
    'status': fields.String(required=True, enum=[s.value for s in AppointmentStatus]),
    'cancellationReason': fields.String(),
    'notes': fields.String()
})


@appointment_ns.route('')
class AppointmentList(Resource):
    @appointment_ns.expect(appointment_model, validate=True)
    @appointment_ns.doc('create_appointment', security='BearerAuth')
    @login_required
    def post(self):
        """Book an appointment for one of your pets"""
        appointment = appointment_service.create_appointment(current_user(), request.get_json())
        return format_appointment(appointment), 201

    @appointment_ns.doc('list_appointments', security='BearerAuth', params={'status': 'Filter by status'})
    @login_required
    def get(self):
        """Appointments visible to the current user"""
        appointments = appointment_service.list_appointments(current_user(), request.args.get('status'))
        return [format_appointment(a) for a in appointments], 200


@appointment_ns.route('/<int:appointment_id>')
class AppointmentResource(Resource):
    @appointment_ns.doc('get_appointment', security='BearerAuth')
    @login_required
    def get(self, appointment_id):
        """Get an appointment by ID"""
        return format_appointment(appointment_service.get_appointment(appointment_id, current_user())), 200

    @appointment_ns.doc('delete_appointment', security='BearerAuth')
    @login_required
    def delete(self, appointment_id):
        """Delete an appointment that has not been completed"""
        appointment_service.delete_appointment(appointment_id, current_user())
        return {'message': 'Appointment deleted'}, 200


@appointment_ns.route('/<int:appointment_id>/status')
class AppointmentStatusResource(Resource):
    @appointment_ns.expect(status_model, validate=True)
    @appointment_ns.doc('update_appointment_status', security='BearerAuth')
    @login_required
    def patch(self, appointment_id):
        """Confirm, reject, complete or cancel an appointment"""
        appointment = appointment_service.update_status(appointment_id, current_user(), request.get_json())
        return format_appointment(appointment), 200
