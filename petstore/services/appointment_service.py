# Appointment service module: booking, slot conflicts and role-gated status changes
import logging

from sqlalchemy.exc import IntegrityError

from petstore import db
from petstore.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from petstore.models import ACTIVE_STATUSES, Appointment, AppointmentStatus, Pet, Role, User
from petstore.services import get_or_404
from petstore.utils.email import send_email
from petstore.utils.util import isoformat, parse_datetime, utcnow

logger = logging.getLogger(__name__)

SLOT_TAKEN = 'This time slot is already booked'
PET_BUSY = 'This pet already has an appointment at this time'

# Moves reserved for the assigned professional (or an admin).
PROFESSIONAL_TRANSITIONS = {
    AppointmentStatus.PENDING: [AppointmentStatus.CONFIRMED, AppointmentStatus.REJECTED],
    AppointmentStatus.CONFIRMED: [AppointmentStatus.COMPLETED],
}


def format_appointment(appointment):
    return {
        'id': appointment.id,
        'customerId': appointment.customer_id,
        'professionalId': appointment.professional_id,
        'petId': appointment.pet_id,
        'serviceType': appointment.service_type,
        'dateTime': isoformat(appointment.date_time),
        'duration': appointment.duration,
        'reason': appointment.reason,
        'notes': appointment.notes,
        'cancellationReason': appointment.cancellation_reason,
        'status': appointment.status.value,
        'createdAt': isoformat(appointment.created_at)
    }


def has_permission(user, appointment):
    return (
        user.role == Role.ADMIN or
        appointment.customer_id == user.id or
        appointment.professional_id == user.id
    )


def _slot_taken(**criteria):
    return (Appointment.query
            .filter_by(**criteria)
            .filter(Appointment.status.in_(ACTIVE_STATUSES))
            .first() is not None)


def _index_conflict(error):
    # PostgreSQL names the index, SQLite names its columns.
    detail = str(error.orig)
    if 'uq_appointment_pet_slot' in detail or 'appointment.pet_id' in detail:
        return PET_BUSY
    return SLOT_TAKEN


def _bookable_professional(professional_id, service_type):
    professional = db.session.get(User, professional_id)
    if professional is None or not professional.is_professional:
        raise NotFoundError('Professional not found')
    if service_type and service_type != professional.role.value:
        raise ValidationError('Invalid service provider')
    info = professional.professional_info
    if info is None or not info.is_active:
        raise ValidationError('Professional is not available')
    return professional


def create_appointment(customer, data):
    professional = _bookable_professional(data.get('professionalId'), data.get('serviceType'))

    pet = db.session.get(Pet, data.get('petId'))
    if pet is None or pet.owner_id != customer.id:
        raise NotFoundError('Pet not found')

    date_time = parse_datetime(data.get('dateTime'), 'dateTime')
    if date_time <= utcnow():
        raise ValidationError('Appointment date must be in the future')

    duration = data.get('duration', 30)
    if not isinstance(duration, int) or duration <= 0:
        raise ValidationError('Duration must be a positive number of minutes')

    if not (data.get('reason') or '').strip():
        raise ValidationError('Reason is required')

    if _slot_taken(professional_id=professional.id, date_time=date_time):
        raise ConflictError(SLOT_TAKEN)
    if _slot_taken(pet_id=pet.id, date_time=date_time):
        raise ConflictError(PET_BUSY)

    appointment = Appointment(
        customer_id=customer.id,
        professional_id=professional.id,
        pet_id=pet.id,
        service_type=professional.role.value,
        date_time=date_time,
        duration=duration,
        reason=data.get('reason'),
        notes=data.get('notes')
    )
    db.session.add(appointment)
    try:
        db.session.commit()
    except IntegrityError as e:
        # A concurrent booking committed first; the partial unique index caught it.
        db.session.rollback()
        message = _index_conflict(e)
        logger.info(f"Booking at {date_time} lost to a concurrent booking: {message}")
        raise ConflictError(message)

    logger.info(f"Appointment {appointment.id} booked with professional {professional.id} at {date_time}")
    send_email(
        professional.email, 'New Appointment Request', 'appointment_request',
        name=professional.name,
        customer_name=customer.name,
        service_type=appointment.service_type,
        pet_name=pet.name,
        date_time=isoformat(date_time),
        duration=duration,
        reason=appointment.reason
    )
    send_email(
        customer.email, 'Appointment Request Confirmation', 'appointment_confirmation',
        name=customer.name,
        appointment_id=appointment.id,
        professional_name=professional.name,
        pet_name=pet.name,
        date_time=isoformat(date_time)
    )
    return appointment


def list_appointments(user, status=None):
    query = Appointment.query
    if user.role == Role.CUSTOMER:
        query = query.filter_by(customer_id=user.id)
    elif user.is_professional:
        query = query.filter_by(professional_id=user.id)
    if status:
        try:
            query = query.filter_by(status=AppointmentStatus(status))
        except ValueError:
            raise ValidationError(f'Invalid status: {status}')
    return query.order_by(Appointment.date_time.asc()).all()


def get_appointment(appointment_id, user):
    appointment = get_or_404(Appointment, appointment_id, 'Appointment')
    if not has_permission(user, appointment):
        raise AuthorizationError('Not authorized to view this appointment')
    return appointment


def update_status(appointment_id, user, data):
    appointment = get_or_404(Appointment, appointment_id, 'Appointment')
    try:
        new_status = AppointmentStatus(data.get('status'))
    except ValueError:
        raise ValidationError(f"Invalid status. Allowed: {', '.join(s.value for s in AppointmentStatus)}")

    if not has_permission(user, appointment):
        raise AuthorizationError('Not authorized to update this appointment')

    if new_status == AppointmentStatus.CANCELLED:
        if appointment.status not in ACTIVE_STATUSES:
            raise ValidationError('Appointment cannot be cancelled')
        appointment.cancellation_reason = data.get('cancellationReason')
    else:
        if user.role != Role.ADMIN and appointment.professional_id != user.id:
            raise AuthorizationError('Only the assigned professional or an admin can change this status')
        if new_status not in PROFESSIONAL_TRANSITIONS.get(appointment.status, []):
            raise ValidationError('Invalid status transition')

    appointment.status = new_status
    if data.get('notes'):
        appointment.notes = data['notes']
    db.session.commit()
    logger.info(f"Appointment {appointment.id} is now {new_status.value} (by user {user.id})")

    _notify_status_change(appointment, user)
    return appointment


def _notify_status_change(appointment, actor):
    if appointment.status == AppointmentStatus.CANCELLED:
        recipient = appointment.professional if actor.id == appointment.customer_id else appointment.customer
        send_email(
            recipient.email, 'Appointment Cancelled', 'appointment_cancelled',
            name=recipient.name,
            appointment_id=appointment.id,
            date_time=isoformat(appointment.date_time),
            cancellation_reason=appointment.cancellation_reason
        )
    else:
        send_email(
            appointment.customer.email, 'Appointment Status Update', 'appointment_status_update',
            name=appointment.customer.name,
            appointment_id=appointment.id,
            date_time=isoformat(appointment.date_time),
            status=appointment.status.value,
            notes=appointment.notes
        )


def delete_appointment(appointment_id, user):
    appointment = get_or_404(Appointment, appointment_id, 'Appointment')
    if user.role != Role.ADMIN and appointment.customer_id != user.id:
        raise AuthorizationError('Only the customer or an admin can delete this appointment')
    if appointment.status == AppointmentStatus.COMPLETED:
        raise ValidationError('Completed appointments cannot be deleted')
    db.session.delete(appointment)
    db.session.commit()
    logger.info(f"Appointment {appointment_id} deleted by user {user.id}")
