import enum

from petstore import db
from petstore.utils.util import utcnow


class AppointmentStatus(enum.Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    REJECTED = 'rejected'


ACTIVE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)

# Only one active appointment may hold a given slot.
_ACTIVE_SLOT = db.text("status IN ('pending', 'confirmed')")


class Appointment(db.Model):
    __tablename__ = 'appointment'
    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    professional_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    pet_id = db.Column(db.Integer, db.ForeignKey('pet.id'), nullable=False)
    service_type = db.Column(db.String(30), nullable=False)
    date_time = db.Column(db.DateTime, nullable=False)
    duration = db.Column(db.Integer, nullable=False, default=30)
    reason = db.Column(db.String(500), nullable=False)
    notes = db.Column(db.Text)
    cancellation_reason = db.Column(db.String(500))
    status = db.Column(db.Enum(AppointmentStatus, name='appointment_status',
                               values_callable=lambda e: [m.value for m in e]),
                       nullable=False, default=AppointmentStatus.PENDING, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship('User', foreign_keys=[customer_id])
    professional = db.relationship('User', foreign_keys=[professional_id])
    pet = db.relationship('Pet')

    __table_args__ = (
        db.Index('uq_appointment_professional_slot', 'professional_id', 'date_time', unique=True,
                 postgresql_where=_ACTIVE_SLOT, sqlite_where=_ACTIVE_SLOT),
        db.Index('uq_appointment_pet_slot', 'pet_id', 'date_time', unique=True,
                 postgresql_where=_ACTIVE_SLOT, sqlite_where=_ACTIVE_SLOT),
        db.CheckConstraint('duration > 0', name='ck_appointment_duration_positive'),
    )

    def __repr__(self):
        return f'<Appointment {self.id} with Professional {self.professional_id} at {self.date_time}>'
