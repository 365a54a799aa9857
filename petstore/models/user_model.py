import enum

from petstore import db
from petstore.utils.util import utcnow


class Role(enum.Enum):
    CUSTOMER = 'customer'
    VETERINARIAN = 'veterinarian'
    GROOMER = 'groomer'
    TRAINER = 'trainer'
    ADMIN = 'admin'


PROFESSIONAL_ROLES = (Role.VETERINARIAN, Role.GROOMER, Role.TRAINER)


class User(db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    phone_number = db.Column(db.String(30))
    address = db.Column(db.String(255))
    password = db.Column(db.String(200), nullable=False)
    role = db.Column(db.Enum(Role, name='user_role', values_callable=lambda e: [m.value for m in e]),
                     nullable=False, default=Role.CUSTOMER, index=True)
    is_banned = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    professional_info = db.relationship('ProfessionalInfo', uselist=False, back_populates='user',
                                        cascade='all, delete-orphan')
    cart = db.relationship('Cart', uselist=False, back_populates='user', cascade='all, delete-orphan')
    orders = db.relationship('Order', back_populates='user', lazy=True)
    pets = db.relationship('Pet', back_populates='owner', lazy=True)

    @property
    def is_professional(self):
        return self.role in PROFESSIONAL_ROLES

    def __repr__(self):
        return f'<User {self.email} ({self.role.value})>'


class ProfessionalInfo(db.Model):
    __tablename__ = 'professional_info'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, unique=True)
    specialization = db.Column(db.String(100), nullable=False, index=True)
    qualifications = db.Column(db.JSON, nullable=False, default=list)
    experience = db.Column(db.Integer, nullable=False, default=0)
    rating = db.Column(db.Float, nullable=False, default=0)
    review_count = db.Column(db.Integer, nullable=False, default=0)
    profile_image = db.Column(db.String(255))
    # {"monday": {"startTime": "09:00", "endTime": "17:00", "isAvailable": true}, ...}
    availability = db.Column(db.JSON, nullable=False, default=dict)
    bio = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    user = db.relationship('User', back_populates='professional_info')

    __table_args__ = (
        db.CheckConstraint('experience >= 0', name='ck_professional_experience_non_negative'),
        db.CheckConstraint('rating >= 0 AND rating <= 5', name='ck_professional_rating_range'),
    )

    def __repr__(self):
        return f'<ProfessionalInfo {self.specialization} for User {self.user_id}>'
