import enum

from petstore import db
from petstore.utils.util import utcnow


class PetGender(enum.Enum):
    MALE = 'male'
    FEMALE = 'female'
    OTHER = 'other'


class Pet(db.Model):
    __tablename__ = 'pet'
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    species = db.Column(db.String(50), nullable=False)
    breed = db.Column(db.String(50))
    age = db.Column(db.Integer)
    color = db.Column(db.String(50))
    gender = db.Column(db.Enum(PetGender, name='pet_gender', values_callable=lambda e: [m.value for m in e]))
    description = db.Column(db.String(300))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    owner = db.relationship('User', back_populates='pets')

    def __repr__(self):
        return f'<Pet {self.name} ({self.species})>'
