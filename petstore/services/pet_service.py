# Pet service module for business logic
from petstore import db
from petstore.errors import AuthorizationError, ValidationError
from petstore.models import Appointment, Pet, PetGender, Role
from petstore.services import get_or_404

EDITABLE_FIELDS = ('name', 'species', 'breed', 'age', 'color', 'description')


def format_pet(pet):
    return {
        'id': pet.id,
        'ownerId': pet.owner_id,
        'name': pet.name,
        'species': pet.species,
        'breed': pet.breed,
        'age': pet.age,
        'color': pet.color,
        'gender': pet.gender.value if pet.gender else None,
        'description': pet.description
    }


def check_pet_authorization(pet, user):
    if user.role != Role.ADMIN and pet.owner_id != user.id:
        raise AuthorizationError('No permission to access this pet')


def _gender(value):
    if value is None:
        return None
    try:
        return PetGender(value)
    except ValueError:
        raise ValidationError(f"Invalid gender. Allowed: {', '.join(g.value for g in PetGender)}")


def _check_age(age):
    if age is not None and age < 0:
        raise ValidationError('Age must be non-negative')


def list_pets(user, owner_id=None):
    query = Pet.query
    if user.role != Role.ADMIN:
        query = query.filter_by(owner_id=user.id)
    elif owner_id:
        query = query.filter_by(owner_id=owner_id)
    return query.order_by(Pet.id).all()


def get_pet(pet_id, user):
    pet = get_or_404(Pet, pet_id, 'Pet')
    check_pet_authorization(pet, user)
    return pet


def create_pet(user, data):
    _check_age(data.get('age'))
    pet = Pet(owner_id=user.id, gender=_gender(data.get('gender')),
              **{field: data.get(field) for field in EDITABLE_FIELDS})
    db.session.add(pet)
    db.session.commit()
    return pet


def update_pet(pet_id, user, data):
    pet = get_pet(pet_id, user)
    _check_age(data.get('age'))
    for field in EDITABLE_FIELDS:
        if field in data:
            setattr(pet, field, data[field])
    if 'gender' in data:
        pet.gender = _gender(data['gender'])
    db.session.commit()
    return pet


def delete_pet(pet_id, user):
    pet = get_pet(pet_id, user)
    if Appointment.query.filter_by(pet_id=pet.id).first():
        raise ValidationError('Pet with appointment history cannot be deleted')
    db.session.delete(pet)
    db.session.commit()
