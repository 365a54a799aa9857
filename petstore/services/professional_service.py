# Professional (veterinarian / groomer / trainer) service module
from petstore import db
from petstore.errors import AuthorizationError, NotFoundError, ValidationError
from petstore.models import PROFESSIONAL_ROLES, ProfessionalInfo, Role, User
from petstore.utils.role_utils import format_professional_info
from petstore.utils.util import page_meta

INFO_FIELDS = {
    'specialization': 'specialization',
    'qualifications': 'qualifications',
    'experience': 'experience',
    'profileImage': 'profile_image',
    'availability': 'availability',
    'bio': 'bio',
    'isActive': 'is_active',
}


def format_professional(user):
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'phoneNumber': user.phone_number,
        'address': user.address,
        'role': user.role.value,
        **(format_professional_info(user.professional_info) or {})
    }


def _professional_role(value):
    try:
        role = Role(value)
    except ValueError:
        role = None
    if role not in PROFESSIONAL_ROLES:
        raise ValidationError(f"Invalid role. Allowed: {', '.join(r.value for r in PROFESSIONAL_ROLES)}")
    return role


def list_professionals(page, limit, role=None, specialization=None, min_rating=None, active=None):
    query = User.query.join(ProfessionalInfo).filter(User.role.in_(PROFESSIONAL_ROLES))
    if role:
        query = query.filter(User.role == _professional_role(role))
    if specialization:
        query = query.filter(ProfessionalInfo.specialization.ilike(f'%{specialization}%'))
    if min_rating is not None:
        query = query.filter(ProfessionalInfo.rating >= min_rating)
    if active is not None:
        query = query.filter(ProfessionalInfo.is_active.is_(active))
    pagination = query.order_by(ProfessionalInfo.rating.desc(), User.id).paginate(
        page=page, per_page=limit, error_out=False)
    return {
        'professionals': [format_professional(u) for u in pagination.items],
        'pagination': page_meta(pagination)
    }


def get_professional(professional_id):
    user = db.session.get(User, professional_id)
    if user is None or not user.is_professional:
        raise NotFoundError('Professional not found')
    return user


def apply_professional_info(user, info_data):
    info = user.professional_info
    if info is None:
        if not info_data.get('specialization'):
            raise ValidationError('specialization is required for professionals')
        info = ProfessionalInfo(specialization=info_data['specialization'], qualifications=[], availability={})
        user.professional_info = info
    if info_data.get('experience') is not None and info_data['experience'] < 0:
        raise ValidationError('Experience must be non-negative')
    for key, attr in INFO_FIELDS.items():
        if key in info_data:
            setattr(info, attr, info_data[key])
    return info


def update_professional(professional_id, actor, data):
    user = get_professional(professional_id)
    if actor.role != Role.ADMIN and actor.id != user.id:
        raise AuthorizationError('Not authorized to update this professional')
    if 'name' in data:
        user.name = data['name']
    if 'phoneNumber' in data:
        user.phone_number = data['phoneNumber']
    if 'address' in data:
        user.address = data['address']
    if data.get('professionalInfo'):
        apply_professional_info(user, data['professionalInfo'])
    db.session.commit()
    return user
