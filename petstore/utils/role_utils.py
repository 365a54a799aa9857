from petstore.models.user_model import Role

_PROFESSIONAL_PERMISSIONS = {
    'interface_sections': ['profile', 'appointments', 'schedule', 'products'],
    'actions': [
        'view_products', 'view_assigned_appointments', 'confirm_appointment',
        'reject_appointment', 'complete_appointment', 'cancel_appointment',
        'update_own_professional_profile'
    ]
}

# Dictionary with permissions for each role
ROLE_PERMISSIONS = {
    Role.CUSTOMER: {
        'interface_sections': [
            'profile', 'products', 'cart', 'orders', 'pets', 'appointments'
        ],
        'actions': [
            'view_products', 'manage_cart', 'create_order', 'view_own_orders',
            'cancel_own_order', 'pay_order', 'manage_own_pets', 'book_appointment',
            'view_own_appointments', 'cancel_appointment', 'review_purchased_product'
        ]
    },
    Role.VETERINARIAN: _PROFESSIONAL_PERMISSIONS,
    Role.GROOMER: _PROFESSIONAL_PERMISSIONS,
    Role.TRAINER: _PROFESSIONAL_PERMISSIONS,
    Role.ADMIN: {
        'interface_sections': [
            'profile', 'users', 'products', 'categories', 'orders', 'payments',
            'pets', 'appointments', 'professionals'
        ],
        'actions': [
            'view_all_users', 'create_user', 'update_user_role', 'ban_user',
            'manage_products', 'manage_categories', 'view_all_orders',
            'update_order_status', 'refund_order', 'view_all_pets',
            'view_all_appointments', 'update_any_appointment',
            'update_any_professional_profile', 'moderate_reviews'
        ]
    }
}


def get_user_permissions(user):
    """Get user permissions based on their role"""
    if not user or not user.role:
        return {
            'interface_sections': ['login', 'register', 'products'],
            'actions': ['view_products']
        }
    return ROLE_PERMISSIONS.get(user.role, ROLE_PERMISSIONS[Role.CUSTOMER])


def format_professional_info(info):
    if info is None:
        return None
    return {
        'specialization': info.specialization,
        'qualifications': info.qualifications or [],
        'experience': info.experience,
        'rating': info.rating,
        'reviewCount': info.review_count,
        'profileImage': info.profile_image,
        'availability': info.availability or {},
        'bio': info.bio,
        'isActive': info.is_active
    }


def get_user_data_with_permissions(user):
    """Return user data with their permissions"""
    if not user:
        return None
    data = {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'phoneNumber': user.phone_number,
        'address': user.address,
        'role': user.role.value,
        'isBanned': user.is_banned,
        'permissions': get_user_permissions(user)
    }
    if user.is_professional:
        data['professionalInfo'] = format_professional_info(user.professional_info)
    return data
