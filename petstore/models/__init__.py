from petstore.models.user_model import User, ProfessionalInfo, Role, PROFESSIONAL_ROLES
from petstore.models.category_model import Category
from petstore.models.product_model import Product
from petstore.models.cart_model import Cart, CartItem
from petstore.models.order_model import (
    Order, OrderItem, OrderStatus, PaymentStatus, PaymentMethod, STATUS_TRANSITIONS, CANCELLABLE_STATUSES
)
from petstore.models.pet_model import Pet, PetGender
from petstore.models.appointment_model import Appointment, AppointmentStatus, ACTIVE_STATUSES
from petstore.models.review_model import Review
