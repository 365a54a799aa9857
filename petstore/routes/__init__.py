from petstore.routes.auth_routes import auth_ns
from petstore.routes.users_routes import users_ns
from petstore.routes.category_routes import category_ns
from petstore.routes.product_routes import product_ns
from petstore.routes.review_routes import review_ns
from petstore.routes.cart_routes import cart_ns
from petstore.routes.order_routes import order_ns
from petstore.routes.payment_routes import payment_ns
from petstore.routes.pet_routes import pet_ns
from petstore.routes.professional_routes import professional_ns
from petstore.routes.appointment_routes import appointment_ns

NAMESPACES = (
    auth_ns,
    users_ns,
    category_ns,
    product_ns,
    review_ns,
    cart_ns,
    order_ns,
    payment_ns,
    pet_ns,
    professional_ns,
    appointment_ns,
)


def register_namespaces(api):
    for namespace in NAMESPACES:
        api.add_namespace(namespace)
