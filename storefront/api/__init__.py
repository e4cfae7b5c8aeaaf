"""API layer module.

Contains FastAPI routers, request/response schemas and middleware.
"""

from storefront.api.account import addresses_router, payment_methods_router
from storefront.api.admin import router as admin_router
from storefront.api.auth import profile_router
from storefront.api.auth import router as auth_router
from storefront.api.cart import router as cart_router
from storefront.api.checkout import router as checkout_router
from storefront.api.contact import router as contact_router
from storefront.api.health import router as health_router
from storefront.api.orders import router as orders_router
from storefront.api.products import bundles_router
from storefront.api.products import router as products_router
from storefront.api.repairs import router as repairs_router
from storefront.api.reviews import questions_router
from storefront.api.reviews import router as reviews_router
from storefront.api.shopper import comparison_router, recently_viewed_router, wishlist_router

__all__ = [
    "addresses_router",
    "admin_router",
    "auth_router",
    "bundles_router",
    "cart_router",
    "checkout_router",
    "comparison_router",
    "contact_router",
    "health_router",
    "orders_router",
    "payment_methods_router",
    "products_router",
    "profile_router",
    "questions_router",
    "recently_viewed_router",
    "repairs_router",
    "reviews_router",
    "wishlist_router",
]
