"""Application layer module.

Contains application services (use cases) that orchestrate
domain rules and infrastructure, one per storefront area.
"""

from storefront.application.account_service import AccountService
from storefront.application.admin_service import AdminService
from storefront.application.auth_service import AuthService
from storefront.application.cart_service import CartService
from storefront.application.catalog_service import CatalogService
from storefront.application.checkout_service import CheckoutService
from storefront.application.contact_service import ContactService
from storefront.application.notifications import Notifier
from storefront.application.order_service import OrderService
from storefront.application.repair_service import RepairService
from storefront.application.return_service import ReturnService
from storefront.application.review_service import ReviewService
from storefront.application.shopper_service import ShopperService

__all__ = [
    "AccountService",
    "AdminService",
    "AuthService",
    "CartService",
    "CatalogService",
    "CheckoutService",
    "ContactService",
    "Notifier",
    "OrderService",
    "RepairService",
    "ReturnService",
    "ReviewService",
    "ShopperService",
]
