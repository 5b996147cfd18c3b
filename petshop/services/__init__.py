from petshop.services.auth import AuthService
from petshop.services.catalog import CatalogService
from petshop.services.cart import CartService
from petshop.services.orders import OrderService
from petshop.services.account import AccountService

__all__ = ["AuthService", "CatalogService", "CartService", "OrderService", "AccountService"]
