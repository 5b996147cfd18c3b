# Import every model so that Base.metadata knows all tables
from petshop.models.customer import Customer
from petshop.models.product import Category, Product
from petshop.models.cart import CartItem
from petshop.models.order import Order, OrderItem, OrderStatus
from petshop.models.log import Log

__all__ = ["Customer", "Category", "Product", "CartItem", "Order", "OrderItem", "OrderStatus", "Log"]
