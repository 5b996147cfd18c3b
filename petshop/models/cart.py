# petshop/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
from petshop.database import Base

# A single cart line (product + quantity) owned by a customer
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    date_added = Column(DateTime(timezone=True), server_default=func.now())

    customer = relationship("Customer", back_populates="cart_items")
    product = relationship("Product")

    __table_args__ = (
        # One line per product in a customer's cart
        UniqueConstraint("customer_id", "product_id", name="uq_cartitem_customer_product"),
        CheckConstraint("quantity >= 1", name="ck_cartitem_quantity_positive"),
    )
