# petshop/models/customer.py
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from petshop.database import Base

# Represents a registered account holder with login and contact details
class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    phone = Column(String, nullable=False)
    address = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    profile_image_path = Column(String, nullable=True)

    # Children are removed by the database (ON DELETE CASCADE)
    cart_items = relationship("CartItem", back_populates="customer", cascade="all, delete-orphan", passive_deletes=True)
    orders = relationship("Order", back_populates="customer", cascade="all, delete-orphan", passive_deletes=True)
