# petshop/models/product.py
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from petshop.database import Base

# Product category shown on the home screen, seeded once
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    display_order = Column(Integer, nullable=False, default=0)

    # References to display resources (string key and image)
    name_resource = Column(String, nullable=True)
    image_resource = Column(String, nullable=True)

    products = relationship("Product", back_populates="category", cascade="all, delete-orphan", passive_deletes=True)


# Catalog item belonging to exactly one category
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)

    name_resource = Column(String, nullable=True)
    image_resource = Column(String, nullable=True)
    description_resource = Column(String, nullable=True)

    category = relationship("Category", back_populates="products")
