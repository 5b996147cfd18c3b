# petshop/schemas/product.py
from decimal import Decimal
from pydantic import BaseModel, ConfigDict
from typing import Optional


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CategoryOut(ORMBase):
    id: int
    name: str
    display_order: int = 0
    name_resource: Optional[str] = None
    image_resource: Optional[str] = None


class ProductOut(ORMBase):
    id: int
    category_id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    name_resource: Optional[str] = None
    image_resource: Optional[str] = None
    description_resource: Optional[str] = None
