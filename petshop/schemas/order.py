from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from petshop.schemas.product import ORMBase, ProductOut


class OrderOut(ORMBase):
    id: int
    customer_id: int
    order_date: Optional[datetime] = None
    total_amount: Decimal
    status: str
    shipping_address: str
    payment_method: str
    notes: Optional[str] = None


class OrderItemOut(ORMBase):
    id: int
    order_id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal


# Order line with the product it refers to (None if the product row is gone)
class OrderItemLine(ORMBase):
    order_item: OrderItemOut
    product: Optional[ProductOut] = None


# Full order representation used by the order history and detail screens
class OrderWithItems(ORMBase):
    order: OrderOut
    items: List[OrderItemLine]
