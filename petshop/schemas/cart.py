from datetime import datetime
from decimal import Decimal
from typing import Optional

from petshop.schemas.product import ORMBase, ProductOut


# A stored cart line
class CartItemOut(ORMBase):
    id: int
    customer_id: int
    product_id: int
    quantity: int
    date_added: Optional[datetime] = None


# Cart line joined with its product, as shown on the cart and checkout screens
class CartLine(ORMBase):
    cart_item: CartItemOut
    product: ProductOut

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.cart_item.quantity
