# petshop/services/cart.py
import logging
import threading
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from petshop.database import Store
from petshop.errors import ErrorKind, Result
from petshop.models.cart import CartItem
from petshop.schemas.cart import CartItemOut, CartLine
from petshop.schemas.product import ProductOut
from petshop.utils.audit import write_log
from petshop.utils.live import Subscription

logger = logging.getLogger(__name__)

CART_TABLES = frozenset({"cart_items", "products"})


# Map a stored cart item with its loaded product to the display line
def _line_to_out(item: CartItem) -> CartLine:
    return CartLine(
        cart_item=CartItemOut.model_validate(item),
        product=ProductOut.model_validate(item.product),
    )


def _cart_query(customer_id: int):
    def query(db) -> List[CartLine]:
        items = (
            db.query(CartItem)
            .options(joinedload(CartItem.product))
            .filter(CartItem.customer_id == customer_id)
            .order_by(CartItem.date_added.asc(), CartItem.id.asc())
            .all()
        )
        return [_line_to_out(it) for it in items]

    return query


def cart_lines_total(lines: List[CartLine]) -> Optional[Decimal]:
    if not lines:
        return None
    return sum((line.line_total for line in lines), Decimal("0")).quantize(Decimal("0.01"))


class CartService:
    """Per-customer cart lines.

    Adding the same product twice merges into one line. The merge is an
    UPDATE computed by the database, so adds from several services or
    processes cannot lose an increment.
    """

    def __init__(self, store: Store):
        self.store = store
        self._write_lock = threading.RLock()

    @staticmethod
    def _find_line(db, customer_id: int, product_id: int) -> Optional[CartItem]:
        return (
            db.query(CartItem)
            .filter(CartItem.customer_id == customer_id, CartItem.product_id == product_id)
            .with_for_update()
            .first()
        )

    # ---- MUTATIONS ----
    def add_to_cart(self, customer_id: int, product_id: int, quantity: int = 1) -> Result:
        with self._write_lock, self.store.session() as db:
            try:
                item = self._find_line(db, customer_id, product_id)
                if item:
                    item.quantity = CartItem.quantity + quantity
                    db.commit()
                else:
                    item = CartItem(customer_id=customer_id, product_id=product_id, quantity=quantity)
                    db.add(item)
                    try:
                        db.commit()
                    except IntegrityError:
                        # Another writer created the line first; merge into it
                        db.rollback()
                        item = self._find_line(db, customer_id, product_id)
                        if item is None:
                            raise
                        item.quantity = CartItem.quantity + quantity
                        db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Add to cart failed (customer=%s, product=%s): %s", customer_id, product_id, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))

            write_log(db, customer_id=customer_id, action="CART_ADD", resource="cart",
                      meta={"product_id": product_id, "qty": quantity, "line_qty": item.quantity})
            return Result.success(item.id)

    def update_quantity(self, cart_item_id: int, quantity: int) -> Result:
        # Missing lines and non-positive quantities are skipped, not reported
        if quantity <= 0:
            return Result.success()

        with self._write_lock, self.store.session() as db:
            try:
                item = db.get(CartItem, cart_item_id)
                if item is None:
                    return Result.success()
                item.quantity = quantity
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Cart quantity update failed for item %s: %s", cart_item_id, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))

            write_log(db, customer_id=item.customer_id, action="CART_UPDATE", resource="cart",
                      meta={"item_id": cart_item_id, "qty": quantity})
            return Result.success()

    def remove_from_cart(self, cart_item) -> Result:
        """Delete a cart line, given the line itself or its id."""
        cart_item_id = getattr(cart_item, "id", cart_item)
        with self._write_lock, self.store.session() as db:
            try:
                item = db.get(CartItem, cart_item_id)
                if item is None:
                    return Result.success()
                customer_id = item.customer_id
                db.delete(item)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Removing cart item %s failed: %s", cart_item_id, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))

            write_log(db, customer_id=customer_id, action="CART_DELETE", resource="cart",
                      meta={"item_id": cart_item_id})
            return Result.success()

    def clear_cart(self, customer_id: int) -> Result:
        with self._write_lock, self.store.session() as db:
            try:
                items = db.query(CartItem).filter(CartItem.customer_id == customer_id).all()
                for item in items:
                    db.delete(item)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Clearing cart of customer %s failed: %s", customer_id, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))

            if items:
                write_log(db, customer_id=customer_id, action="CART_CLEAR", resource="cart",
                          meta={"removed": len(items)})
            return Result.success(len(items))

    # ---- READS ----
    def cart_with_products(self, customer_id: int) -> List[CartLine]:
        return self.store.read(_cart_query(customer_id))

    def cart_total(self, customer_id: int) -> Optional[Decimal]:
        """Sum of price * quantity over the cart, or None when it is empty."""
        return cart_lines_total(self.cart_with_products(customer_id))

    def cart_item_count(self, customer_id: int) -> int:
        # Number of lines, not the sum of quantities
        return self.store.read(
            lambda db: db.query(CartItem).filter(CartItem.customer_id == customer_id).count()
        )

    # ---- LIVE QUERIES ----
    def watch_cart(self, customer_id: int, callback: Callable[[List[CartLine]], None]) -> Subscription:
        return self.store.watch(CART_TABLES, _cart_query(customer_id), callback)

    def watch_cart_total(self, customer_id: int, callback: Callable[[Optional[Decimal]], None]) -> Subscription:
        query = _cart_query(customer_id)
        return self.store.watch(CART_TABLES, lambda db: cart_lines_total(query(db)), callback)

    def watch_cart_item_count(self, customer_id: int, callback: Callable[[int], None]) -> Subscription:
        return self.store.watch(
            {"cart_items"},
            lambda db: db.query(CartItem).filter(CartItem.customer_id == customer_id).count(),
            callback,
        )
