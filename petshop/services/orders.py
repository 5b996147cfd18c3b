# petshop/services/orders.py
import logging
from decimal import Decimal
from typing import Callable, List, Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from petshop.database import Store
from petshop.errors import ErrorKind, Result
from petshop.models.order import Order, OrderItem, OrderStatus
from petshop.schemas.cart import CartLine
from petshop.schemas.order import OrderItemLine, OrderItemOut, OrderOut, OrderWithItems
from petshop.schemas.product import ProductOut
from petshop.services.cart import CartService
from petshop.utils.audit import write_log
from petshop.utils.live import Subscription

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

ORDER_TABLES = frozenset({"orders", "order_items", "products"})


# Map Order model to the display schema
def _order_to_out(order: Order) -> OrderWithItems:
    items = []
    for it in order.items:
        items.append(OrderItemLine(
            order_item=OrderItemOut.model_validate(it),
            product=ProductOut.model_validate(it.product) if it.product else None,
        ))
    return OrderWithItems(order=OrderOut.model_validate(order), items=items)


def _orders_with_items(db):
    return db.query(Order).options(joinedload(Order.items).joinedload(OrderItem.product))


def _customer_orders_query(customer_id: int):
    def query(db) -> List[OrderWithItems]:
        rows = (
            _orders_with_items(db)
            .filter(Order.customer_id == customer_id)
            .order_by(Order.order_date.desc(), Order.id.desc())
            .all()
        )
        return [_order_to_out(o) for o in rows]

    return query


class OrderService:
    """Checkout and order history.

    ``create_order_from_cart`` writes the order and all of its lines in one
    transaction, then empties the cart as a separate step. If that second step
    fails the order stands and the cart keeps its lines; the failure is
    logged, not rolled back.
    """

    def __init__(self, store: Store, cart_service: CartService, strict_status: bool = False):
        self.store = store
        self.cart_service = cart_service
        self.strict_status = strict_status

    # ---- CHECKOUT ----
    def create_order_from_cart(
        self,
        customer_id: int,
        shipping_address: str,
        payment_method: str,
        notes: Optional[str] = None,
        cart_lines: Sequence[CartLine] = (),
    ) -> Result:
        if not cart_lines:
            return Result.failure(ErrorKind.EMPTY_CART, "Cart is empty")

        # Snapshot prices now; later catalog changes must not touch this order
        order_items = []
        total_amount = Decimal("0")
        for line in cart_lines:
            unit_price = Decimal(line.product.price).quantize(CENT)
            line_total = (unit_price * line.cart_item.quantity).quantize(CENT)
            total_amount += line_total
            order_items.append(OrderItem(
                product_id=line.product.id,
                quantity=line.cart_item.quantity,
                unit_price=unit_price,
                total_price=line_total,
            ))

        with self.store.session() as db:
            try:
                order = Order(
                    customer_id=customer_id,
                    status=OrderStatus.PENDING.value,
                    total_amount=total_amount.quantize(CENT),
                    shipping_address=shipping_address,
                    payment_method=payment_method,
                    notes=notes,
                )
                # order_id is bound to each line when the order row is flushed
                order.items = order_items
                db.add(order)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Order creation failed for customer %s: %s", customer_id, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))

            order_id = order.id
            write_log(db, customer_id=customer_id, action="ORDER_CREATE", resource="orders",
                      meta={"order_id": order_id, "total": str(order.total_amount), "lines": len(order_items)})

        cleared = self.cart_service.clear_cart(customer_id)
        if not cleared.ok:
            logger.error("Order %s placed but cart of customer %s was not cleared: %s",
                         order_id, customer_id, cleared.message)

        logger.info("Created order %s for customer %s", order_id, customer_id)
        return Result.success(order_id)

    # ---- READS ----
    def order_with_items(self, order_id: int) -> Optional[OrderWithItems]:
        def query(db):
            order = _orders_with_items(db).filter(Order.id == order_id).first()
            return _order_to_out(order) if order else None

        return self.store.read(query)

    def customer_orders_with_items(self, customer_id: int) -> List[OrderWithItems]:
        """Orders of one customer, most recent first."""
        return self.store.read(_customer_orders_query(customer_id))

    def order_count(self, customer_id: int) -> int:
        return self.store.read(lambda db: db.query(Order).filter(Order.customer_id == customer_id).count())

    def orders_by_status(self, status: Union[OrderStatus, str]) -> List[OrderOut]:
        value = OrderStatus(status).value

        def query(db):
            rows = db.query(Order).filter(Order.status == value).order_by(Order.order_date.desc(), Order.id.desc()).all()
            return [OrderOut.model_validate(o) for o in rows]

        return self.store.read(query)

    # ---- STATUS ----
    def update_order_status(self, order_id: int, status: Union[OrderStatus, str]) -> Result:
        try:
            target = OrderStatus(status)
        except ValueError:
            return Result.failure(ErrorKind.INVALID_STATUS_TRANSITION, f"Unknown order status: {status}")

        with self.store.session() as db:
            try:
                order = db.get(Order, order_id)
                if order is None:
                    return Result.failure(ErrorKind.ORDER_NOT_FOUND, "Order not found")

                previous = OrderStatus(order.status)
                if self.strict_status and not previous.can_transition_to(target):
                    return Result.failure(
                        ErrorKind.INVALID_STATUS_TRANSITION,
                        f"Cannot move order from {previous.value} to {target.value}",
                    )

                order.status = target.value
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Status update failed for order %s: %s", order_id, e)
                return Result.failure(ErrorKind.STORAGE_ERROR, str(e))

            write_log(db, customer_id=order.customer_id, action="ORDER_STATUS", resource="orders",
                      meta={"order_id": order_id, "from": previous.value, "to": target.value})
            return Result.success()

    # ---- LIVE QUERIES ----
    def watch_customer_orders(self, customer_id: int,
                              callback: Callable[[List[OrderWithItems]], None]) -> Subscription:
        return self.store.watch(ORDER_TABLES, _customer_orders_query(customer_id), callback)
