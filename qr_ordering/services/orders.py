"""
Order Service

Order lifecycle between the three roles:

    customer  -> submit_cart       (pending)
    cashier   -> mark_scanned      (pending -> scanned)
    cashier   -> confirm_payment   (pending|scanned -> completed, sales log written)
    anyone    -> cancel_order      (pending|scanned -> cancelled)

Every state change is a single database transaction whose UPDATE only
matches the order while it is still in an allowed state. Of two requests
racing on one order, exactly one moves it; the other gets a 409. The
unique constraint on sales_logs.order_id backs this up for payments.
"""

import logging
from typing import Optional

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from qr_ordering.core.clock import utcnow
from qr_ordering.core.config import get_settings
from qr_ordering.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from qr_ordering.database import commit_or_conflict
from qr_ordering.models import Order, OrderItem, OrderStatus, Restaurant, SalesLog, Shift
from qr_ordering.services.cart import CartState

logger = logging.getLogger(__name__)

OPEN_STATUSES = (OrderStatus.PENDING, OrderStatus.SCANNED)


async def get_order(db: AsyncSession, order_id: str) -> Order:
    """Load an order with its items and restaurant, refreshing cached state."""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items), selectinload(Order.restaurant))
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    return order


async def get_status(db: AsyncSession, order_id: str) -> OrderStatus:
    result = await db.execute(select(Order.status).where(Order.id == order_id))
    status = result.scalar_one_or_none()
    if status is None:
        raise NotFoundError(f"Order {order_id} not found")
    return status


async def submit_cart(db: AsyncSession, cart: CartState) -> Order:
    """
    Turn a cart into an order row plus its order-item rows.

    Both inserts share one transaction: either the order exists with all
    of its items or nothing was written.
    """
    if cart.is_empty:
        raise ValidationFailedError("Cart is empty")
    if not cart.table_number:
        raise ValidationFailedError("Please choose a table number first")
    if await db.get(Restaurant, cart.restaurant_id) is None:
        raise NotFoundError(f"Restaurant {cart.restaurant_id} not found")

    order = Order(
        restaurant_id=cart.restaurant_id,
        table_number=cart.table_number,
        status=OrderStatus.PENDING,
    )
    order.items = [
        OrderItem(
            menu_item_id=line.menu_item_id,
            position=position,
            name_snapshot=line.name,
            price_snapshot=line.price,
            quantity=line.quantity,
        )
        for position, line in enumerate(cart.items.values())
    ]

    db.add(order)
    await commit_or_conflict(db, "Order could not be saved, a menu item may have been removed")

    logger.info(
        f"Order {order.id} created: table {order.table_number}, "
        f"{cart.total_items} items, total {cart.total_price}"
    )
    return await get_order(db, order.id)


def parse_order_code(raw: str) -> str:
    """Validate text decoded from an order QR code and return the order id."""
    code = (raw or "").strip()
    if len(code) < get_settings().order_code_min_length:
        raise ValidationFailedError("Invalid QR code")
    return code


async def _transition(db: AsyncSession, order_id: str, allowed: tuple, **values) -> bool:
    """
    Move an order to a new state only if it is still in one of ``allowed``.

    The status check and the write are one UPDATE statement, so a second
    request racing on the same order matches no row.
    """
    result = await db.execute(
        update(Order)
        .where(Order.id == order_id, Order.status.in_(allowed))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def mark_scanned(db: AsyncSession, order_id: str) -> Order:
    order = await get_order(db, order_id)

    if order.status == OrderStatus.SCANNED:
        return order
    if order.status != OrderStatus.PENDING:
        raise InvalidStateError(f"Order is already {order.status.value}")

    if not await _transition(
        db, order_id, (OrderStatus.PENDING,),
        status=OrderStatus.SCANNED, scanned_at=utcnow(),
    ):
        await db.rollback()
        order = await get_order(db, order_id)
        if order.status != OrderStatus.SCANNED:
            raise InvalidStateError(f"Order is already {order.status.value}")
        return order
    await commit_or_conflict(db, "Order status could not be updated")

    logger.info(f"Order {order_id} scanned")
    return await get_order(db, order_id)


async def confirm_payment(
    db: AsyncSession,
    order_id: str,
    cashier_id: str,
    shift_id: Optional[str],
    payment_method: str = "cash",
) -> tuple[Order, SalesLog]:
    """
    Finalize an order: write its sales log and mark it completed.

    Raises:
        InvalidStateError: order already completed/cancelled, or no open shift
        ValidationFailedError: order total is not positive
    """
    order = await get_order(db, order_id)
    if order.status.is_final:
        raise InvalidStateError(f"Order is already {order.status.value}")

    shift = await db.get(Shift, shift_id) if shift_id else None
    if shift is None or shift.cashier_id != cashier_id or not shift.is_open:
        raise InvalidStateError("No open shift for this cashier")

    total = order.total
    if total <= 0:
        raise ValidationFailedError("Order total must be greater than 0")

    if not await _transition(
        db, order_id, OPEN_STATUSES,
        status=OrderStatus.COMPLETED, completed_at=utcnow(),
    ):
        await db.rollback()
        status = await get_status(db, order_id)
        raise InvalidStateError(f"Order is already {status.value}")

    db.add(
        SalesLog(
            order_id=order_id,
            cashier_id=cashier_id,
            shift_id=shift.id,
            total_price=total,
            payment_method=payment_method,
        )
    )
    await commit_or_conflict(db, "Order was already finalized")
    sales_log = await get_sales_log_for_order(db, order_id)

    logger.info(f"Order {order_id} completed by cashier {cashier_id}: {total}")
    return await get_order(db, order_id), sales_log


async def cancel_order(db: AsyncSession, order_id: str) -> Order:
    status = await get_status(db, order_id)
    if status.is_final:
        raise InvalidStateError(f"Order is already {status.value}")

    if not await _transition(db, order_id, OPEN_STATUSES, status=OrderStatus.CANCELLED):
        await db.rollback()
        status = await get_status(db, order_id)
        raise InvalidStateError(f"Order is already {status.value}")
    await commit_or_conflict(db, "Order status could not be updated")

    logger.info(f"Order {order_id} cancelled")
    return await get_order(db, order_id)


def sale_payload(order: Order, sales_log: SalesLog, cashier_name: str) -> dict:
    """JSON-safe row handed to the ledger export task."""
    created_at = sales_log.created_at or order.completed_at
    return {
        "sale_id": sales_log.id,
        "order_id": order.id,
        "restaurant": order.restaurant.name if order.restaurant else None,
        "table_number": order.table_number,
        "cashier": cashier_name,
        "items": ", ".join(f"{item.name_snapshot} x{item.quantity}" for item in order.items),
        "total_price": sales_log.total_price,
        "payment_method": sales_log.payment_method,
        "created_at": created_at.isoformat() if created_at else None,
    }


async def get_sales_log_for_order(db: AsyncSession, order_id: str) -> Optional[SalesLog]:
    result = await db.execute(
        select(SalesLog)
        .where(SalesLog.order_id == order_id)
        .options(selectinload(SalesLog.cashier))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_orders(
    db: AsyncSession,
    status: Optional[OrderStatus] = None,
    restaurant_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[int, list[Order]]:
    """Paginated orders, newest first, with the unpaginated total count."""
    query = select(Order).order_by(Order.created_at.desc())
    count_query = select(func.count(Order.id))

    if status is not None:
        query = query.where(Order.status == status)
        count_query = count_query.where(Order.status == status)
    if restaurant_id:
        query = query.where(Order.restaurant_id == restaurant_id)
        count_query = count_query.where(Order.restaurant_id == restaurant_id)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(query.offset(skip).limit(limit))
    return total, list(result.scalars().all())
