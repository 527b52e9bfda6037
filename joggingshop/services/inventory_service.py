import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy import update
from sqlmodel import Session, select

from joggingshop.constants import messages
from joggingshop.models.order import Order
from joggingshop.models.order_item import OrderItem
from joggingshop.models.product import Product

logger = logging.getLogger(__name__)


def _decrement(session: Session, product_id: int, quantity: int, guarded: bool) -> bool:
    statement = update(Product).where(Product.id == product_id)
    if guarded:
        statement = statement.where(Product.stock_quantity >= quantity)
    statement = statement.values(
        stock_quantity=Product.stock_quantity - quantity,
        updated_at=datetime.utcnow(),
    )
    return session.execute(statement).rowcount > 0


def commit_order_stock(session: Session, order: Order, *, strict: bool = True):
    """
    Take the order's quantities out of stock. Runs once per order; the
    caller owns the transaction.

    strict: refuse (400) when a product no longer has enough stock.
    Otherwise the payment has already been captured, so the decrement is
    applied anyway and the oversell is logged.
    """
    if order.stock_committed:
        logger.info(f"Stock already committed for order {order.id}")
        return

    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()

    for item in items:
        if _decrement(session, item.product_id, item.quantity, guarded=True):
            continue

        product = session.get(Product, item.product_id)
        if product is None:
            logger.warning(f"Product {item.product_id} of order {order.id} no longer exists")
            continue

        if strict:
            raise HTTPException(400, messages.insufficient_stock(product.name))

        _decrement(session, item.product_id, item.quantity, guarded=False)
        logger.warning(
            f"Oversold product {product.id} on order {order.id}: "
            f"requested {item.quantity}, available {product.stock_quantity}"
        )

    order.stock_committed = True
    order.updated_at = datetime.utcnow()
    session.add(order)
    logger.info(f"Committed stock for order {order.id} ({len(items)} items)")


def restock_order_items(session: Session, order: Order) -> int:
    """Put back stock taken by a cancelled order"""
    if not order.stock_committed:
        return 0

    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()

    for item in items:
        session.execute(
            update(Product)
            .where(Product.id == item.product_id)
            .values(
                stock_quantity=Product.stock_quantity + item.quantity,
                updated_at=datetime.utcnow(),
            )
        )

    order.stock_committed = False
    session.add(order)
    logger.info(f"Restocked {len(items)} items from order {order.id}")
    return len(items)
