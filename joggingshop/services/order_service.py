import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlmodel import Session

from joggingshop.constants.order_status import ALLOWED_TRANSITIONS, OrderStatus
from joggingshop.models.order import Order
from joggingshop.services.inventory_service import restock_order_items
from joggingshop.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)


def transition_order_status(
    session: Session,
    order: Order,
    new_status: OrderStatus,
    created_by: str = "admin",
    note: Optional[str] = None,
) -> Order:
    current = order.status
    if new_status.value not in ALLOWED_TRANSITIONS.get(current, []):
        raise HTTPException(400, f"Cannot change order status from {current} to {new_status.value}")

    if new_status == OrderStatus.cancelled:
        restock_order_items(session, order)

    order.status = new_status.value
    order.updated_at = datetime.utcnow()
    session.add(order)

    log_order_event(
        session,
        order.id,
        f"status_{new_status.value}",
        note or f"Order {new_status.value}",
        created_by=created_by,
        meta={"from": current, "to": new_status.value},
    )
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id} moved {current} -> {new_status.value}")
    return order
