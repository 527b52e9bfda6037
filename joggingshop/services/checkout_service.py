import logging
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from joggingshop.constants import messages
from joggingshop.constants.order_status import OrderStatus, PaymentMethod, PaymentStatus
from joggingshop.models.order import Order
from joggingshop.models.order_event import OrderEvent
from joggingshop.models.order_item import OrderItem
from joggingshop.models.product import Product
from joggingshop.schemas.checkout_schemas import CartItemIn, CheckoutRequest
from joggingshop.services.inventory_service import commit_order_stock
from joggingshop.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)

CartLine = Tuple[Product, int]


def validate_checkout_request(payload: CheckoutRequest):
    if not payload.items:
        raise HTTPException(400, messages.EMPTY_CART)

    if not payload.user_id:
        raise HTTPException(401, messages.LOGIN_REQUIRED)

    if not payload.full_name:
        raise HTTPException(400, messages.MISSING_FULL_NAME)

    if not payload.shipping_address or not payload.phone:
        raise HTTPException(400, messages.MISSING_SHIPPING_INFO)


def price_cart(session: Session, items: List[CartItemIn]) -> Tuple[float, List[CartLine]]:
    """
    Price the cart from stored product rows and check stock line by line.
    The first unknown product or shortfall aborts the whole cart.
    """
    product_ids = list(dict.fromkeys(item.product_id for item in items))

    try:
        products = session.exec(
            select(Product).where(Product.id.in_(product_ids))
        ).all()
    except SQLAlchemyError:
        logger.exception("Error fetching products")
        raise HTTPException(500, messages.PRODUCT_LOOKUP_FAILED)

    product_map = {p.id: p for p in products}

    total = 0.0
    lines: List[CartLine] = []

    for item in items:
        product = product_map.get(item.product_id)
        if not product:
            raise HTTPException(400, messages.product_not_found(item.product_id))

        if item.quantity < 1:
            raise HTTPException(400, messages.INVALID_QUANTITY)

        if product.stock_quantity < item.quantity:
            raise HTTPException(400, messages.insufficient_stock(product.name))

        total += float(product.price) * item.quantity
        lines.append((product, item.quantity))

    return total, lines


def create_order(
    session: Session,
    *,
    user_id: str,
    customer_name: str,
    phone: str,
    shipping_address: str,
    total: float,
    lines: List[CartLine],
    payment_method: PaymentMethod,
    payment_status: PaymentStatus,
) -> Order:
    """Stage an order and its items. The caller commits."""
    order = Order(
        user_id=user_id,
        customer_name=customer_name,
        phone=phone,
        shipping_address=shipping_address,
        total_amount=total,
        status=OrderStatus.pending.value,
        payment_status=payment_status.value,
        payment_method=payment_method.value,
    )
    session.add(order)
    session.flush()

    for product, quantity in lines:
        session.add(OrderItem(
            order_id=order.id,
            product_id=product.id,
            quantity=quantity,
            price=float(product.price),
        ))

    log_order_event(
        session,
        order.id,
        "order_placed",
        f"Order placed ({payment_method.value})",
        created_by=user_id,
        meta={"total": total, "items": len(lines)},
    )
    return order


def place_cod_order(session: Session, payload: CheckoutRequest) -> Order:
    """Order, items and stock in one transaction."""
    validate_checkout_request(payload)
    total, lines = price_cart(session, payload.items)

    try:
        order = create_order(
            session,
            user_id=payload.user_id,
            customer_name=payload.full_name,
            phone=payload.phone,
            shipping_address=payload.shipping_address,
            total=total,
            lines=lines,
            payment_method=PaymentMethod.cod,
            payment_status=PaymentStatus.cod_pending,
        )
        commit_order_stock(session, order, strict=True)
        session.commit()
    except HTTPException:
        session.rollback()
        raise
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error creating COD order")
        raise HTTPException(500, messages.ORDER_CREATE_FAILED)

    session.refresh(order)
    logger.info(f"COD order {order.id} placed by {order.user_id}, total {order.total_amount}")
    return order


def place_gateway_order(
    session: Session,
    *,
    user_id: str,
    customer_name: str,
    phone: str,
    shipping_address: str,
    items: List[CartItemIn],
    payment_method: PaymentMethod,
) -> Order:
    """
    Persist a pending order ahead of the gateway call: the provider may
    notify us before its response reaches this process.
    """
    total, lines = price_cart(session, items)

    try:
        order = create_order(
            session,
            user_id=user_id,
            customer_name=customer_name,
            phone=phone,
            shipping_address=shipping_address,
            total=total,
            lines=lines,
            payment_method=payment_method,
            payment_status=PaymentStatus.pending,
        )
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Error creating {payment_method.value} order")
        raise HTTPException(500, messages.ORDER_CREATE_FAILED)

    session.refresh(order)
    logger.info(f"{payment_method.value} order {order.id} created, total {order.total_amount}")
    return order


def attach_gateway_reference(session: Session, order: Order, reference: str, label: str):
    order.stripe_session_id = reference
    order.updated_at = datetime.utcnow()
    session.add(order)
    log_order_event(session, order.id, "payment_session_created", label, meta={"reference": reference})
    session.commit()


def discard_order(session: Session, order_id: int) -> bool:
    """
    Compensating delete for an order whose payment session could not be
    created. Failures are logged, not raised.
    """
    try:
        session.rollback()
        session.execute(delete(OrderEvent).where(OrderEvent.order_id == order_id))
        session.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
        session.execute(delete(Order).where(Order.id == order_id))
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Failed to discard order {order_id}")
        return False

    logger.info(f"Discarded order {order_id}")
    return True


def get_order_or_404(session: Session, order_id: int, user_id: Optional[str] = None) -> Order:
    order = session.get(Order, order_id)
    if not order or (user_id and order.user_id != user_id):
        raise HTTPException(404, "Order not found")
    return order
