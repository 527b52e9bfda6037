from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from joggingshop.database import get_session
from joggingshop.models.order import Order
from joggingshop.models.order_event import OrderEvent
from joggingshop.models.order_item import OrderItem
from joggingshop.schemas.order_schemas import OrderStatusUpdate
from joggingshop.services.checkout_service import get_order_or_404
from joggingshop.services.order_service import transition_order_status
from joggingshop.utils.pagination import paginate

router = APIRouter()


def _order_summary(order: Order) -> dict:
    return {
        "id": order.id,
        "total_amount": order.total_amount,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "created_at": order.created_at,
    }


@router.get("")
def list_orders(
    user_id: str = Query(..., alias="userId"),
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
):
    if not user_id:
        raise HTTPException(401, "Vui lòng đăng nhập")

    query = (
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )

    data = paginate(session=session, query=query, page=page, limit=limit)
    data["results"] = [_order_summary(o) for o in data["results"]]
    return data


@router.get("/{order_id}")
def order_details(
    order_id: int,
    session: Session = Depends(get_session),
):
    order = get_order_or_404(session, order_id)

    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()

    events = session.exec(
        select(OrderEvent)
        .where(OrderEvent.order_id == order.id)
        .order_by(OrderEvent.created_at)
    ).all()

    return {
        **_order_summary(order),
        "user_id": order.user_id,
        "customer_name": order.customer_name,
        "phone": order.phone,
        "shipping_address": order.shipping_address,
        "stripe_session_id": order.stripe_session_id,
        "items": [
            {
                "product_id": i.product_id,
                "price": i.price,
                "quantity": i.quantity,
                "total": i.line_total,
            }
            for i in items
        ],
        "timeline": [
            {
                "event_type": e.event_type,
                "label": e.label,
                "created_by": e.created_by,
                "created_at": e.created_at,
            }
            for e in events
        ],
    }


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    order = get_order_or_404(session, order_id)
    order = transition_order_status(session, order, data.status, note=data.note)
    return _order_summary(order)
