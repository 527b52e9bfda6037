import logging
import time

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session, select

from joggingshop.config import settings
from joggingshop.constants import messages
from joggingshop.constants.order_status import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RegistrationStatus,
)
from joggingshop.database import get_session
from joggingshop.models.event import Event
from joggingshop.models.order_item import OrderItem
from joggingshop.models.product import Product
from joggingshop.schemas.checkout_schemas import (
    CardCheckoutRequest,
    CheckoutRequest,
    EventCheckoutRequest,
    MomoCallbackPayload,
    MomoEventCheckoutRequest,
)
from joggingshop.services.checkout_service import (
    attach_gateway_reference,
    discard_order,
    get_order_or_404,
    place_cod_order,
    place_gateway_order,
    validate_checkout_request,
)
from joggingshop.services.momo import (
    MomoClient,
    MomoError,
    decode_extra_data,
    encode_extra_data,
    get_momo_client,
)
from joggingshop.services.payment_service import finalize_momo_payment
from joggingshop.services.registration_service import (
    get_registration_or_404,
    resolve_distance_price,
)
from joggingshop.services.stripe_gateway import (
    StripeGateway,
    get_stripe_gateway,
    vnd_line_item,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _origin(request: Request) -> str:
    return request.headers.get("origin") or settings.site_url


def _momo_reference(prefix: str, object_id: int) -> str:
    return f"{prefix}_{object_id}_{int(time.time() * 1000)}"


# -------- CASH ON DELIVERY --------

@router.post("/cod")
def checkout_cod(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
):
    try:
        order = place_cod_order(session, payload)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("COD checkout error")
        raise HTTPException(500, f"Lỗi khi xử lý đặt hàng: {e}")

    return {
        "success": True,
        "orderId": order.id,
        "message": messages.COD_SUCCESS,
    }


# -------- MOMO WALLET --------

@router.post("/momo")
def checkout_momo(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    momo: MomoClient = Depends(get_momo_client),
):
    validate_checkout_request(payload)

    order = place_gateway_order(
        session,
        user_id=payload.user_id,
        customer_name=payload.full_name,
        phone=payload.phone,
        shipping_address=payload.shipping_address,
        items=payload.items,
        payment_method=PaymentMethod.momo,
    )

    reference = _momo_reference("ORDER", order.id)

    try:
        momo_data = momo.create_payment(
            reference=reference,
            amount=order.total_amount,
            order_info=f"Thanh toán đơn hàng #{order.id}",
            extra_data=encode_extra_data({"orderId": order.id}),
            redirect_url=f"{settings.site_url}/don-hang/{order.id}?success=true",
            ipn_url=f"{settings.site_url}/api/checkout/momo/callback",
        )
    except MomoError as e:
        discard_order(session, order.id)
        raise HTTPException(400, e.message or messages.MOMO_CREATE_FAILED)
    except Exception as e:
        discard_order(session, order.id)
        logger.exception("MoMo checkout error")
        raise HTTPException(500, f"Lỗi khi xử lý thanh toán: {e}")

    attach_gateway_reference(session, order, reference, "MoMo payment session created")

    return {
        "success": True,
        "payUrl": momo_data.get("payUrl"),
        "orderId": order.id,
    }


@router.post("/momo/event")
def checkout_momo_event(
    payload: MomoEventCheckoutRequest,
    session: Session = Depends(get_session),
    momo: MomoClient = Depends(get_momo_client),
):
    if not payload.registration_id:
        raise HTTPException(400, "Missing required fields")

    registration = get_registration_or_404(session, payload.registration_id)

    if registration.payment_status == PaymentStatus.paid.value:
        raise HTTPException(400, "Registration already paid")

    if registration.status == RegistrationStatus.cancelled.value:
        raise HTTPException(400, "Registration is cancelled")

    event = session.get(Event, registration.event_id)
    if not event:
        raise HTTPException(404, "Event not found")

    amount = resolve_distance_price(event, registration.distance)
    reference = _momo_reference("EVENT", registration.id)

    try:
        momo_data = momo.create_payment(
            reference=reference,
            amount=amount,
            order_info=f"Đăng ký {event.name} - {registration.distance}",
            extra_data=encode_extra_data({"type": "event", "registrationId": registration.id}),
            redirect_url=f"{settings.site_url}/events/{event.id}?payment=success",
            ipn_url=f"{settings.site_url}/api/checkout/momo/callback",
        )
    except MomoError as e:
        raise HTTPException(400, e.message or messages.MOMO_CREATE_FAILED)

    registration.stripe_session_id = reference
    registration.amount_paid = amount
    session.add(registration)
    session.commit()

    return {
        "success": True,
        "payUrl": momo_data.get("payUrl"),
        "registrationId": registration.id,
    }


@router.post("/momo/callback")
def momo_callback(
    payload: MomoCallbackPayload,
    session: Session = Depends(get_session),
    momo: MomoClient = Depends(get_momo_client),
):
    values = payload.model_dump(by_alias=True)

    if not momo.verify_callback(values):
        logger.error(f"Invalid MoMo signature for {payload.order_id} (transId={payload.trans_id})")
        raise HTTPException(400, "Invalid signature")

    try:
        target = decode_extra_data(payload.extra_data)
    except ValueError as e:
        logger.error(f"Failed to parse extraData for {payload.order_id}: {e}")
        raise HTTPException(400, "Invalid extraData")

    # MoMo sends resultCode as a JSON number
    if not isinstance(payload.result_code, int):
        raise HTTPException(400, "Invalid resultCode")
    result_code = payload.result_code

    transaction_id = str(payload.trans_id)
    if not transaction_id:
        raise HTTPException(400, "Missing transId")

    try:
        return finalize_momo_payment(
            session=session,
            transaction_id=transaction_id,
            result_code=result_code,
            message=payload.message,
            target=target,
        )
    except HTTPException:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception("MoMo callback error")
        raise HTTPException(500, "Internal server error")


# -------- STRIPE CARD --------

@router.post("/cart")
def checkout_cart(
    payload: CardCheckoutRequest,
    request: Request,
    session: Session = Depends(get_session),
    stripe_gateway: StripeGateway = Depends(get_stripe_gateway),
):
    created_here = payload.order_id is None

    if created_here:
        if not payload.items:
            raise HTTPException(400, "Missing required fields")

        details = CheckoutRequest(
            items=payload.items,
            user_id=payload.user_id,
            full_name=payload.full_name,
            shipping_address=payload.shipping_address,
            phone=payload.phone,
        )
        validate_checkout_request(details)

        order = place_gateway_order(
            session,
            user_id=details.user_id,
            customer_name=details.full_name,
            phone=details.phone,
            shipping_address=details.shipping_address,
            items=details.items,
            payment_method=PaymentMethod.card,
        )
    else:
        if not payload.user_id:
            raise HTTPException(401, messages.LOGIN_REQUIRED)

        order = get_order_or_404(session, payload.order_id, user_id=payload.user_id)

        if order.payment_method != PaymentMethod.card.value:
            raise HTTPException(400, "Order is not a card order")
        if order.payment_status == PaymentStatus.paid.value:
            raise HTTPException(400, "Order already paid")
        if order.payment_status != PaymentStatus.pending.value:
            raise HTTPException(400, "Order is not awaiting payment")
        if order.status == OrderStatus.cancelled.value:
            raise HTTPException(400, "Order is cancelled")

        if payload.total_amount is not None and round(payload.total_amount) != round(order.total_amount):
            logger.warning(
                f"Cart total {payload.total_amount} differs from stored total "
                f"{order.total_amount} for order {order.id}; charging stored prices"
            )

    rows = session.exec(
        select(OrderItem, Product)
        .join(Product, Product.id == OrderItem.product_id)
        .where(OrderItem.order_id == order.id)
    ).all()

    if not rows:
        raise HTTPException(400, "Order has no items")

    line_items = [
        vnd_line_item(product.name, item.price, item.quantity, image_url=product.image_url)
        for item, product in rows
    ]

    origin = _origin(request)

    try:
        checkout = stripe_gateway.create_checkout_session(
            line_items=line_items,
            customer_email=payload.email,
            metadata={
                "type": "order",
                "order_id": str(order.id),
                "user_id": order.user_id,
            },
            success_url=f"{origin}/don-hang?payment=success&session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{origin}/cart?payment=cancelled",
        )
    except (stripe.StripeError, HTTPException) as e:
        logger.error(f"Stripe cart checkout error for order {order.id}: {e}")
        if created_here:
            discard_order(session, order.id)
        if isinstance(e, HTTPException):
            raise
        raise HTTPException(500, str(e))

    attach_gateway_reference(session, order, checkout["id"], "Stripe checkout session created")

    return {"url": checkout["url"], "sessionId": checkout["id"]}


@router.post("/event")
def checkout_event(
    payload: EventCheckoutRequest,
    request: Request,
    session: Session = Depends(get_session),
    stripe_gateway: StripeGateway = Depends(get_stripe_gateway),
):
    if not payload.registration_id or not payload.event_id or not payload.distance:
        raise HTTPException(400, "Missing required fields")

    event = session.get(Event, payload.event_id)
    if not event:
        raise HTTPException(404, "Event not found")

    registration = get_registration_or_404(session, payload.registration_id)
    if registration.event_id != event.id:
        raise HTTPException(400, "Registration does not belong to this event")
    if registration.payment_status == PaymentStatus.paid.value:
        raise HTTPException(400, "Registration already paid")

    amount = resolve_distance_price(event, payload.distance)
    event_name = payload.event_name or event.name
    origin = _origin(request)

    try:
        checkout = stripe_gateway.create_checkout_session(
            line_items=[
                vnd_line_item(
                    f"{event_name} - {payload.distance}",
                    amount,
                    description=f"Đăng ký tham gia giải chạy {event_name}, cự ly {payload.distance}",
                )
            ],
            customer_email=payload.email or registration.email,
            metadata={
                "type": "event_registration",
                "registration_id": str(registration.id),
                "event_id": str(event.id),
                "distance": payload.distance,
            },
            success_url=f"{origin}/events/{event.id}?payment=success&session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{origin}/events/{event.id}?payment=cancelled",
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe checkout error for registration {registration.id}: {e}")
        raise HTTPException(500, str(e))

    registration.stripe_session_id = checkout["id"]
    registration.amount_paid = amount
    session.add(registration)
    session.commit()

    return {"url": checkout["url"], "sessionId": checkout["id"]}
