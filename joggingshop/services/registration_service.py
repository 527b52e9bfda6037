import logging

from fastapi import HTTPException
from sqlmodel import Session, select

from joggingshop.constants.order_status import PaymentStatus, RegistrationStatus
from joggingshop.models.event import Event
from joggingshop.models.registration import Registration
from joggingshop.schemas.registration_schemas import RegistrationCreate

logger = logging.getLogger(__name__)

# house prices (VND) when an event does not set its own
DEFAULT_DISTANCE_PRICES = {
    "5km": 150000,
    "10km": 200000,
    "21km": 350000,
    "42km": 500000,
}
FALLBACK_PRICE = 150000


def resolve_distance_price(event: Event, distance: str) -> float:
    if distance not in DEFAULT_DISTANCE_PRICES:
        return FALLBACK_PRICE

    event_price = getattr(event, f"price_{distance}", None)
    return event_price or DEFAULT_DISTANCE_PRICES[distance]


def get_registration_or_404(session: Session, registration_id: int) -> Registration:
    registration = session.get(Registration, registration_id)
    if not registration:
        raise HTTPException(404, "Registration not found")
    return registration


def create_registration(session: Session, event_id: int, data: RegistrationCreate) -> Registration:
    if not data.user_id:
        raise HTTPException(401, "Vui lòng đăng nhập để đăng ký giải chạy")

    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(404, "Event not found")

    if data.distance not in DEFAULT_DISTANCE_PRICES:
        raise HTTPException(400, f"Unsupported distance: {data.distance}")

    existing = session.exec(
        select(Registration)
        .where(Registration.event_id == event_id)
        .where(Registration.user_id == data.user_id)
        .where(Registration.status != RegistrationStatus.cancelled.value)
    ).first()
    if existing:
        raise HTTPException(400, "Bạn đã đăng ký sự kiện này")

    registration = Registration(
        event_id=event_id,
        user_id=data.user_id,
        full_name=data.full_name,
        email=data.email,
        distance=data.distance,
        status=RegistrationStatus.pending.value,
        payment_status=PaymentStatus.pending.value,
    )
    session.add(registration)
    session.commit()
    session.refresh(registration)

    logger.info(f"Registration {registration.id} created for event {event_id} ({data.distance})")
    return registration


def cancel_registration(session: Session, registration: Registration):
    if registration.payment_status == PaymentStatus.paid.value:
        raise HTTPException(400, "Không thể hủy đăng ký đã thanh toán")

    registration.status = RegistrationStatus.cancelled.value
    session.add(registration)
    session.commit()
    logger.info(f"Registration {registration.id} cancelled")
