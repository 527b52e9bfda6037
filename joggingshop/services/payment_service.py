import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from joggingshop.constants.order_status import (
    OrderStatus,
    PaymentStatus,
    RegistrationStatus,
)
from joggingshop.models.order import Order
from joggingshop.models.processed_transaction import ProcessedTransaction
from joggingshop.models.registration import Registration
from joggingshop.services.inventory_service import commit_order_stock
from joggingshop.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)

MOMO = "momo"


def is_processed(session: Session, provider: str, transaction_id: str) -> bool:
    return session.exec(
        select(ProcessedTransaction)
        .where(ProcessedTransaction.provider == provider)
        .where(ProcessedTransaction.transaction_id == transaction_id)
    ).first() is not None


def _apply_order_result(session: Session, order: Order, success: bool,
                        transaction_id: str, result_code: int, message: str):
    if order.payment_status == PaymentStatus.paid.value:
        # a different transaction already settled this order
        logger.warning(
            f"Order {order.id} already paid, ignoring transaction {transaction_id} "
            f"(resultCode={result_code})"
        )
        return

    if success:
        commit_order_stock(session, order, strict=False)
        order.payment_status = PaymentStatus.paid.value
        order.status = OrderStatus.confirmed.value
        log_order_event(session, order.id, "payment_success", "Payment confirmed via MoMo",
                        created_by=MOMO, meta={"trans_id": transaction_id})
        logger.info(f"Order {order.id} payment confirmed via MoMo. TransId: {transaction_id}")
    else:
        order.payment_status = PaymentStatus.failed.value
        order.status = OrderStatus.cancelled.value
        log_order_event(session, order.id, "payment_failed", "MoMo payment failed",
                        created_by=MOMO,
                        meta={"trans_id": transaction_id, "result_code": result_code, "message": message})
        logger.info(f"Order {order.id} payment failed. ResultCode: {result_code}, Message: {message}")

    order.updated_at = datetime.utcnow()
    session.add(order)


def _apply_registration_result(session: Session, registration: Registration, success: bool,
                               transaction_id: str, result_code: int):
    if registration.payment_status == PaymentStatus.paid.value:
        logger.warning(
            f"Registration {registration.id} already paid, ignoring transaction {transaction_id}"
        )
        return

    if success:
        if registration.status == RegistrationStatus.cancelled.value:
            # money was captured after the runner cancelled
            logger.warning(
                f"Registration {registration.id} was cancelled but MoMo transaction "
                f"{transaction_id} paid it; reinstating as confirmed"
            )
        registration.payment_status = PaymentStatus.paid.value
        registration.status = RegistrationStatus.confirmed.value
        logger.info(f"Registration {registration.id} payment confirmed via MoMo. TransId: {transaction_id}")
    else:
        registration.payment_status = PaymentStatus.failed.value
        logger.info(f"Registration {registration.id} payment failed. ResultCode: {result_code}")

    session.add(registration)


def finalize_momo_payment(
    *,
    session: Session,
    transaction_id: str,
    result_code: int,
    message: str,
    target: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Single source of truth for applying a MoMo result. Each provider
    transaction is applied at most once.
    """
    if is_processed(session, MOMO, transaction_id):
        logger.info(f"Duplicate MoMo callback for transaction {transaction_id}")
        return {"success": True, "duplicate": True}

    success = result_code == 0
    order_id: Optional[int] = None
    registration_id: Optional[int] = None

    if target.get("type") == "event":
        registration_id = target.get("registrationId")
        registration = session.get(Registration, registration_id) if registration_id else None
        if not registration:
            raise HTTPException(404, "Registration not found")
        _apply_registration_result(session, registration, success, transaction_id, result_code)
    else:
        order_id = target.get("orderId")
        order = session.get(Order, order_id) if order_id else None
        if not order:
            raise HTTPException(404, "Order not found")
        _apply_order_result(session, order, success, transaction_id, result_code, message)

    session.add(ProcessedTransaction(
        provider=MOMO,
        transaction_id=transaction_id,
        order_id=order_id,
        registration_id=registration_id,
        result_code=result_code,
    ))

    try:
        session.commit()
    except IntegrityError:
        # concurrent delivery of the same transaction won the insert
        session.rollback()
        logger.info(f"Duplicate MoMo callback for transaction {transaction_id} (concurrent)")
        return {"success": True, "duplicate": True}

    return {"success": True}
