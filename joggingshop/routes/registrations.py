from fastapi import APIRouter, Depends
from sqlmodel import Session

from joggingshop.database import get_session
from joggingshop.schemas.registration_schemas import RegistrationCreate
from joggingshop.services.registration_service import (
    cancel_registration,
    create_registration,
    get_registration_or_404,
)

router = APIRouter()


@router.post("/events/{event_id}/registrations", status_code=201)
def register_for_event(
    event_id: int,
    data: RegistrationCreate,
    session: Session = Depends(get_session),
):
    return create_registration(session, event_id, data)


@router.get("/registrations/{registration_id}")
def get_registration(
    registration_id: int,
    session: Session = Depends(get_session),
):
    return get_registration_or_404(session, registration_id)


@router.delete("/registrations/{registration_id}")
def delete_registration(
    registration_id: int,
    session: Session = Depends(get_session),
):
    registration = get_registration_or_404(session, registration_id)
    cancel_registration(session, registration)
    return {"success": True}
