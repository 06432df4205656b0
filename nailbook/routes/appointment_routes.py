from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from nailbook.auth.dependencies import get_current_session, get_db
from nailbook.auth.session import Session
from nailbook.core.errors import AppointmentError
from nailbook.routes.errors import database_unavailable, http_error
from nailbook.routes.schemas import AppointmentResponse, WorkflowResponse, to_workflow_response
from nailbook.services import appointment_store, booking
from nailbook.services.notifications import NotificationSender

router = APIRouter(tags=['appointments'])


def get_sender() -> NotificationSender:
    return NotificationSender()


@router.get('/available', response_model=list[AppointmentResponse])
def list_available_appointments(
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    try:
        return appointment_store.list_available(db)
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.get('/mine', response_model=list[AppointmentResponse])
def list_my_appointments(
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    try:
        return appointment_store.list_for_user(db, session.uid)
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.post('/{appointment_id}/book', response_model=WorkflowResponse)
def book_appointment(
    appointment_id: int,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
    sender: NotificationSender = Depends(get_sender),
):
    if session.is_admin:
        raise HTTPException(status_code=403, detail='Admins manage slots from the admin calendar.')

    try:
        result = booking.book_appointment(db, appointment_id, session, sender)
    except AppointmentError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc

    return to_workflow_response(result)


@router.post('/{appointment_id}/cancel', response_model=WorkflowResponse)
def cancel_appointment(
    appointment_id: int,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
    sender: NotificationSender = Depends(get_sender),
):
    try:
        result = booking.cancel_appointment(db, appointment_id, session, sender)
    except AppointmentError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc

    return to_workflow_response(result)
