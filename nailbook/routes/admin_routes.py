from datetime import date, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from nailbook.auth.dependencies import get_current_session, get_db
from nailbook.auth.session import Session
from nailbook.core import config
from nailbook.core.errors import AppointmentError
from nailbook.routes.errors import database_unavailable, http_error
from nailbook.routes.schemas import AppointmentResponse
from nailbook.services import admin

router = APIRouter(tags=['admin'])

OPEN_TIME = time(8, 0)
CLOSE_TIME = time(20, 0)
MIN_DURATION_MINUTES = 30
DURATION_STEP_MINUTES = 15


class CreateSlotRequest(BaseModel):
    date: date
    time: time
    duration: int = config.DEFAULT_APPOINTMENT_DURATION

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: time) -> time:
        return value.replace(second=0, microsecond=0)

    @field_validator('duration')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if value < MIN_DURATION_MINUTES:
            raise ValueError(f'Duration must be at least {MIN_DURATION_MINUTES} minutes.')
        if value % DURATION_STEP_MINUTES != 0:
            raise ValueError(f'Duration must be a multiple of {DURATION_STEP_MINUTES} minutes.')
        return value


def validate_slot(slot_date: date, slot_time: time, today: date | None = None) -> tuple[str, str]:
    today = today or date.today()

    if slot_date < today:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Slots cannot be created in the past.',
        )

    if slot_time < OPEN_TIME or slot_time > CLOSE_TIME:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Slots can only start between 08:00 and 20:00.',
        )

    return slot_date.isoformat(), slot_time.strftime('%H:%M')


@router.get('/appointments', response_model=list[AppointmentResponse])
def list_appointments(
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    try:
        return admin.list_all_appointments(db, session)
    except AppointmentError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.post('/slots', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_slot(
    data: CreateSlotRequest,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    try:
        admin.require_admin(session, 'Only admins can create appointment slots.')
    except AppointmentError as exc:
        raise http_error(exc) from exc

    slot_date, slot_time = validate_slot(data.date, data.time)

    try:
        return admin.create_slot(db, session, slot_date, slot_time, data.duration)
    except AppointmentError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.delete('/slots/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(
    appointment_id: int,
    confirm: bool = Query(default=False),
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Deleting a slot must be confirmed.',
        )

    try:
        admin.delete_slot(db, session, appointment_id)
    except AppointmentError as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc
