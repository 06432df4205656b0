"""Persistence and state transitions for appointment slots.

All listing queries hide slots whose date and time have already passed. Dates
and times are stored as zero-padded ``YYYY-MM-DD`` / ``HH:MM`` strings in the
salon's local civil time, so plain string comparison orders them correctly and
no timezone conversion happens anywhere.

Booking is a compare-and-swap on ``status``: the UPDATE only matches a row that
is still ``available``, so of two concurrent bookers exactly one gets a row
back and the other sees :class:`AlreadyBooked`.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import and_, delete as sql_delete, or_, update
from sqlalchemy.orm import Query, Session

from nailbook.core import config
from nailbook.core.errors import AlreadyBooked, NotFound, TooLate
from nailbook.models.appointment import STATUS_AVAILABLE, STATUS_BOOKED, Appointment, BookedBy

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y-%m-%d'
TIME_FORMAT = '%H:%M'


def appointment_start(appointment: Appointment) -> datetime | None:
    try:
        return datetime.strptime(f'{appointment.date} {appointment.time}', f'{DATE_FORMAT} {TIME_FORMAT}')
    except (TypeError, ValueError):
        return None


def is_within_cutoff(appointment: Appointment, now: datetime) -> bool:
    start = appointment_start(appointment)
    if start is None:
        # Unparseable records can never satisfy the lead-time rule.
        return True
    return start - now < timedelta(hours=config.BOOKING_CUTOFF_HOURS)


def _upcoming(db: Session, now: datetime) -> Query:
    today = now.strftime(DATE_FORMAT)
    current_time = now.strftime(TIME_FORMAT)
    return db.query(Appointment).filter(
        or_(
            Appointment.date > today,
            and_(Appointment.date == today, Appointment.time >= current_time),
        )
    )


def _ordered(query: Query) -> list[Appointment]:
    return query.order_by(Appointment.date.asc(), Appointment.time.asc()).all()


def list_available(db: Session, now: datetime | None = None) -> list[Appointment]:
    now = now or datetime.now()
    return _ordered(_upcoming(db, now).filter(Appointment.status == STATUS_AVAILABLE))


def list_all(db: Session, now: datetime | None = None) -> list[Appointment]:
    now = now or datetime.now()
    return _ordered(_upcoming(db, now))


def list_for_user(db: Session, uid: str, now: datetime | None = None) -> list[Appointment]:
    now = now or datetime.now()
    return _ordered(_upcoming(db, now).filter(Appointment.booked_by_uid == uid))


def get(db: Session, appointment_id: int) -> Appointment:
    appointment = db.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFound()
    return appointment


def book(
    db: Session,
    appointment_id: int,
    booking_user: BookedBy,
    now: datetime | None = None,
) -> Appointment:
    now = now or datetime.now()
    appointment = get(db, appointment_id)

    if appointment.status != STATUS_AVAILABLE:
        raise AlreadyBooked()

    if is_within_cutoff(appointment, now):
        raise TooLate(f'Appointments must be booked at least {config.BOOKING_CUTOFF_HOURS} hours in advance')

    result = db.execute(
        update(Appointment)
        .where(Appointment.id == appointment_id, Appointment.status == STATUS_AVAILABLE)
        .values(
            status=STATUS_BOOKED,
            booked_by_uid=booking_user.uid,
            booked_by_name=booking_user.name,
            booked_by_phone=booking_user.phone,
            booked_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        logger.info('Appointment %s was booked by another client first', appointment_id)
        raise AlreadyBooked()

    db.commit()
    db.refresh(appointment)
    logger.info('Appointment %s booked by %s', appointment_id, booking_user.uid)
    return appointment


def cancel(db: Session, appointment_id: int, uid: str | None = None) -> Appointment:
    """Return a booked slot to the available pool.

    When ``uid`` is given only that client's booking is released.
    """
    appointment = get(db, appointment_id)

    statement = update(Appointment).where(Appointment.id == appointment_id)
    if uid is not None:
        statement = statement.where(Appointment.booked_by_uid == uid)

    result = db.execute(
        statement.values(
            status=STATUS_AVAILABLE,
            booked_by_uid=None,
            booked_by_name=None,
            booked_by_phone=None,
            booked_at=None,
        ).execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise NotFound()

    db.commit()
    db.refresh(appointment)
    logger.info('Appointment %s cancelled and reopened', appointment_id)
    return appointment


def create(
    db: Session,
    date: str,
    time: str,
    duration: int | None = None,
    now: datetime | None = None,
) -> Appointment:
    appointment = Appointment(
        date=date,
        time=time,
        duration=duration or config.DEFAULT_APPOINTMENT_DURATION,
        status=STATUS_AVAILABLE,
        created_at=now or datetime.now(),
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    logger.info('Appointment slot %s created for %s %s', appointment.id, date, time)
    return appointment


def delete(db: Session, appointment_id: int) -> None:
    db.execute(
        sql_delete(Appointment)
        .where(Appointment.id == appointment_id)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    logger.info('Appointment slot %s deleted', appointment_id)
