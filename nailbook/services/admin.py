import logging
from datetime import datetime

from sqlalchemy.orm import Session as DbSession

from nailbook.auth.session import Session
from nailbook.core.errors import PermissionDenied
from nailbook.models.appointment import Appointment
from nailbook.services import appointment_store

logger = logging.getLogger(__name__)


def require_admin(session: Session, message: str = 'Only admins can manage appointment slots.') -> None:
    if not session.is_admin:
        logger.warning('User %s attempted an admin-only operation', session.uid)
        raise PermissionDenied(message)


def list_all_appointments(db: DbSession, session: Session, now: datetime | None = None) -> list[Appointment]:
    require_admin(session, 'Only admins can view all appointments.')
    return appointment_store.list_all(db, now=now)


def create_slot(
    db: DbSession,
    session: Session,
    date: str,
    time: str,
    duration: int | None = None,
    now: datetime | None = None,
) -> Appointment:
    require_admin(session, 'Only admins can create appointment slots.')
    return appointment_store.create(db, date=date, time=time, duration=duration, now=now)


def delete_slot(db: DbSession, session: Session, appointment_id: int) -> None:
    require_admin(session, 'Only admins can delete appointment slots.')
    appointment_store.delete(db, appointment_id)
