"""Client-facing booking and cancellation.

A booking or cancellation is committed first; the WhatsApp messages that
follow are best effort and only change the text returned to the client.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session as DbSession

from nailbook.auth.session import Session
from nailbook.core import config
from nailbook.core.errors import NotFound, TooLate
from nailbook.models.appointment import Appointment
from nailbook.services import appointment_store
from nailbook.services.notifications import NotificationSender, SendResult, format_display_date

logger = logging.getLogger(__name__)

BOOKING_SUCCESS_MESSAGE = 'התור נקבע בהצלחה!'
CANCELLATION_SUCCESS_MESSAGE = 'התור בוטל בהצלחה.'
NOTIFIED_SUFFIX = ' קיבלת הודעת WhatsApp עם פרטי התור.'
NOT_OPTED_IN_SUFFIX = ' לא הצלחנו לשלוח הודעת WhatsApp למספר שלך, ודאי שהמספר רשום ב-WhatsApp.'
DELIVERY_FAILED_SUFFIX = ' שליחת ההודעה נכשלה, אך השינוי נשמר במערכת.'


@dataclass
class WorkflowResult:
    appointment: Appointment
    message: str
    user_notified: bool
    admin_notified: bool | None = None
    not_opted_in: bool = False
    success: bool = True


def _notify(send, *args) -> SendResult:
    try:
        return send(*args)
    except Exception as exc:
        logger.exception('Notification attempt raised')
        return SendResult(success=False, error=str(exc))


def _compose_message(base: str, result: SendResult) -> str:
    if result.success:
        return base + NOTIFIED_SUFFIX
    if result.is_not_opted_in:
        return base + NOT_OPTED_IN_SUFFIX
    return base + DELIVERY_FAILED_SUFFIX


def book_appointment(
    db: DbSession,
    appointment_id: int,
    session: Session,
    sender: NotificationSender,
    now: datetime | None = None,
) -> WorkflowResult:
    appointment = appointment_store.book(db, appointment_id, session.as_booker(), now=now)

    display_date = format_display_date(appointment.date)
    user_result = _notify(sender.send, session.phone, session.name, display_date, appointment.time, False)
    if not user_result.success:
        logger.warning(
            'Booking %s kept but client notification failed: %s',
            appointment_id,
            user_result.error,
        )

    admin_result = _notify(sender.send_to_admin, session.name, display_date, appointment.time, False)
    if admin_result is not None and not admin_result.success:
        logger.warning('Admin notification for booking %s failed: %s', appointment_id, admin_result.error)

    return WorkflowResult(
        appointment=appointment,
        message=_compose_message(BOOKING_SUCCESS_MESSAGE, user_result),
        user_notified=user_result.success,
        admin_notified=None if admin_result is None else admin_result.success,
        not_opted_in=user_result.is_not_opted_in,
    )


def cancel_appointment(
    db: DbSession,
    appointment_id: int,
    session: Session,
    sender: NotificationSender,
    now: datetime | None = None,
) -> WorkflowResult:
    now = now or datetime.now()
    own_appointments = {
        appointment.id: appointment
        for appointment in appointment_store.list_for_user(db, session.uid, now=now)
    }
    appointment = own_appointments.get(appointment_id)
    if appointment is None:
        raise NotFound()

    if appointment_store.is_within_cutoff(appointment, now):
        raise TooLate(
            f'Appointments can only be cancelled at least {config.BOOKING_CUTOFF_HOURS} hours in advance'
        )

    appointment = appointment_store.cancel(db, appointment_id, uid=session.uid)

    user_result = _notify(
        sender.send,
        session.phone,
        session.name,
        format_display_date(appointment.date),
        appointment.time,
        True,
    )
    if not user_result.success:
        logger.warning(
            'Cancellation %s kept but client notification failed: %s',
            appointment_id,
            user_result.error,
        )

    return WorkflowResult(
        appointment=appointment,
        message=_compose_message(CANCELLATION_SUCCESS_MESSAGE, user_result),
        user_notified=user_result.success,
        not_opted_in=user_result.is_not_opted_in,
    )
