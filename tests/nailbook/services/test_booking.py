from datetime import datetime

import pytest

from conftest import FakeSender
from nailbook.core.errors import AlreadyBooked, NotFound, TooLate
from nailbook.services import appointment_store, booking
from nailbook.services.notifications import SendResult


def _slot(db, date: str = '2026-03-15', time: str = '14:00'):
    return appointment_store.create(db, date=date, time=time, now=datetime(2026, 3, 1, 9, 0))


def test_book_appointment_notifies_client_and_admin(db, now, client_session) -> None:
    slot = _slot(db)
    sender = FakeSender(admin_result=SendResult(success=True, message_id='admin-msg'))

    result = booking.book_appointment(db, slot.id, client_session, sender, now=now)

    assert result.success is True
    assert result.appointment.status == 'booked'
    assert result.user_notified is True
    assert result.admin_notified is True
    assert result.message == booking.BOOKING_SUCCESS_MESSAGE + booking.NOTIFIED_SUFFIX
    assert sender.calls == [('+972501234567', 'Dana', '15 במרץ 2026', '14:00', False)]
    assert sender.admin_calls == [('Dana', '15 במרץ 2026', '14:00', False)]


def test_book_appointment_without_admin_phone_reports_no_admin_notification(db, now, client_session, fake_sender) -> None:
    slot = _slot(db)

    result = booking.book_appointment(db, slot.id, client_session, fake_sender, now=now)

    assert result.admin_notified is None
    assert result.user_notified is True


def test_failed_notification_keeps_booking(db, now, client_session) -> None:
    slot = _slot(db)
    sender = FakeSender(
        result=SendResult(success=False, error='Wrong token'),
        admin_result=SendResult(success=False, error='Wrong token'),
    )

    result = booking.book_appointment(db, slot.id, client_session, sender, now=now)

    assert result.success is True
    assert result.user_notified is False
    assert result.admin_notified is False
    assert result.message == booking.BOOKING_SUCCESS_MESSAGE + booking.DELIVERY_FAILED_SUFFIX

    db.expire_all()
    refetched = appointment_store.get(db, slot.id)
    assert refetched.status == 'booked'
    assert refetched.booked_by.uid == 'client-1'


def test_not_opted_in_recipient_gets_specific_message(db, now, client_session) -> None:
    slot = _slot(db)
    sender = FakeSender(result=SendResult(success=False, error='not opted in', is_not_opted_in=True))

    result = booking.book_appointment(db, slot.id, client_session, sender, now=now)

    assert result.not_opted_in is True
    assert result.message == booking.BOOKING_SUCCESS_MESSAGE + booking.NOT_OPTED_IN_SUFFIX


def test_sender_that_raises_does_not_fail_booking(db, now, client_session) -> None:
    class ExplodingSender(FakeSender):
        def send(self, *args, **kwargs):
            raise RuntimeError('boom')

    slot = _slot(db)

    result = booking.book_appointment(db, slot.id, client_session, ExplodingSender(), now=now)

    assert result.appointment.status == 'booked'
    assert result.user_notified is False


@pytest.mark.parametrize(
    ('slot_time', 'book_first', 'error'),
    [
        ('14:00', True, AlreadyBooked),
        (None, False, NotFound),
    ],
)
def test_book_appointment_store_errors_skip_notifications(
    db, now, client_session, fake_sender, slot_time, book_first, error
) -> None:
    appointment_id = 999
    if slot_time:
        slot = _slot(db, time=slot_time)
        appointment_id = slot.id
        if book_first:
            booking.book_appointment(db, slot.id, client_session, FakeSender(), now=now)

    with pytest.raises(error):
        booking.book_appointment(db, appointment_id, client_session, fake_sender, now=now)

    assert fake_sender.calls == []


def test_book_appointment_too_late_sends_nothing(db, now, client_session, fake_sender) -> None:
    slot = _slot(db, date='2026-03-11', time='09:00')

    with pytest.raises(TooLate):
        booking.book_appointment(db, slot.id, client_session, fake_sender, now=now)

    assert fake_sender.calls == []
    assert appointment_store.get(db, slot.id).status == 'available'


def test_cancel_appointment_reopens_slot_and_notifies(db, now, client_session, fake_sender) -> None:
    slot = _slot(db)
    booking.book_appointment(db, slot.id, client_session, FakeSender(), now=now)

    result = booking.cancel_appointment(db, slot.id, client_session, fake_sender, now=now)

    assert result.appointment.status == 'available'
    assert result.appointment.booked_by is None
    assert result.message == booking.CANCELLATION_SUCCESS_MESSAGE + booking.NOTIFIED_SUFFIX
    assert fake_sender.calls == [('+972501234567', 'Dana', '15 במרץ 2026', '14:00', True)]
    assert fake_sender.admin_calls == []


def test_cancel_within_cutoff_is_rejected(db, client_session, fake_sender) -> None:
    slot = _slot(db)
    booking.book_appointment(db, slot.id, client_session, FakeSender(), now=datetime(2026, 3, 10, 12, 0))

    with pytest.raises(TooLate) as exception_info:
        booking.cancel_appointment(db, slot.id, client_session, fake_sender, now=datetime(2026, 3, 15, 8, 0))

    assert exception_info.value.message == 'Appointments can only be cancelled at least 24 hours in advance'
    assert appointment_store.get(db, slot.id).status == 'booked'
    assert fake_sender.calls == []


def test_cancel_someone_elses_appointment_raises_not_found(db, now, client_session, admin_session, fake_sender) -> None:
    slot = _slot(db)
    booking.book_appointment(db, slot.id, client_session, FakeSender(), now=now)

    with pytest.raises(NotFound):
        booking.cancel_appointment(db, slot.id, admin_session, fake_sender, now=now)

    assert appointment_store.get(db, slot.id).status == 'booked'


def test_cancel_failed_notification_still_cancels(db, now, client_session) -> None:
    slot = _slot(db)
    booking.book_appointment(db, slot.id, client_session, FakeSender(), now=now)
    sender = FakeSender(result=SendResult(success=False, error='Network down'))

    result = booking.cancel_appointment(db, slot.id, client_session, sender, now=now)

    assert result.success is True
    assert result.user_notified is False
    assert result.message == booking.CANCELLATION_SUCCESS_MESSAGE + booking.DELIVERY_FAILED_SUFFIX
