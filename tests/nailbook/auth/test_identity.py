import pytest

from nailbook.auth import identity
from nailbook.auth.session import Session, SessionEvents
from nailbook.core.errors import AuthFailure
from nailbook.models.user import RevokedToken, User


def _sign_up(db, email: str = 'dana@example.com', password: str = 'secret123') -> User:
    return identity.sign_up(db, email, password, 'Dana', '050-123-4567')


def test_sign_up_normalizes_email_and_phone(db) -> None:
    user = _sign_up(db, email=' Dana@Example.COM ')

    assert user.email == 'dana@example.com'
    assert user.phone == '+972501234567'
    assert user.role == 'user'
    assert user.hashed_password != 'secret123'
    assert identity.verify_password('secret123', user.hashed_password) is True


@pytest.mark.parametrize(
    ('email', 'password', 'code', 'message'),
    [
        ('not-an-email', 'secret123', 'auth/invalid-email', 'כתובת אימייל לא תקינה'),
        ('dana@example.com', '123', 'auth/weak-password', 'הסיסמה חלשה מדי, אנא בחרי סיסמה חזקה יותר'),
        ('   ', 'secret123', 'auth/missing-email', 'נא להזין כתובת אימייל'),
    ],
)
def test_sign_up_rejects_invalid_input(db, email: str, password: str, code: str, message: str) -> None:
    with pytest.raises(AuthFailure) as exception_info:
        identity.sign_up(db, email, password, 'Dana', '0501234567')

    assert exception_info.value.code == code
    assert exception_info.value.message == message


def test_sign_up_rejects_duplicate_email(db) -> None:
    _sign_up(db)

    with pytest.raises(AuthFailure) as exception_info:
        _sign_up(db, email='DANA@example.com')

    assert exception_info.value.code == 'auth/email-already-in-use'
    assert exception_info.value.status_code == 409


def test_sign_in_returns_token_for_valid_credentials(db) -> None:
    user = _sign_up(db)

    signed_in, token = identity.sign_in(db, 'dana@example.com', 'secret123')

    assert signed_in.uid == user.uid
    assert identity.decode_access_token(token)['sub'] == user.uid
    assert identity.resolve_session(db, token) == Session.from_user(user)


@pytest.mark.parametrize(
    ('email', 'password', 'code'),
    [
        ('nobody@example.com', 'secret123', 'auth/user-not-found'),
        ('dana@example.com', 'wrong-password', 'auth/wrong-password'),
    ],
)
def test_sign_in_failures_share_one_message(db, email: str, password: str, code: str) -> None:
    _sign_up(db)

    with pytest.raises(AuthFailure) as exception_info:
        identity.sign_in(db, email, password)

    assert exception_info.value.code == code
    assert exception_info.value.message == 'אימייל או סיסמה שגויים'


def test_resolve_session_rejects_garbage_token(db) -> None:
    with pytest.raises(AuthFailure) as exception_info:
        identity.resolve_session(db, 'not-a-jwt')

    assert exception_info.value.code == 'auth/invalid-token'


def test_sign_out_revokes_token(db) -> None:
    _sign_up(db)
    _, token = identity.sign_in(db, 'dana@example.com', 'secret123')

    identity.sign_out(db, token)
    identity.sign_out(db, token)

    assert db.query(RevokedToken).count() == 1
    with pytest.raises(AuthFailure) as exception_info:
        identity.resolve_session(db, token)
    assert exception_info.value.code == 'auth/token-revoked'


def test_sign_in_and_out_publish_session_changes(db, monkeypatch: pytest.MonkeyPatch) -> None:
    events = SessionEvents()
    monkeypatch.setattr('nailbook.auth.identity.session_events', events)
    received = []
    unsubscribe = events.subscribe(lambda uid, session: received.append((uid, session)))
    user = _sign_up(db)

    _, token = identity.sign_in(db, 'dana@example.com', 'secret123')
    identity.sign_out(db, token)
    unsubscribe()
    identity.sign_in(db, 'dana@example.com', 'secret123')

    assert received == [(user.uid, Session.from_user(user)), (user.uid, None)]


def test_session_listener_failure_does_not_break_publishing() -> None:
    events = SessionEvents()
    received = []

    def broken(uid, session):
        raise RuntimeError('listener bug')

    events.subscribe(broken)
    events.subscribe(lambda uid, session: received.append(uid))

    events.publish('client-1', None)

    assert received == ['client-1']


def test_session_is_admin_and_booker_snapshot(admin_session, client_session) -> None:
    assert admin_session.is_admin is True
    assert client_session.is_admin is False
    assert tuple(client_session.as_booker()) == ('client-1', 'Dana', '+972501234567')
