"""Password accounts, bearer tokens and localized auth error messages."""

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session as DbSession

from nailbook.auth.session import Session, session_events
from nailbook.core import config
from nailbook.core.errors import AuthFailure
from nailbook.core.phone import normalize_phone
from nailbook.models.user import ROLE_USER, RevokedToken, User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

AUTH_MESSAGES = {
    'auth/email-already-in-use': ('כתובת האימייל כבר קיימת במערכת', 409),
    'auth/invalid-email': ('כתובת אימייל לא תקינה', 400),
    'auth/weak-password': ('הסיסמה חלשה מדי, אנא בחרי סיסמה חזקה יותר', 400),
    'auth/missing-email': ('נא להזין כתובת אימייל', 400),
    'auth/missing-password': ('נא להזין סיסמה', 400),
    'auth/user-not-found': ('אימייל או סיסמה שגויים', 401),
    'auth/wrong-password': ('אימייל או סיסמה שגויים', 401),
    'auth/invalid-token': ('ההתחברות פגה, אנא התחברי מחדש', 401),
    'auth/token-revoked': ('ההתחברות פגה, אנא התחברי מחדש', 401),
}


def auth_failure(code: str) -> AuthFailure:
    message, status_code = AUTH_MESSAGES[code]
    return AuthFailure(code, message, status_code)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning('Stored password hash could not be verified')
        return False


def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "jti": str(uuid.uuid4()),
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES),
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])


def _normalize_email(email: str) -> str:
    normalized = (email or '').strip().lower()
    if not normalized:
        raise auth_failure('auth/missing-email')
    if not EMAIL_PATTERN.match(normalized):
        raise auth_failure('auth/invalid-email')
    return normalized


def sign_up(db: DbSession, email: str, password: str, name: str, phone: str) -> User:
    normalized_email = _normalize_email(email)
    if not password:
        raise auth_failure('auth/missing-password')
    if len(password) < MIN_PASSWORD_LENGTH:
        raise auth_failure('auth/weak-password')

    if db.query(User).filter(User.email == normalized_email).first() is not None:
        raise auth_failure('auth/email-already-in-use')

    user = User(
        uid=str(uuid.uuid4()),
        email=normalized_email,
        name=name.strip(),
        phone=normalize_phone(phone),
        hashed_password=hash_password(password),
        role=ROLE_USER,
        created_at=datetime.now(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info('Account created for %s', user.uid)
    return user


def sign_in(db: DbSession, email: str, password: str) -> tuple[User, str]:
    normalized_email = _normalize_email(email)
    if not password:
        raise auth_failure('auth/missing-password')

    user = db.query(User).filter(User.email == normalized_email).first()
    if user is None:
        raise auth_failure('auth/user-not-found')
    if not verify_password(password, user.hashed_password):
        raise auth_failure('auth/wrong-password')

    token = create_access_token(subject=user.uid)
    session_events.publish(user.uid, Session.from_user(user))
    logger.info('User %s signed in', user.uid)
    return user, token


def decode_token(token: str) -> dict:
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise auth_failure('auth/invalid-token') from exc

    if not payload.get('sub') or not payload.get('jti'):
        raise auth_failure('auth/invalid-token')
    return payload


def resolve_session(db: DbSession, token: str) -> Session:
    payload = decode_token(token)

    if db.get(RevokedToken, payload['jti']) is not None:
        raise auth_failure('auth/token-revoked')

    user = db.get(User, payload['sub'])
    if user is None:
        raise auth_failure('auth/user-not-found')
    return Session.from_user(user)


def sign_out(db: DbSession, token: str) -> None:
    payload = decode_token(token)
    if db.get(RevokedToken, payload['jti']) is None:
        db.add(RevokedToken(jti=payload['jti'], revoked_at=datetime.now()))
        db.commit()
    session_events.publish(payload['sub'], None)
    logger.info('User %s signed out', payload['sub'])
