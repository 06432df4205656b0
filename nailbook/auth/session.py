"""Authenticated principal and the sign-in/sign-out change stream."""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Callable

from nailbook.models.appointment import BookedBy
from nailbook.models.user import ROLE_ADMIN, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    uid: str
    email: str
    name: str
    phone: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Session":
        return cls(uid=user.uid, email=user.email, name=user.name, phone=user.phone, role=user.role)

    def as_booker(self) -> BookedBy:
        return BookedBy(uid=self.uid, name=self.name, phone=self.phone)


SessionListener = Callable[[str, Session | None], None]


class SessionEvents:
    """Publishes ``(uid, session)`` on sign-in and ``(uid, None)`` on sign-out."""

    def __init__(self):
        self._listeners: list[SessionListener] = []
        self._lock = Lock()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, uid: str, session: Session | None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(uid, session)
            except Exception:
                logger.exception('Session listener failed for %s', uid)


session_events = SessionEvents()
