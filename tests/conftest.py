import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from nailbook.auth.session import Session  # noqa: E402
from nailbook.database import Base  # noqa: E402
from nailbook.models.appointment import Appointment  # noqa: E402
from nailbook.models.user import RevokedToken, User  # noqa: E402
from nailbook.services.notifications import SendResult  # noqa: E402

TABLES = [User.__table__, RevokedToken.__table__, Appointment.__table__]


class FakeSender:
    """Records notification attempts instead of calling the provider."""

    def __init__(self, result: SendResult | None = None, admin_result: SendResult | None = None):
        self.result = result or SendResult(success=True, message_id='msg-1')
        self.admin_result = admin_result
        self.calls = []
        self.admin_calls = []

    def send(self, phone, name, date, time, is_cancellation=False):
        self.calls.append((phone, name, date, time, is_cancellation))
        return self.result

    def send_to_admin(self, name, date, time, is_cancellation=False):
        self.admin_calls.append((name, date, time, is_cancellation))
        return self.admin_result


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=TABLES)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 10, 12, 0)


@pytest.fixture
def client_session() -> Session:
    return Session(uid='client-1', email='dana@example.com', name='Dana', phone='+972501234567', role='user')


@pytest.fixture
def admin_session() -> Session:
    return Session(uid='admin-1', email='owner@example.com', name='Owner', phone='+972509999999', role='admin')


@pytest.fixture
def fake_sender() -> FakeSender:
    return FakeSender()
