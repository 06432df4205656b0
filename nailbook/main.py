import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from nailbook.auth.session import Session, session_events
from nailbook.core import config
from nailbook.database import Base, engine, ensure_appointment_schema
from nailbook.models import appointment, user  # noqa: F401  registers tables
from nailbook.routes import admin_routes, appointment_routes, auth_routes, message_routes

app = FastAPI(title='Nail Salon Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)

_unsubscribe_session_events = None


def log_session_change(uid: str, session: Session | None) -> None:
    if session is None:
        logger.info('Session ended for %s', uid)
    else:
        logger.info('Session started for %s (role=%s)', uid, session.role)


@app.on_event('startup')
def initialize() -> None:
    global _unsubscribe_session_events

    config.validate_runtime_config()
    _unsubscribe_session_events = session_events.subscribe(log_session_change)

    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.on_event('shutdown')
def teardown() -> None:
    global _unsubscribe_session_events

    if _unsubscribe_session_events is not None:
        _unsubscribe_session_events()
        _unsubscribe_session_events = None


@app.get('/')
def root():
    return {'status': 'Nail Salon Booking API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(admin_routes.router, prefix='/admin')
app.include_router(message_routes.router)
