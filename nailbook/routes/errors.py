import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from nailbook.core.errors import AppointmentError

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def http_error(exc: AppointmentError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def database_unavailable(db: DbSession, exc: SQLAlchemyError) -> HTTPException:
    db.rollback()
    logger.exception('Database operation failed')
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )
