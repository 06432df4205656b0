from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session as DbSession

from nailbook.auth import identity
from nailbook.auth.session import Session
from nailbook.core.errors import AuthFailure
from nailbook.database import SessionLocal

security = HTTPBearer()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> str:
    return credentials.credentials


def get_current_session(
    token: str = Depends(get_token),
    db: DbSession = Depends(get_db),
) -> Session:
    try:
        return identity.resolve_session(db, token)
    except AuthFailure as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
