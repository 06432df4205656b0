from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from nailbook.auth import identity
from nailbook.auth.dependencies import get_current_session, get_db, get_token
from nailbook.auth.session import Session
from nailbook.core.errors import AuthFailure
from nailbook.routes.errors import database_unavailable, http_error

router = APIRouter(tags=['auth'])


class SignUpRequest(BaseModel):
    email: str
    password: str
    name: str
    phone: str

    @field_validator('name', 'phone')
    @classmethod
    def validate_required(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('This field is required.')
        return normalized


class SignInRequest(BaseModel):
    email: str
    password: str


class ProfileResponse(BaseModel):
    uid: str
    email: str
    name: str
    phone: str
    role: str

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    user: ProfileResponse


@router.post('/signup', response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def sign_up(data: SignUpRequest, db: DbSession = Depends(get_db)):
    try:
        return identity.sign_up(db, data.email, data.password, data.name, data.phone)
    except AuthFailure as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.post('/signin', response_model=TokenResponse)
def sign_in(data: SignInRequest, db: DbSession = Depends(get_db)):
    try:
        user, token = identity.sign_in(db, data.email, data.password)
    except AuthFailure as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc

    return TokenResponse(access_token=token, user=ProfileResponse.model_validate(user))


@router.post('/signout', status_code=status.HTTP_204_NO_CONTENT)
def sign_out(token: str = Depends(get_token), db: DbSession = Depends(get_db)):
    try:
        identity.sign_out(db, token)
    except AuthFailure as exc:
        raise http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get('/me', response_model=ProfileResponse)
def me(session: Session = Depends(get_current_session)):
    return ProfileResponse(
        uid=session.uid,
        email=session.email,
        name=session.name,
        phone=session.phone,
        role=session.role,
    )
