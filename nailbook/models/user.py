"""User model definitions."""

from sqlalchemy import Column, DateTime, String
from nailbook.database import Base

ROLE_USER = 'user'
ROLE_ADMIN = 'admin'


class User(Base):
    """Represents a salon client or the salon admin."""
    __tablename__ = "users"

    uid = Column(String(36), primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_USER)  # user/admin
    created_at = Column(DateTime, nullable=False)


class RevokedToken(Base):
    """Bearer tokens invalidated by sign-out."""
    __tablename__ = "revoked_tokens"

    jti = Column(String(36), primary_key=True)
    revoked_at = Column(DateTime, nullable=False)
