"""Appointment model definitions."""

from typing import NamedTuple

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from nailbook.database import Base

STATUS_AVAILABLE = 'available'
STATUS_BOOKED = 'booked'


class BookedBy(NamedTuple):
    """Snapshot of the client who booked a slot."""
    uid: str
    name: str
    phone: str


class Appointment(Base):
    """Represents one bookable time slot."""
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("status IN ('available', 'booked')", name='ck_appointments_status'),
        CheckConstraint(
            "(status = 'booked') = (booked_by_uid IS NOT NULL)",
            name='ck_appointments_booked_by_matches_status',
        ),
    )

    id = Column(Integer, primary_key=True)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    time = Column(String(5), nullable=False)  # HH:MM
    duration = Column(Integer, nullable=False, default=90)
    status = Column(String, nullable=False, default=STATUS_AVAILABLE)
    booked_by_uid = Column(String, index=True)
    booked_by_name = Column(String)
    booked_by_phone = Column(String)
    booked_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False)

    @property
    def booked_by(self) -> BookedBy | None:
        if self.status != STATUS_BOOKED:
            return None
        return BookedBy(
            uid=self.booked_by_uid,
            name=self.booked_by_name or '',
            phone=self.booked_by_phone or '',
        )
