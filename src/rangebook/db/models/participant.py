from __future__ import annotations

import sedate

from datetime import datetime

from sqlalchemy import types
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import Mapped
from sqlalchemy.schema import ForeignKey
from sqlalchemy.schema import Index

from rangebook.db.models.base import ORMBase


class Participant(ORMBase):
    """ A person taking part in a reservation.

    Instructors supervise the session, a reservation is only confirmed as
    long as at least one participant is an instructor.

    """

    __tablename__ = 'reservation_participants'

    reservation_id: Mapped[int] = mapped_column(
        ForeignKey('reservations.id', ondelete='CASCADE'),
        primary_key=True
    )

    #: the opaque id of the person, as given by the caller
    person: Mapped[str] = mapped_column(types.Text(), primary_key=True)

    #: kept as is when a participant is moved to another reservation
    joined: Mapped[datetime] = mapped_column(default=sedate.utcnow)

    #: true if the person takes part as supervising instructor
    instructor: Mapped[bool] = mapped_column(default=False)

    __table_args__ = (
        Index('participant_person_ix', 'person'),
    )

    def __init__(
        self,
        person: str,
        instructor: bool = False,
        joined: datetime | None = None
    ) -> None:
        self.person = person
        self.instructor = instructor
        self.joined = joined or sedate.utcnow()

    def __repr__(self) -> str:
        role = 'instructor' if self.instructor else 'member'
        return f'<Participant {self.person!r} ({role})>'
