from __future__ import annotations

import sedate

from datetime import datetime
from uuid import UUID

from sqlalchemy import types
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import relationship
from sqlalchemy.orm import Mapped
from sqlalchemy.schema import CheckConstraint
from sqlalchemy.schema import Index

from rangebook.db.models.base import ORMBase
from rangebook.db.models.participant import Participant
from rangebook.db.models.station_link import StationLink
from rangebook.db.models.timestamp import TimestampMixin
from rangebook.modules.comments import parse_entries


from typing import Literal
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Iterator
    from sedate.types import TzInfoOrName
    from typing_extensions import TypeAlias

    from rangebook.db.models import Station
    from rangebook.modules.comments import CommentEntry


ReservationStatus: TypeAlias = Literal['pending', 'confirmed']


class Reservation(TimestampMixin, ORMBase):
    """Describes a session at the facility, with its stations and its
    participants.

    The status is derived from the participants: a reservation is
    'confirmed' if at least one participant is an instructor, 'pending'
    otherwise. It is stored for querying only and recomputed by
    :meth:`update_status` whenever the participants change.

    """

    __tablename__ = 'reservations'

    id: Mapped[int] = mapped_column(
        primary_key=True,
        autoincrement=True
    )

    facility: Mapped[UUID]

    start: Mapped[datetime]

    end: Mapped[datetime]

    status: Mapped[ReservationStatus] = mapped_column(
        types.Enum(
            'pending', 'confirmed',
            name='reservation_status'
        ),
        default='pending'
    )

    #: the append-only comment log, see :mod:`rangebook.modules.comments`
    comment: Mapped[str | None] = mapped_column(types.Text())

    #: the person who created the reservation
    created_by: Mapped[str] = mapped_column(types.Text())

    participants: Mapped[list[Participant]] = relationship(
        cascade='all, delete-orphan',
        passive_deletes=True,
        order_by=Participant.joined,
        lazy='selectin'
    )

    links: Mapped[list[StationLink]] = relationship(
        cascade='all, delete-orphan',
        passive_deletes=True,
        lazy='selectin'
    )

    __table_args__ = (
        CheckConstraint('"end" > "start"', name='reservation_timespan_check'),
        Index('reservation_range_ix', 'facility', 'start', 'end'),
        Index('reservation_status_ix', 'facility', 'status'),
    )

    def __init__(self) -> None:
        # NOTE: Avoid auto-generated __init__, the mypy plugin is
        #       deprecated and cannot be used with newer versions.
        pass

    def __repr__(self) -> str:
        return f'<Reservation {self.id} {self.start} - {self.end}>'

    @property
    def stations(self) -> list[Station]:
        """ The stations of this session, in display order. """
        return sorted(
            (link.station for link in self.links),
            key=lambda s: (s.order, s.id)
        )

    @property
    def persons(self) -> list[str]:
        return [p.person for p in self.participants]

    @property
    def instructors(self) -> list[Participant]:
        return [p for p in self.participants if p.instructor]

    @property
    def is_confirmed(self) -> bool:
        return self.status == 'confirmed'

    def participant(self, person: str) -> Participant | None:
        for participant in self.participants:
            if participant.person == person:
                return participant
        return None

    def computed_status(self) -> ReservationStatus:
        return 'confirmed' if self.instructors else 'pending'

    def update_status(self) -> ReservationStatus:
        """ Recomputes the status from the participants. """
        self.status = self.computed_status()
        return self.status

    def comment_entries(self) -> Iterator[CommentEntry]:
        return parse_entries(self.comment)

    def display_start(self, timezone: TzInfoOrName) -> datetime:
        return sedate.to_timezone(self.start, timezone)

    def display_end(self, timezone: TzInfoOrName) -> datetime:
        return sedate.to_timezone(self.end, timezone)
