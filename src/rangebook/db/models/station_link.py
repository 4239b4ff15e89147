from __future__ import annotations

from datetime import datetime

from sqlalchemy import DDL
from sqlalchemy import event
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import relationship
from sqlalchemy.orm import Mapped
from sqlalchemy.schema import ForeignKey

from rangebook.db.models.base import ORMBase
from rangebook.db.models.station import Station


class StationLink(ORMBase):
    """ Binds a station to a reservation.

    The timespan of the reservation is copied onto the link, so the database
    can guard against overlapping bookings by itself: no two *exclusive*
    links (made by members) on the same station may overlap. Links made by
    instructors are not exclusive, instructor sessions take precedence.

    """

    __tablename__ = 'reservation_stations'

    reservation_id: Mapped[int] = mapped_column(
        ForeignKey('reservations.id', ondelete='CASCADE'),
        primary_key=True
    )

    station_id: Mapped[int] = mapped_column(
        ForeignKey(Station.id),
        primary_key=True
    )

    start: Mapped[datetime]

    end: Mapped[datetime]

    exclusive: Mapped[bool] = mapped_column(default=False)

    station: Mapped[Station] = relationship(lazy='joined', innerjoin=True)

    def __init__(
        self,
        station: Station,
        start: datetime,
        end: datetime,
        exclusive: bool = False
    ) -> None:
        self.station = station
        self.start = start
        self.end = end
        self.exclusive = exclusive


event.listen(
    StationLink.__table__,
    'after_create',
    DDL(
        'ALTER TABLE reservation_stations '
        'ADD CONSTRAINT reservation_stations_no_overlap '
        'EXCLUDE USING gist ('
        'station_id WITH =, tsrange("start", "end", \'[)\') WITH &&'
        ') WHERE (exclusive)'
    )
)
