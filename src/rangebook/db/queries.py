from __future__ import annotations

from rangebook.context.core import ContextServicesMixin
from rangebook.db.models import Closure, Reservation, StationLink
from sqlalchemy.sql import and_


from typing import TypeVar
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime
    from sqlalchemy.orm import Query
    from uuid import UUID

    from rangebook.context.core import Context

_T = TypeVar('_T')


class Queries(ContextServicesMixin):
    """ Contains helper methods shared by the booker and its registries.

    All ranges are half-open: [start, end). Two ranges touching each other
    do not overlap.

    """

    def __init__(self, context: Context, facility: UUID):
        self.context = context
        self.facility = facility

    @staticmethod
    def reservations_in_range(
        query: Query[_T],
        start: datetime,
        end: datetime
    ) -> Query[_T]:
        """ Takes a reservation query and limits it to the reservations
        overlapping with start and end.

        """
        return query.filter(
            and_(Reservation.start < end, start < Reservation.end)
        )

    @staticmethod
    def closures_in_range(
        query: Query[_T],
        start: datetime,
        end: datetime
    ) -> Query[_T]:
        """ Takes a closure query and limits it to the closures overlapping
        with start and end.

        """
        return query.filter(and_(Closure.start < end, start < Closure.end))

    def managed_reservations(self) -> Query[Reservation]:
        query = self.session.query(Reservation)
        query = query.filter(Reservation.facility == self.facility)

        return query

    def managed_closures(self) -> Query[Closure]:
        query = self.session.query(Closure)
        query = query.filter(Closure.facility == self.facility)

        return query

    def overlapping_closures(
        self,
        start: datetime,
        end: datetime,
        exclude: int | None = None
    ) -> Query[Closure]:

        query = self.closures_in_range(self.managed_closures(), start, end)

        if exclude is not None:
            query = query.filter(Closure.id != exclude)

        return query.order_by(Closure.start)

    def is_closed_during(self, start: datetime, end: datetime) -> bool:
        query = self.overlapping_closures(start, end)
        return self.session.query(query.exists()).scalar()  # type: ignore[no-any-return]

    def overlapping_reservations(
        self,
        start: datetime,
        end: datetime
    ) -> Query[Reservation]:
        query = self.managed_reservations()
        query = self.reservations_in_range(query, start, end)

        return query.order_by(Reservation.start, Reservation.id)

    def booked_station_ids(
        self,
        station_ids: Collection[int],
        start: datetime,
        end: datetime
    ) -> set[int]:
        """ Returns the ids of the given stations which are linked to a
        reservation overlapping with start and end.

        """
        if not station_ids:
            return set()

        query = self.session.query(StationLink.station_id)
        query = query.filter(StationLink.station_id.in_(station_ids))
        query = query.filter(StationLink.start < end)
        query = query.filter(start < StationLink.end)

        return {station_id for station_id, in query}

    def pending_reservations_in_range(
        self,
        start: datetime,
        end: datetime,
        exclude: int | None = None
    ) -> Query[Reservation]:
        """ Returns the pending reservations overlapping with start and end,
        regardless of their stations, oldest first.

        """
        query = self.overlapping_reservations(start, end)
        query = query.filter(Reservation.status == 'pending')

        if exclude is not None:
            query = query.filter(Reservation.id != exclude)

        return query
