from __future__ import annotations

import logging

from sqlalchemy import func

from rangebook.context.core import ContextServicesMixin
from rangebook.db.models import Station
from rangebook.db.transaction import transaction
from rangebook.modules import errors
from rangebook.modules.notifications import Severity


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Collection
    from collections.abc import Sequence
    from sqlalchemy.orm import Query
    from uuid import UUID

    from rangebook.context.core import Context


log = logging.getLogger('rangebook.stations')


class StationRegistry(ContextServicesMixin):
    """ Manages the stations of a facility.

    Stations are never deleted, only deactivated. Inactive stations are kept
    for the reservations that reference them but can't be booked anymore.

    """

    def __init__(self, context: Context, facility: UUID):
        self.context = context
        self.facility = facility

    def managed_stations(self) -> Query[Station]:
        query = self.session.query(Station)
        query = query.filter(Station.facility == self.facility)

        return query

    def all_stations(self) -> list[Station]:
        query = self.managed_stations()
        return query.order_by(Station.order, Station.id).all()

    def active_stations(self) -> list[Station]:
        """ Returns the active stations in display order. """
        query = self.managed_stations()
        query = query.filter(Station.active == True)

        return query.order_by(Station.order, Station.id).all()

    def station_by_id(self, id: int) -> Station:
        query = self.managed_stations()
        station = query.filter(Station.id == id).first()

        if station is None:
            raise errors.StationNotFound(f'Station {id} not found')

        return station

    def active_stations_by_ids(self, ids: Collection[int]) -> list[Station]:
        """ Returns the active stations with the given ids, in display order.

        Raises :class:`.errors.InvalidStation` if any of the ids does not
        belong to an active station of this facility.

        """
        ids = set(ids)
        if not ids:
            return []

        query = self.managed_stations()
        query = query.filter(Station.id.in_(ids))
        query = query.filter(Station.active == True)

        stations = query.order_by(Station.order, Station.id).all()

        if len(stations) != len(ids):
            missing = sorted(ids - {s.id for s in stations})
            log.warning('Invalid or inactive stations: %s', missing)
            raise errors.InvalidStation

        return stations

    def assert_unique_name(self, name: str, exclude: int | None = None) -> None:
        query = self.managed_stations().filter(Station.name == name)

        if exclude is not None:
            query = query.filter(Station.id != exclude)

        if self.session.query(query.exists()).scalar():
            log.warning('A station named %r exists already', name)
            raise errors.DuplicateName

    def add_station(self, name: str) -> Station:
        """ Adds a new active station at the end of the display order. """

        with transaction(self):
            self.assert_unique_name(name)

            query = self.managed_stations().with_entities(
                func.max(Station.order)
            )
            order = (query.scalar() or 0) + 1

            station = Station(self.facility, name, order=order)
            self.session.add(station)

        log.info('Added station %r (%d)', name, station.id)
        return station

    def rename_station(self, id: int, name: str) -> Station:

        with transaction(self):
            station = self.station_by_id(id)
            self.assert_unique_name(name, exclude=id)
            station.name = name

        log.info('Renamed station %d to %r', id, name)
        return station

    def deactivate_station(self, id: int, notify: bool = False) -> Station:
        """ Deactivates the station. Existing reservations keep it.

        :notify:
            If True, the participants of all future reservations using
            the station are told that it is no longer available.

        """

        with transaction(self) as tx:
            station = self.station_by_id(id)
            station.active = False

            if notify:
                affected = self.notifier.users_affected_by_station_closure(
                    id, facility=self.facility
                )
                tx.notify(
                    [a.person for a in affected],
                    'Station unavailable',
                    f'The station "{station.name}" is no longer available. '
                    f'Please check your upcoming sessions.',
                    Severity.warning
                )

        log.info('Deactivated station %d', id)
        return station

    def reorder_stations(self, ids: Sequence[int]) -> list[Station]:
        """ Assigns the display order 1..n following the given ids. Ids not
        belonging to a station of this facility are ignored.

        """

        with transaction(self):
            query = self.managed_stations().filter(Station.id.in_(ids))
            stations = {s.id: s for s in query}

            for order, id in enumerate(ids, start=1):
                if id in stations:
                    stations[id].order = order

        log.info('Reordered %d stations', len(stations))
        return self.all_stations()
