from __future__ import annotations

import logging
import sedate

from rangebook.context.core import ContextServicesMixin
from rangebook.db.closures import ClosureLedger
from rangebook.db.models import ORMBase, Closure, Participant, Reservation
from rangebook.db.models import Station, StationLink
from rangebook.db.queries import Queries
from rangebook.db.stations import StationRegistry
from rangebook.db.transaction import transaction
from rangebook.modules import errors
from rangebook.modules import events
from rangebook.modules.comments import append_entry, format_entry
from rangebook.modules.notifications import Severity
from rangebook.modules.results import Result, returns_result
from rangebook.modules.utils import month_range, unique


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime
    from sqlalchemy.orm import Query
    from typing_extensions import Self
    from uuid import UUID

    from rangebook.context.core import Context
    from rangebook.context.permissions import Actor
    from rangebook.db.transaction import Transaction


log = logging.getLogger('rangebook.booker')


class Booker(ContextServicesMixin):
    """ The Booker is responsible for the reservations of a facility: it
    creates them, lets people join and leave them, staffs them with
    stations and removes them. It is the main part of the API.

    Operations changing reservations return a
    :class:`~rangebook.modules.results.Result` instead of raising if a
    business rule prevents them. Each of them runs in its own transaction
    and commits it; notifications are only sent once that happened.

    The stations and closures of the facility are managed through
    :attr:`stations` and :attr:`closures`.

    """

    def __init__(
        self,
        context: Context,
        name: str,
        timezone: str
    ):
        """ Initializes a new Booker instance.

        :context:
            The :class:`rangebook.context.core.Context` this booker should
            operate on. Acquire a context by using
            :func:`rangebook.context.registry.Registry.register_context`.

        :name:
            The name of the facility. The context name and the name are used
            to generate the facility uuid in the database. To access the data
            you generated with a booker use the same context name and booker
            name together.

        :timezone:
            The timezone of the facility. Dates passed to the booker that are
            not timezone-aware are assumed to be of this timezone. Messages
            and comment timestamps are written in it as well.

        """

        assert isinstance(timezone, str)

        self.context = context
        self.name = name
        self.timezone = timezone

        self.queries = Queries(context, self.facility)
        self.stations = StationRegistry(context, self.facility)
        self.closures = ClosureLedger(context, self.facility, timezone)

    def clone(self) -> Self:
        """ Clones the booker. The result will be a new booker using the
        same context, name and timezone.

        """
        return self.__class__(self.context, self.name, self.timezone)

    @property
    def facility(self) -> UUID:
        """ The facility uuid that belongs to this booker. It is created
        from the name and context of this booker, based on the namespace
        defined in :ref:`settings.uuid_namespace`

        """
        return self.generate_uuid(self.name)

    def setup_database(self) -> None:
        """ Creates the tables, constraints and indices required for
        rangebook. This needs to be called once per database. Multiple
        invocations won't hurt but they are unnecessary.

        """
        ORMBase.metadata.create_all(self.session.bind)

    def extinguish_managed_records(self) -> None:
        """ WARNING:
        Completely removes any trace of the records managed by this booker.
        That means all reservations, closures and stations!

        """
        for reservation in self.queries.managed_reservations():
            self.session.delete(reservation)

        self.session.flush()
        self.queries.managed_closures().delete('fetch')
        self.stations.managed_stations().delete('fetch')

    def _prepare_range(
        self,
        start: datetime,
        end: datetime
    ) -> tuple[datetime, datetime]:

        start = sedate.standardize_date(start, self.timezone)
        end = sedate.standardize_date(end, self.timezone)

        if end <= start:
            raise errors.InvalidTimespan

        return start, end

    def describe(self, reservation: Reservation) -> str:
        """ Describes the time of the reservation for messages. """
        start = reservation.display_start(self.timezone)
        end = reservation.display_end(self.timezone)

        return '{} from {} to {}'.format(
            start.strftime('%d/%m/%Y'),
            start.strftime('%H:%M'),
            end.strftime('%H:%M')
        )

    # Reading

    def reservation_by_id(self, id: int) -> Reservation:
        """ Returns the reservation with its stations and participants.

        Raises :class:`~rangebook.modules.errors.ReservationNotFound`.

        """
        query = self.queries.managed_reservations()
        reservation = query.filter(Reservation.id == id).first()

        if reservation is None:
            raise errors.ReservationNotFound(f'Reservation {id} not found')

        return reservation

    def _reservation_for_update(self, id: int) -> Reservation:
        query = self.queries.managed_reservations()
        query = query.filter(Reservation.id == id).with_for_update()
        reservation = query.first()

        if reservation is None:
            log.warning('Reservation %d not found', id)
            raise errors.ReservationNotFound

        return reservation

    def reservations_in_range(
        self,
        start: datetime,
        end: datetime
    ) -> list[Reservation]:
        """ Returns the reservations overlapping [start, end), ordered by
        start.

        """
        start, end = self._prepare_range(start, end)
        return self.queries.overlapping_reservations(start, end).all()

    def reservations_for_month(
        self,
        year: int,
        month: int
    ) -> list[Reservation]:
        """ Returns the reservations starting in the given month. """
        start, end = month_range(year, month, self.timezone)

        query = self.queries.managed_reservations()
        query = query.filter(Reservation.start >= start)
        query = query.filter(Reservation.start < end)

        return query.order_by(Reservation.start, Reservation.id).all()

    def reservations_by_person(
        self,
        person: str,
        upcoming_only: bool = False
    ) -> Query[Reservation]:
        """ Returns the reservations the given person takes part in. """
        ids = self.session.query(Participant.reservation_id)
        ids = ids.filter(Participant.person == person)

        query = self.queries.managed_reservations()
        query = query.filter(Reservation.id.in_(ids))

        if upcoming_only:
            query = query.filter(Reservation.end > sedate.utcnow())

        return query.order_by(Reservation.start, Reservation.id)

    def closures_for_month(self, year: int, month: int) -> list[Closure]:
        return self.closures.closures_for_month(year, month)

    # Creating

    @returns_result
    def create_reservation(
        self,
        station_ids: Collection[int],
        start: datetime,
        end: datetime,
        actor: Actor,
        comment: str | None = None
    ) -> Result:
        """ Creates a new session with the actor as its first participant.

        :station_ids:
            The stations the session occupies. Instructors must give at least
            one, members may leave this empty for an instructor to fill in
            later.

        :start, end:
            The half-open timespan of the session. It may not overlap any
            closure of the facility.

        :actor:
            The :class:`~rangebook.context.permissions.Actor` creating the
            session. Members may not book stations which are already booked
            during the timespan. Instructors may, their sessions take
            precedence.

            When an instructor creates a session, all *pending* sessions
            overlapping it (regardless of their stations) are merged into
            the new session: their participants are moved over, keeping the
            time they joined, and the pending sessions are removed. The
            moved participants are notified.

        :comment:
            An optional first entry of the comment log.

        """
        instructor = self.permissions.is_instructor(actor)
        station_ids = list(unique(station_ids))

        if instructor and not station_ids:
            raise errors.StationsRequired

        start, end = self._prepare_range(start, end)

        with transaction(self) as tx:
            stations = self.stations.active_stations_by_ids(station_ids)

            if self.queries.is_closed_during(start, end):
                log.warning('Facility closed between %s and %s', start, end)
                raise errors.FacilityClosed

            if not instructor:
                self.assert_stations_available(stations, start, end)

            reservation = Reservation()
            reservation.facility = self.facility
            reservation.start = start
            reservation.end = end
            reservation.created_by = actor.id
            reservation.links = [
                StationLink(station, start, end, exclusive=not instructor)
                for station in stations
            ]
            reservation.participants = [Participant(actor.id, instructor)]
            reservation.update_status()

            if comment and comment.strip():
                reservation.comment = self.comment_entry(actor, comment)

            self.session.add(reservation)
            self.session.flush()

            if instructor:
                self.merge_pending_reservations(tx, reservation, actor)

            tx.on_commit(events.on_reservation_created, self.context, reservation)

        log.info(
            'Reservation %d created by %s (%s)',
            reservation.id, actor.id, reservation.status
        )
        return Result.ok('Reservation created', reservation)

    def assert_stations_available(
        self,
        stations: Collection[Station],
        start: datetime,
        end: datetime
    ) -> None:
        """ Raises :class:`~rangebook.modules.errors.StationAlreadyBooked`
        if any of the stations is booked during [start, end).

        """
        booked = self.queries.booked_station_ids(
            [s.id for s in stations], start, end
        )

        if booked:
            names = ', '.join(s.name for s in stations if s.id in booked)
            log.warning('Stations already booked: %s', names)
            raise errors.StationAlreadyBooked(
                f'These stations are already booked during this time: {names}'
            )

    def merge_pending_reservations(
        self,
        tx: Transaction,
        reservation: Reservation,
        actor: Actor
    ) -> list[str]:
        """ Moves the participants of all pending reservations overlapping
        the given reservation into it and removes the pending reservations.

        Runs inside the transaction creating the reservation, so nobody ever
        takes part in both at the same time. Returns the moved persons.

        """
        query = self.queries.pending_reservations_in_range(
            reservation.start, reservation.end, exclude=reservation.id
        )

        moved: list[str] = []
        merged: list[int] = []

        for pending in query.with_for_update().all():
            for participant in pending.participants:
                if participant.person == actor.id:
                    continue

                if reservation.participant(participant.person):
                    continue

                reservation.participants.append(Participant(
                    participant.person,
                    instructor=participant.instructor,
                    joined=participant.joined
                ))
                moved.append(participant.person)

            merged.append(pending.id)
            self.session.delete(pending)

        if not merged:
            return moved

        reservation.update_status()
        self.session.flush()

        log.info(
            'Merged reservations %s into %d (%d participants moved)',
            merged, reservation.id, len(moved)
        )

        tx.notify(
            moved,
            'Session confirmed',
            f'{actor.display_name} has validated your session on '
            f'{self.describe(reservation)} by joining as instructor.',
            Severity.success
        )
        tx.on_commit(
            events.on_reservations_merged, self.context, reservation, merged
        )

        return moved

    # Participants

    @returns_result
    def add_participant(self, id: int, actor: Actor) -> Result:
        """ Adds the actor to the participants of the reservation.

        An instructor joining confirms the reservation and the other
        participants are notified. Unlike :meth:`create_reservation` this
        never merges other reservations.

        """
        instructor = self.permissions.is_instructor(actor)

        with transaction(self) as tx:
            reservation = self._reservation_for_update(id)

            if reservation.participant(actor.id) is not None:
                raise errors.AlreadyJoined

            others = reservation.persons
            reservation.participants.append(
                Participant(actor.id, instructor)
            )
            reservation.update_status()

            if instructor:
                tx.notify(
                    others,
                    'Instructor joined',
                    f'Instructor {actor.display_name} has joined your '
                    f'session on {self.describe(reservation)}.',
                    Severity.success
                )

            tx.on_commit(
                events.on_participant_added,
                self.context, reservation, actor.id
            )

        log.info('%s joined reservation %d', actor.id, id)
        return Result.ok('Joined the session', reservation)

    @returns_result
    def confirm_as_instructor(self, id: int, actor: Actor) -> Result:
        """ Joins the reservation as instructor, confirming it. """
        if not self.permissions.is_instructor(actor):
            raise errors.NotAuthorized('Only instructors may confirm sessions')

        return self.add_participant(id, actor)

    @returns_result
    def remove_participant(self, id: int, actor: Actor) -> Result:
        """ Removes the actor from the participants of the reservation.

        If the actor was the last participant, the reservation is removed
        and the result is marked as ``deleted``. If the actor was an
        instructor, the status is recomputed and the remaining participants
        are notified.

        """

        with transaction(self) as tx:
            reservation = self._reservation_for_update(id)
            participant = reservation.participant(actor.id)

            if participant is None:
                raise errors.NotJoined

            tx.on_commit(
                events.on_participant_removed, self.context, id, actor.id
            )

            if len(reservation.participants) == 1:
                self.session.delete(reservation)
                tx.on_commit(events.on_reservation_deleted, self.context, id)
                deleted = True
            else:
                reservation.participants.remove(participant)
                reservation.update_status()
                deleted = False

                if participant.instructor:
                    self.notify_instructor_withdrawal(tx, reservation, actor)

        if deleted:
            log.info('%s left reservation %d, removed it', actor.id, id)
            return Result.ok(
                'You left the session. It was removed since you were the '
                'last participant.',
                deleted=True
            )

        log.info('%s left reservation %d', actor.id, id)
        return Result.ok('You left the session', reservation)

    def notify_instructor_withdrawal(
        self,
        tx: Transaction,
        reservation: Reservation,
        actor: Actor
    ) -> None:

        message = (
            f'Instructor {actor.display_name} has withdrawn from your '
            f'session on {self.describe(reservation)}.'
        )

        if not reservation.is_confirmed:
            message += ' The session is waiting for an instructor again.'

        tx.notify(
            reservation.persons,
            'Instructor withdrew',
            message,
            Severity.warning
        )

    @returns_result
    def withdraw_as_instructor(self, id: int, actor: Actor) -> Result:
        """ Leaves the reservation, which is only allowed if the actor takes
        part as instructor.

        """
        reservation = self.reservation_by_id(id)
        participant = reservation.participant(actor.id)

        if participant is None:
            raise errors.NotJoined

        if not participant.instructor:
            raise errors.NotAuthorized('You are not the instructor')

        return self.remove_participant(id, actor)

    # Stations

    @returns_result
    def update_session_stations(
        self,
        id: int,
        station_ids: Collection[int],
        actor: Actor
    ) -> Result:
        """ Replaces the stations of the session. Only instructors taking
        part in the session may do so. The other participants are notified
        with the new list of stations.

        """

        with transaction(self) as tx:
            reservation = self._reservation_for_update(id)

            if not self.permissions.may_staff(actor, reservation):
                log.warning('%s may not staff reservation %d', actor.id, id)
                raise errors.NotAuthorized(
                    'Only instructors of this session may change its stations'
                )

            stations = self.stations.active_stations_by_ids(station_ids)

            # the old links have to be gone before the new ones are added
            reservation.links.clear()
            self.session.flush()

            reservation.links.extend(
                StationLink(station, reservation.start, reservation.end)
                for station in stations
            )

            names = ', '.join(s.name for s in stations) or 'none'
            tx.notify(
                [p for p in reservation.persons if p != actor.id],
                'Stations changed',
                f'The stations of your session on '
                f'{self.describe(reservation)} are now: {names}.',
                Severity.info
            )
            tx.on_commit(
                events.on_stations_changed,
                self.context, reservation, stations
            )

        log.info('Stations of reservation %d set to %s', id, names)
        return Result.ok('Stations updated', reservation)

    # Comments

    def comment_entry(self, actor: Actor, text: str) -> str:
        return format_entry(
            text,
            actor.display_name,
            sedate.utcnow(),
            self.timezone,
            self.context.get_setting('comment_timestamp_format')
        )

    @returns_result
    def append_comment(self, id: int, actor: Actor, text: str) -> Result:
        """ Appends an entry to the comment log of the reservation. Only
        participants may comment, existing entries are never changed.

        """
        if not text or not text.strip():
            raise errors.EmptyComment

        with transaction(self):
            reservation = self._reservation_for_update(id)

            if not self.permissions.may_comment(actor, reservation):
                raise errors.NotAuthorized(
                    'Only participants may comment on a session'
                )

            reservation.comment = append_entry(
                reservation.comment, self.comment_entry(actor, text)
            )

        log.info('%s commented on reservation %d', actor.id, id)
        return Result.ok('Comment added', reservation)

    # Removing

    @returns_result
    def delete_reservation(self, id: int, actor: Actor) -> Result:
        """ Removes the reservation if the actor is an administrator.
        Everyone else merely leaves it, see :meth:`remove_participant`.

        """
        if not self.permissions.may_remove_any_reservation(actor):
            return self.remove_participant(id, actor)

        with transaction(self) as tx:
            self.session.delete(self._reservation_for_update(id))
            tx.on_commit(events.on_reservation_deleted, self.context, id)

        log.info('Reservation %d removed by %s', id, actor.id)
        return Result.ok('Reservation removed', deleted=True)
