""" The notification contract used by the booker to inform people about
changes to their sessions.

Rangebook does not deliver anything itself. It hands messages to the
``notifier`` service of the context, which may send emails, push messages or
simply log them (the default). To use your own notifier::

    class MailNotifier:
        def notify(self, person, title, message, severity):
            ...

    context.set_service('notifier', lambda context: MailNotifier(context))

Notifications are sent after the triggering change has been commited. A
failing notifier never undoes or blocks that change, its errors are logged.

"""
from __future__ import annotations

import enum
import logging
import sedate

from rangebook.context.core import ContextServicesMixin
from rangebook.db.models import Participant, Reservation, StationLink
from rangebook.modules.utils import unique


from typing import NamedTuple
from typing import Protocol
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Collection
    from collections.abc import Iterable
    from datetime import datetime
    from sqlalchemy.orm import Query
    from uuid import UUID

    from rangebook.context.core import Context


log = logging.getLogger('rangebook.notifications')


class Severity(enum.Enum):
    info = 'info'
    success = 'success'
    warning = 'warning'
    error = 'error'


class AffectedPerson(NamedTuple):
    person: str
    reservation_id: int
    start: datetime
    end: datetime
    instructor: bool


class Notifier(Protocol):

    def notify(
        self,
        person: str,
        title: str,
        message: str,
        severity: Severity
    ) -> bool: ...

    def notify_many(
        self,
        persons: Iterable[str],
        title: str,
        message: str,
        severity: Severity
    ) -> int: ...

    def users_affected_by_station_closure(
        self,
        station_id: int,
        facility: UUID | None = None
    ) -> list[AffectedPerson]: ...

    def users_affected_by_facility_closure(
        self,
        start: datetime,
        end: datetime,
        facility: UUID | None = None
    ) -> list[AffectedPerson]: ...


class LoggingNotifier(ContextServicesMixin):
    """ The default notifier. Writes every notification to the log and
    answers the affected-people queries from the database.

    Subclass it and override :meth:`deliver` to send real messages while
    keeping the queries.

    """

    def __init__(self, context: Context):
        self.context = context

    def deliver(
        self,
        person: str,
        title: str,
        message: str,
        severity: Severity
    ) -> None:
        log.info(
            '[NOTIFICATION] %s | To: %s | Title: %s | Message: %s',
            severity.value, person, title, message
        )

    def notify(
        self,
        person: str,
        title: str,
        message: str,
        severity: Severity
    ) -> bool:
        try:
            self.deliver(person, title, message, severity)
        except Exception:
            log.exception('Could not notify %s', person)
            return False

        return True

    def notify_many(
        self,
        persons: Iterable[str],
        title: str,
        message: str,
        severity: Severity
    ) -> int:
        """ Notifies each person once and returns the number of successful
        deliveries. Failed deliveries are not retried.

        """
        return sum(
            self.notify(person, title, message, severity)
            for person in unique(persons)
        )

    def _affected(
        self,
        query: Query[Reservation]
    ) -> list[AffectedPerson]:

        affected = [
            AffectedPerson(
                participant.person,
                reservation.id,
                reservation.start,
                reservation.end,
                participant.instructor
            )
            for reservation in query.order_by(Reservation.start)
            for participant in reservation.participants
        ]

        log.info('%d participant(s) affected', len(affected))
        return affected

    def users_affected_by_station_closure(
        self,
        station_id: int,
        facility: UUID | None = None
    ) -> list[AffectedPerson]:
        """ Returns the participants of all future reservations using the
        given station.

        """
        links = self.session.query(StationLink.reservation_id)
        links = links.filter(StationLink.station_id == station_id)

        query = self.session.query(Reservation)
        query = query.filter(Reservation.start > sedate.utcnow())
        query = query.filter(Reservation.id.in_(links))

        if facility is not None:
            query = query.filter(Reservation.facility == facility)

        return self._affected(query)

    def users_affected_by_facility_closure(
        self,
        start: datetime,
        end: datetime,
        facility: UUID | None = None
    ) -> list[AffectedPerson]:
        """ Returns the participants of all reservations overlapping the
        given half-open range.

        """
        query = self.session.query(Reservation)
        query = query.filter(Reservation.start < end)
        query = query.filter(Reservation.end > start)

        if facility is not None:
            query = query.filter(Reservation.facility == facility)

        return self._affected(query)


class Message(NamedTuple):
    persons: tuple[str, ...]
    title: str
    message: str
    severity: Severity


class Outbox:
    """ Collects the notifications of a transaction, so they can be sent
    once the transaction has been commited (or dropped if it was not).

    """

    def __init__(self) -> None:
        self.messages: list[Message] = []

    def __len__(self) -> int:
        return len(self.messages)

    def add(
        self,
        persons: Collection[str],
        title: str,
        message: str,
        severity: Severity = Severity.info
    ) -> None:
        if persons:
            self.messages.append(
                Message(tuple(persons), title, message, severity)
            )

    def send(self, notifier: Notifier) -> int:
        """ Hands all collected messages to the notifier and returns the
        number of successful deliveries. Errors are logged, never raised.

        """
        delivered = 0
        messages, self.messages = self.messages, []

        for m in messages:
            try:
                delivered += notifier.notify_many(
                    m.persons, m.title, m.message, m.severity
                )
            except Exception:
                log.exception(
                    'Notification "%s" to %d person(s) failed',
                    m.title, len(m.persons)
                )

        return delivered
