from __future__ import annotations

import logging
import sedate

from rangebook.context.core import ContextServicesMixin
from rangebook.context.settings import CLOSURE_POLICIES
from rangebook.db.models import Closure
from rangebook.db.models.closure import CATEGORIES
from rangebook.db.queries import Queries
from rangebook.db.transaction import transaction
from rangebook.modules import errors
from rangebook.modules import events
from rangebook.modules.notifications import Severity
from rangebook.modules.utils import month_range


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from rangebook.context.core import Context
    from rangebook.db.models.closure import ClosureCategory
    from rangebook.db.transaction import Transaction
    from rangebook.modules.notifications import AffectedPerson


log = logging.getLogger('rangebook.closures')


class ClosureLedger(ContextServicesMixin):
    """ Keeps track of the planned closures of a facility (maintenance,
    holidays, external bookings...).

    Closures apply to the whole facility and never overlap each other.
    Dates that are not timezone-aware are assumed to be of the ledger's
    timezone.

    """

    def __init__(self, context: Context, facility: UUID, timezone: str):
        self.context = context
        self.facility = facility
        self.timezone = timezone
        self.queries = Queries(context, facility)

    @property
    def closure_policy(self) -> str:
        policy = self.context.get_setting('closure_policy')

        if policy not in CLOSURE_POLICIES:
            raise ValueError(f'Unknown closure policy: {policy}')

        return policy  # type: ignore[no-any-return]

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

    def _validate(
        self,
        start: datetime,
        end: datetime,
        category: ClosureCategory,
        exclude: int | None = None
    ) -> None:

        if category not in CATEGORIES:
            raise errors.ValidationError(f'Unknown category: {category}')

        existing = self.queries.overlapping_closures(start, end, exclude)
        existing_closure = existing.first()

        if existing_closure is not None:
            log.warning(
                'Closure %s - %s overlaps closure %d',
                start, end, existing_closure.id
            )
            raise errors.OverlappingClosure(start, end, existing_closure)

    def closures_in_range(
        self,
        start: datetime,
        end: datetime
    ) -> list[Closure]:
        """ Returns the closures overlapping [start, end), ordered by start.

        """
        start, end = self._prepare_range(start, end)
        return self.queries.overlapping_closures(start, end).all()

    def closures_for_month(self, year: int, month: int) -> list[Closure]:
        return self.closures_in_range(*month_range(year, month, self.timezone))

    def closure_by_id(self, id: int) -> Closure:
        query = self.queries.managed_closures().filter(Closure.id == id)
        closure = query.first()

        if closure is None:
            raise errors.ClosureNotFound(f'Closure {id} not found')

        return closure

    def is_closed_during(self, start: datetime, end: datetime) -> bool:
        start, end = self._prepare_range(start, end)
        return self.queries.is_closed_during(start, end)

    def closure_message(self, closure: Closure, cancelled: bool) -> str:
        fmt = '%d/%m/%Y %H:%M'
        start = closure.display_start(self.timezone).strftime(fmt)
        end = closure.display_end(self.timezone).strftime(fmt)

        label = closure.label
        if closure.reason and closure.reason.strip():
            label = f'{label}: {closure.reason.strip()}'

        if cancelled:
            consequence = 'Your reservations during this period are cancelled.'
        else:
            consequence = 'Please review your reservations during this period.'

        return f'The facility is closed from {start} to {end} ({label}). ' \
               f'{consequence}'

    def add_closure(
        self,
        start: datetime,
        end: datetime,
        category: ClosureCategory,
        reason: str | None = None,
        notify: bool = False
    ) -> Closure:
        """ Adds a closure of the facility.

        :notify:
            If True, the participants of all reservations overlapping the
            closure are notified.

        What happens with those reservations depends on the
        :ref:`settings.closure_policy`: they are kept ('notify') or removed
        ('cancel').

        """
        start, end = self._prepare_range(start, end)

        with transaction(self) as tx:
            self._validate(start, end, category)

            # collected before anything changes
            affected = self._affected(start, end, notify)

            closure = Closure()
            closure.facility = self.facility
            closure.start = start
            closure.end = end
            closure.category = category
            closure.reason = reason
            self.session.add(closure)

            self._apply_policy(tx, closure, affected)
            tx.on_commit(events.on_closure_added, self.context, closure)

        log.info('Added closure %s - %s (%s)', start, end, category)
        return closure

    def _affected(
        self,
        start: datetime,
        end: datetime,
        notify: bool
    ) -> list[AffectedPerson]:

        if not notify:
            return []

        return self.notifier.users_affected_by_facility_closure(
            start, end, facility=self.facility
        )

    def _apply_policy(
        self,
        tx: Transaction,
        closure: Closure,
        affected: list[AffectedPerson]
    ) -> None:

        cancel = self.closure_policy == 'cancel'

        if cancel:
            self._cancel_reservations(tx, closure.start, closure.end)

        tx.notify(
            [a.person for a in affected],
            'Facility closed',
            self.closure_message(closure, cancelled=cancel),
            Severity.warning
        )

    def _cancel_reservations(
        self,
        tx: Transaction,
        start: datetime,
        end: datetime
    ) -> None:

        for reservation in self.queries.overlapping_reservations(start, end):
            log.info('Cancelling reservation %d (closure)', reservation.id)
            tx.on_commit(
                events.on_reservation_deleted, self.context, reservation.id
            )
            self.session.delete(reservation)

    def change_closure(
        self,
        id: int,
        start: datetime,
        end: datetime,
        category: ClosureCategory,
        reason: str | None = None,
        notify: bool = False
    ) -> Closure:
        """ Changes a closure of the facility. Reservations overlapping the
        new timespan are handled the same way as in :meth:`add_closure`.

        """
        start, end = self._prepare_range(start, end)

        with transaction(self) as tx:
            closure = self.closure_by_id(id)
            self._validate(start, end, category, exclude=id)

            affected = self._affected(start, end, notify)

            closure.start = start
            closure.end = end
            closure.category = category
            closure.reason = reason

            self._apply_policy(tx, closure, affected)

        log.info('Changed closure %d', id)
        return closure

    def remove_closure(self, id: int) -> None:

        with transaction(self):
            self.session.delete(self.closure_by_id(id))

        log.info('Removed closure %d', id)
