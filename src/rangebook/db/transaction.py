from __future__ import annotations

import logging

from contextlib import contextmanager
from sqlalchemy.exc import DBAPIError, IntegrityError

from rangebook.modules import errors
from rangebook.modules.notifications import Outbox


from typing import Any
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Callable
    from collections.abc import Iterator

    from rangebook.context.core import ContextServicesMixin


log = logging.getLogger('rangebook')


#: constraint violations reported by the database, by constraint name
CONSTRAINT_ERRORS: dict[str, type[errors.RangebookError]] = {
    'reservation_stations_no_overlap': errors.StationAlreadyBooked,
    'closures_no_overlap': errors.OverlappingClosure,
    'station_name_ix': errors.DuplicateName,
    'reservation_participants_pkey': errors.AlreadyJoined,
    'closure_timespan_check': errors.InvalidTimespan,
    'reservation_timespan_check': errors.InvalidTimespan,
}

#: serialization failure and deadlock, another transaction got there first
RETRYABLE_PGCODES = ('40001', '40P01')

#: unique violation and exclusion violation of an unnamed constraint
CONFLICT_PGCODES = ('23505', '23P01')


def error_for_database_error(
    exception: DBAPIError
) -> errors.RangebookError | None:
    """ Returns the business error equivalent to the given database error,
    or None if the error is unexpected.

    """
    diag = getattr(exception.orig, 'diag', None)
    constraint = getattr(diag, 'constraint_name', None)

    if constraint in CONSTRAINT_ERRORS:
        return CONSTRAINT_ERRORS[constraint]()

    pgcode = getattr(exception.orig, 'pgcode', None)

    if isinstance(exception, IntegrityError):
        if pgcode in CONFLICT_PGCODES:
            return errors.ConflictError()
        return None

    if pgcode in RETRYABLE_PGCODES:
        return errors.ConflictError(
            'The session was changed at the same time, please try again'
        )

    return None


class Transaction:
    """ The unit of work of a single booker operation.

    Notifications and callbacks registered during the transaction are only
    carried out once it has been commited.

    """

    def __init__(self) -> None:
        self.outbox = Outbox()
        self.callbacks: list[tuple[Callable[..., object], tuple[Any, ...]]]
        self.callbacks = []

    def notify(self, *args: Any, **kwargs: Any) -> None:
        """ Queues a notification, see :meth:`.Outbox.add`. """
        self.outbox.add(*args, **kwargs)

    def on_commit(self, callback: Callable[..., object], *args: Any) -> None:
        self.callbacks.append((callback, args))

    def after_commit(self, owner: ContextServicesMixin) -> None:
        self.outbox.send(owner.notifier)

        for callback, args in self.callbacks:
            try:
                callback(*args)
            except Exception:
                log.exception('Callback %r failed after commit', callback)


@contextmanager
def transaction(owner: ContextServicesMixin) -> Iterator[Transaction]:
    """ Runs the body in a single transaction of the owner's session.

    Either everything is commited or nothing is. Constraint violations are
    turned into their :mod:`rangebook.modules.errors` equivalent, other
    database errors are passed on.

    """
    session = owner.session
    tx = Transaction()

    try:
        yield tx
        session.flush()
        session.commit()
    except DBAPIError as e:
        session.rollback()

        error = error_for_database_error(e)
        if error is None:
            raise

        log.warning('Rolled back: %s', error)
        raise error from e
    except BaseException:
        session.rollback()
        raise

    tx.after_commit(owner)
