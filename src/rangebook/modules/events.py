""" Events are called by the :class:`rangebook.db.booker.Booker` and its
registries after a change has been commited.

The implementation is very simple:

To add an event::

    from rangebook.modules import events

    def on_reservation_created(context, reservation):
        pass

    events.on_reservation_created.append(on_reservation_created)

To remove the same event::

    events.on_reservation_created.remove(on_reservation_created)

Events are called in the order they were added.
"""
from __future__ import annotations


from typing import overload
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Callable
    from collections.abc import Sequence
    from typing_extensions import ParamSpec

    from rangebook.context.core import Context
    from rangebook.db.models import Closure, Reservation, Station

    _P = ParamSpec('_P')


class Event(list['Callable[_P, object]']):
    """Event subscription. By http://stackoverflow.com/a/2022629

    A list of callable objects. Calling an instance of this will cause a
    call to each item in the list in ascending order by index.

    """
    @overload
    def __init__(self, f: type[Callable[_P, object]]) -> None: ...
    @overload
    def __init__(self) -> None: ...

    def __init__(self, f: object = None) -> None:
        return

    def __call__(self, *args: _P.args, **kwargs: _P.kwargs) -> None:
        for f in self:
            f(*args, **kwargs)


on_reservation_created: Event[Context, Reservation] = Event()
""" Called when a reservation was created, with the following arguments:

    :context:
        The :class:`rangebook.context.core.Context` used when creating the
        reservation.

    :reservation:
        The :class:`rangebook.db.models.Reservation` that was commited.

"""

on_reservations_merged: Event[Context, Reservation, Sequence[int]] = Event()
""" Called when pending reservations were absorbed by a new instructor
session, with the following arguments:

    :context:
        The :class:`rangebook.context.core.Context` used.

    :reservation:
        The new :class:`rangebook.db.models.Reservation` which received
        the participants.

    :merged_ids:
        The ids of the reservations which were removed.

"""

on_participant_added: Event[Context, Reservation, str] = Event()
""" Called when a person joined a reservation, with the following arguments:

    :context:
        The :class:`rangebook.context.core.Context` used.

    :reservation:
        The :class:`rangebook.db.models.Reservation` joined.

    :person:
        The id of the person who joined.

"""

on_participant_removed: Event[Context, int, str] = Event()
""" Called when a person left a reservation, with the following arguments:

    :context:
        The :class:`rangebook.context.core.Context` used.

    :reservation_id:
        The id of the reservation, which may not exist anymore.

    :person:
        The id of the person who left.

"""

on_reservation_deleted: Event[Context, int] = Event()
""" Called when a reservation was removed, with the following arguments:

    :context:
        The :class:`rangebook.context.core.Context` used.

    :reservation_id:
        The id of the removed reservation.

"""

on_stations_changed: Event[Context, Reservation, Sequence[Station]] = Event()
""" Called when the stations of a session were replaced, with the following
arguments:

    :context:
        The :class:`rangebook.context.core.Context` used.

    :reservation:
        The :class:`rangebook.db.models.Reservation` that changed.

    :stations:
        The new list of :class:`rangebook.db.models.Station` stations.

"""

on_closure_added: Event[Context, Closure] = Event()
""" Called when a closure was added, with the following arguments:

    :context:
        The :class:`rangebook.context.core.Context` used.

    :closure:
        The :class:`rangebook.db.models.Closure` that was commited.

"""
