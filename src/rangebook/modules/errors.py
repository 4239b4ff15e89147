from __future__ import annotations


from typing import ClassVar
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from datetime import datetime
    from rangebook.db.models import Closure


class RangebookError(Exception):
    __slots__ = ()

    #: the category reported by results, see :class:`.results.Result`
    kind: ClassVar[str] = 'error'

    #: the human readable message used if none was given
    message: ClassVar[str] = 'An error occurred'

    def __str__(self) -> str:
        return super().__str__() or self.message


class ContextAlreadyExists(RangebookError):
    pass


class UnknownContext(RangebookError):
    pass


class ContextIsLocked(RangebookError):
    pass


class UnknownService(RangebookError):
    pass


class NotTimezoneAware(RangebookError):
    pass


class ValidationError(RangebookError):
    kind = 'validation'
    message = 'The given values are invalid'


class InvalidTimespan(ValidationError):
    message = 'The end must be after the start'


class StationsRequired(ValidationError):
    message = 'Instructors must select at least one station'


class InvalidStation(ValidationError):
    message = 'One or more stations are invalid or inactive'


class EmptyComment(ValidationError):
    message = 'Comments may not be empty'


class ConflictError(RangebookError):
    kind = 'conflict'
    message = 'The change conflicts with an existing record'


class StationAlreadyBooked(ConflictError):
    message = 'One or more stations are already booked during this time'


class FacilityClosed(ConflictError):
    message = 'The facility is closed during this time'


class OverlappingClosure(ConflictError):

    __slots__ = ('start', 'end', 'existing')

    message = 'This period overlaps an existing closure'

    def __init__(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        existing: Closure | None = None
    ):
        super().__init__()
        self.start = start
        self.end = end
        self.existing = existing


class NotFoundError(RangebookError):
    kind = 'not_found'
    message = 'The record could not be found'


class ReservationNotFound(NotFoundError):
    message = 'Reservation not found'


class StationNotFound(NotFoundError):
    message = 'Station not found'


class ClosureNotFound(NotFoundError):
    message = 'Closure not found'


class NotJoined(NotFoundError):
    message = 'You are not a participant of this session'


class AuthorizationError(RangebookError):
    kind = 'authorization'
    message = 'You are not allowed to do this'


class NotAuthorized(AuthorizationError):
    pass


class AlreadyExistsError(RangebookError):
    kind = 'already_exists'
    message = 'The record already exists'


class AlreadyJoined(AlreadyExistsError):
    message = 'You are already a participant of this session'


class DuplicateName(AlreadyExistsError):
    message = 'A station with this name already exists'
