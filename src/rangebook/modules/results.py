""" Booker operations report expected business rule violations as results
instead of raising. Only unexpected failures (e.g. an unavailable database)
propagate as exceptions.

"""
from __future__ import annotations

import logging

from functools import wraps

from rangebook.modules.errors import RangebookError


from typing import NamedTuple
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Callable
    from typing_extensions import ParamSpec, Self

    from rangebook.db.models import Reservation

    _P = ParamSpec('_P')


log = logging.getLogger('rangebook')


class Result(NamedTuple):

    #: True if the operation was carried out
    success: bool

    #: A human readable message describing the outcome
    message: str

    #: The error class if the operation failed
    error: type[RangebookError] | None = None

    #: The reservation the operation produced or worked on, if any
    reservation: Reservation | None = None

    #: True if the operation removed the reservation
    deleted: bool = False

    @classmethod
    def ok(
        cls,
        message: str,
        reservation: Reservation | None = None,
        deleted: bool = False
    ) -> Self:
        return cls(True, message, None, reservation, deleted)

    @classmethod
    def failure(cls, error: RangebookError) -> Self:
        return cls(False, str(error), type(error))

    @property
    def kind(self) -> str | None:
        """ The error category (``'validation'``, ``'conflict'``, ...). """
        return self.error.kind if self.error else None

    def __bool__(self) -> bool:
        return self.success


def returns_result(
    func: Callable[_P, Result]
) -> Callable[_P, Result]:
    """ Turns the rangebook errors raised by the decorated function into
    failed results. Other exceptions are passed on.

    """

    @wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> Result:
        try:
            return func(*args, **kwargs)
        except RangebookError as e:
            log.warning('%s failed: %s', func.__name__, e)
            return Result.failure(e)

    return wrapper
