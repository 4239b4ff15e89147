from __future__ import annotations

import sedate

from datetime import datetime
from collections.abc import Iterable


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Iterator
    from sedate.types import TzInfoOrName
    from typing import TypeVar

    _T = TypeVar('_T')


def overlaps(
    start: datetime,
    end: datetime,
    other_start: datetime,
    other_end: datetime
) -> bool:
    """ Returns True if the half-open ranges [start, end) and
    [other_start, other_end) share at least one moment.

    Unlike :func:`sedate.overlaps` touching ranges do not overlap, so a
    session ending at 11:00 may be followed by one starting at 11:00.

    """
    return start < other_end and other_start < end


def month_range(
    year: int,
    month: int,
    timezone: TzInfoOrName
) -> tuple[datetime, datetime]:
    """ Returns the half-open range covering the given month in the given
    timezone, as timezone aware datetimes.

    """
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)

    return (
        sedate.replace_timezone(start, timezone),
        sedate.replace_timezone(end, timezone)
    )


def unique(items: Iterable[_T]) -> Iterator[_T]:
    """ Yields the given items without duplicates, keeping the order. """
    seen = set()

    for item in items:
        if item in seen:
            continue

        seen.add(item)
        yield item
