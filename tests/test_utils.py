from __future__ import annotations

import sedate

from datetime import datetime
from rangebook.modules.utils import month_range, overlaps, unique


def test_overlaps() -> None:
    def at(hour: int) -> datetime:
        return datetime(2030, 1, 1, hour)

    assert overlaps(at(10), at(12), at(11), at(13))
    assert overlaps(at(11), at(13), at(10), at(12))
    assert overlaps(at(10), at(14), at(11), at(12))
    assert overlaps(at(10), at(12), at(10), at(12))

    # half-open ranges touching each other do not overlap
    assert not overlaps(at(10), at(12), at(12), at(14))
    assert not overlaps(at(12), at(14), at(10), at(12))
    assert not overlaps(at(8), at(9), at(10), at(12))


def test_month_range() -> None:
    start, end = month_range(2030, 3, 'Europe/Zurich')

    assert start == sedate.replace_timezone(
        datetime(2030, 3, 1), 'Europe/Zurich'
    )
    assert end == sedate.replace_timezone(
        datetime(2030, 4, 1), 'Europe/Zurich'
    )

    # the daylight saving time switch lies within march
    assert start.utcoffset() != end.utcoffset()


def test_month_range_december() -> None:
    start, end = month_range(2030, 12, 'UTC')

    assert start.replace(tzinfo=None) == datetime(2030, 12, 1)
    assert end.replace(tzinfo=None) == datetime(2031, 1, 1)


def test_unique() -> None:
    assert list(unique([3, 1, 3, 2, 1])) == [3, 1, 2]
    assert list(unique([])) == []
