from __future__ import annotations

import sedate

from datetime import datetime
from uuid import UUID

from sqlalchemy import DDL
from sqlalchemy import event
from sqlalchemy import types
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import Mapped
from sqlalchemy.schema import CheckConstraint
from sqlalchemy.schema import Index

from rangebook.db.models.base import ORMBase
from rangebook.db.models.timestamp import TimestampMixin


from typing import Literal
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from sedate.types import TzInfoOrName
    from typing_extensions import TypeAlias


ClosureCategory: TypeAlias = Literal[
    'maintenance', 'holiday', 'external_booking', 'other'
]

CATEGORIES: tuple[ClosureCategory, ...] = (
    'maintenance', 'holiday', 'external_booking', 'other'
)

CATEGORY_LABELS: dict[ClosureCategory, str] = {
    'maintenance': 'maintenance',
    'holiday': 'public holiday',
    'external_booking': 'external booking',
    'other': 'closure',
}


class Closure(TimestampMixin, ORMBase):
    """Describes a planned closure of the whole facility.

    No reservation may be made for a timespan overlapping a closure. The
    timespan is half-open: a closure ending at 12:00 does not block a session
    starting at 12:00.

    """

    __tablename__ = 'closures'

    id: Mapped[int] = mapped_column(
        primary_key=True,
        autoincrement=True
    )

    facility: Mapped[UUID]

    start: Mapped[datetime]

    end: Mapped[datetime]

    reason: Mapped[str | None] = mapped_column(types.String(200))

    category: Mapped[ClosureCategory] = mapped_column(
        types.Enum(*CATEGORIES, name='closure_category')
    )

    __table_args__ = (
        CheckConstraint('"end" > "start"', name='closure_timespan_check'),
        Index('closure_range_ix', 'facility', 'start', 'end'),
    )

    def __init__(self) -> None:
        # NOTE: Avoid auto-generated __init__, the mypy plugin is
        #       deprecated and cannot be used with newer versions.
        pass

    def display_start(self, timezone: TzInfoOrName) -> datetime:
        return sedate.to_timezone(self.start, timezone)

    def display_end(self, timezone: TzInfoOrName) -> datetime:
        return sedate.to_timezone(self.end, timezone)

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self.category]


# no two closures of a facility may overlap
event.listen(
    Closure.__table__,
    'after_create',
    DDL(
        'ALTER TABLE closures ADD CONSTRAINT closures_no_overlap '
        'EXCLUDE USING gist ('
        'facility WITH =, tsrange("start", "end", \'[)\') WITH &&'
        ')'
    )
)
