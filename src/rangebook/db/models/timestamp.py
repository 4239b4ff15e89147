from __future__ import annotations

import sedate

from rangebook.db.models.types import UTCDateTime
from sqlalchemy.orm import declared_attr
from sqlalchemy.orm import deferred
from sqlalchemy.orm import Mapped
from sqlalchemy.schema import Column


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from datetime import datetime


class TimestampMixin:
    """ Mixin providing created/modified timestamps for all records.

    The modified column is deferred loaded as this is primarily for logging
    and future forensics. The created column is part of the reservation's
    public data (when was the session booked), so it is loaded eagerly.

    """

    @staticmethod
    def timestamp() -> datetime:
        return sedate.utcnow()

    if TYPE_CHECKING:
        created: Column[datetime]
        modified: Column[datetime | None]

    else:
        @declared_attr
        def created(cls) -> Mapped[datetime]:
            return Column(
                UTCDateTime(timezone=False),
                default=cls.timestamp,
                nullable=False
            )

        @declared_attr
        def modified(cls) -> Mapped[datetime | None]:
            return deferred(
                Column(
                    UTCDateTime(timezone=False),
                    onupdate=cls.timestamp
                )
            )
