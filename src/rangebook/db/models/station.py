from __future__ import annotations

from uuid import UUID

from sqlalchemy import types
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import Mapped
from sqlalchemy.schema import Index
from sqlalchemy.schema import UniqueConstraint

from rangebook.db.models.base import ORMBase
from rangebook.db.models.timestamp import TimestampMixin


class Station(TimestampMixin, ORMBase):
    """ A bookable position of the facility (e.g. a firing lane).

    Stations are never deleted while they might be referenced, they are
    deactivated instead.

    """

    __tablename__ = 'stations'

    id: Mapped[int] = mapped_column(
        primary_key=True,
        autoincrement=True
    )

    #: the facility this station belongs to
    facility: Mapped[UUID]

    #: the display name, unique within the facility (case-sensitive)
    name: Mapped[str] = mapped_column(types.Text())

    #: the display order, lower first
    order: Mapped[int] = mapped_column(default=0)

    #: inactive stations can't be booked anymore
    active: Mapped[bool] = mapped_column(default=True)

    __table_args__ = (
        UniqueConstraint('facility', 'name', name='station_name_ix'),
        Index('station_order_ix', 'facility', 'order'),
    )

    def __init__(
        self,
        facility: UUID,
        name: str,
        order: int = 0,
        active: bool = True
    ) -> None:
        # NOTE: Avoid auto-generated __init__, the mypy plugin is
        #       deprecated and cannot be used with newer versions.
        self.facility = facility
        self.name = name
        self.order = order
        self.active = active

    def __repr__(self) -> str:
        return f'<Station {self.id} {self.name!r}>'
