from __future__ import annotations

import enum


from typing import NamedTuple
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from typing_extensions import Self

    from rangebook.db.models import Reservation


class Role(enum.Enum):
    member = 'member'
    instructor = 'instructor'
    admin = 'admin'


class Actor(NamedTuple):
    """ The person acting on the booker, as vouched for by the caller.

    Rangebook does not authenticate anyone, it trusts the roles it is given.

    """

    id: str
    roles: frozenset[Role] = frozenset((Role.member, ))
    name: str | None = None

    @classmethod
    def with_roles(
        cls,
        id: str,
        *roles: Role | str,
        name: str | None = None
    ) -> Self:
        return cls(id, frozenset(Role(r) for r in roles), name)

    @classmethod
    def member(cls, id: str, name: str | None = None) -> Self:
        return cls.with_roles(id, Role.member, name=name)

    @classmethod
    def instructor(cls, id: str, name: str | None = None) -> Self:
        return cls.with_roles(id, Role.instructor, name=name)

    @classmethod
    def admin(cls, id: str, name: str | None = None) -> Self:
        return cls.with_roles(id, Role.admin, name=name)

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def has_role(self, role: Role) -> bool:
        return role in self.roles


class Permissions:
    """ Answers what an actor may do. All role checks of the booker go
    through this service, replace it on the context to change the rules.

    """

    @staticmethod
    def is_instructor(actor: Actor) -> bool:
        """ True if the actor joins sessions as a supervising instructor. """
        return actor.has_role(Role.instructor)

    @staticmethod
    def is_admin(actor: Actor) -> bool:
        return actor.has_role(Role.admin)

    def may_remove_any_reservation(self, actor: Actor) -> bool:
        return self.is_admin(actor)

    def may_comment(self, actor: Actor, reservation: Reservation) -> bool:
        return reservation.participant(actor.id) is not None

    def may_staff(self, actor: Actor, reservation: Reservation) -> bool:
        """ Only instructors present on the session may change its stations.
        What counts is the flag on the participation, not the current role.

        """
        participant = reservation.participant(actor.id)
        return participant is not None and participant.instructor
