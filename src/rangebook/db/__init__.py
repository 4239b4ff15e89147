from __future__ import annotations

from rangebook.context.core import Context
from rangebook.db.booker import Booker


from typing import Any
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Mapping


def new_booker(
    context: Context | str,
    name: str,
    timezone: str,
    settings: Mapping[str, Any] | None = None
) -> Booker:
    """ Creates a booker for the facility with the given name.

    :context:
        A :class:`~rangebook.context.core.Context` or the name of one. A
        context which does not exist yet is created.

    :settings:
        Settings applied to the context, e.g. ``{'settings.dsn': ...}``.

    """

    if not isinstance(context, Context):
        from rangebook import registry
        context = registry.get_context(context, autocreate=True)

    for key, value in (settings or {}).items():
        context.set(key, value)

    return Booker(context, name, timezone)


__all__ = ('Booker', 'new_booker')
