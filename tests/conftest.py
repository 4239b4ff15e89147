from __future__ import annotations

import pytest
from _pytest.fixtures import FixtureLookupError

from rangebook import new_booker, registry
from rangebook.context.permissions import Actor
from rangebook.modules.notifications import LoggingNotifier
# FIXME: Switch to pytest-postgresql, testing.postgresql is unmaintained
from testing.postgresql import Postgresql  # type: ignore[import-untyped]
from uuid import uuid4 as new_uuid


from typing import NamedTuple
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Generator
    from rangebook.context.core import Context
    from rangebook.db.booker import Booker
    from rangebook.db.models import Station
    from rangebook.modules.notifications import Severity


class Notification(NamedTuple):
    person: str
    title: str
    message: str
    severity: Severity


class RecordingNotifier(LoggingNotifier):
    """ Keeps the delivered notifications instead of logging them. """

    def __init__(self, context: Context):
        super().__init__(context)
        self.sent: list[Notification] = []
        self.fail = False

    def deliver(
        self,
        person: str,
        title: str,
        message: str,
        severity: Severity
    ) -> None:
        if self.fail:
            raise ConnectionError('Mail server unreachable')

        self.sent.append(Notification(person, title, message, severity))

    def to(self, person: str) -> list[Notification]:
        return [n for n in self.sent if n.person == person]

    def titles(self, person: str) -> list[str]:
        return [n.title for n in self.to(person)]


def new_test_booker(
    dsn: str,
    context_name: str | None = None,
    booker_name: str | None = None
) -> Booker:

    context_name = context_name or new_uuid().hex
    booker_name = booker_name or new_uuid().hex

    context = registry.register_context(context_name, replace=True)
    context.set_setting('dsn', dsn)

    return new_booker(
        context=context,
        name=booker_name,
        timezone='Europe/Zurich'
    )


@pytest.fixture
def booker(
    request: pytest.FixtureRequest,
    dsn: str
) -> Generator[Booker, None, None]:

    # clear the events before each test
    from rangebook.modules import events
    for event in (e for e in dir(events) if e.startswith('on_')):
        del getattr(events, event)[:]

    try:
        context = request.getfixturevalue('booker_context')
    except FixtureLookupError:
        context = None

    try:
        name = request.getfixturevalue('booker_name')
    except FixtureLookupError:
        name = None

    booker = new_test_booker(dsn, context, name)

    recorder = RecordingNotifier(booker.context)
    booker.context.set_service('notifier', lambda context: recorder)

    yield booker

    booker.rollback()
    booker.extinguish_managed_records()
    booker.commit()
    booker.close()
    booker.session_provider.stop_service()


@pytest.fixture
def notifier(booker: Booker) -> RecordingNotifier:
    return booker.notifier  # type: ignore[return-value]


@pytest.fixture
def stations(booker: Booker) -> list[Station]:
    return [
        booker.stations.add_station(name)
        for name in ('Lane 1', 'Lane 2', 'Lane 3')
    ]


@pytest.fixture
def alice() -> Actor:
    return Actor.member('alice', name='Alice')


@pytest.fixture
def bob() -> Actor:
    return Actor.member('bob', name='Bob')


@pytest.fixture
def ian() -> Actor:
    return Actor.instructor('ian', name='Ian')


@pytest.fixture
def admin() -> Actor:
    return Actor.admin('root', name='Range Officer')


@pytest.fixture(scope="session")
def dsn() -> Generator[str, None, None]:
    postgres = Postgresql()

    booker = new_test_booker(postgres.url())
    booker.setup_database()
    booker.commit()

    yield postgres.url()

    booker.close()

    postgres.stop()
