from __future__ import annotations

import pytest
import random
import threading

from rangebook import new_booker
from rangebook.context.permissions import Permissions
from rangebook.context.registry import create_default_registry, Registry
from rangebook.modules import errors
from rangebook.modules.notifications import LoggingNotifier
from uuid import UUID


def test_registry_contexts() -> None:
    r = Registry()

    assert r.master_context is not None
    assert r.master_context.name == 'master'
    assert r.master_context is r.current_context
    assert r.is_existing_context('master')
    assert not r.is_existing_context('north-club')

    r.register_context('north-club')

    assert r.is_existing_context('north-club')
    assert r.current_context.name == 'master'

    r.switch_context('north-club')
    assert r.local.current_context.name == 'north-club'

    south_context = r.register_context('south-club')
    with south_context.as_current_context():
        assert r.local.current_context is south_context

    with r.context('master'):
        assert r.local.current_context.name == 'master'

    assert r.current_context.name == 'north-club'
    assert r.get_context('north-club') == r.get_current_context()

    south_context.switch_to()
    assert r.current_context.name == 'south-club'


def test_autocreate() -> None:
    r = Registry()

    ctx = r.get_context('club', autocreate=True)

    assert r.get_context('club', autocreate=True) is ctx
    assert r.get_context('club') is ctx


def test_assert_existence() -> None:
    r = Registry()

    with pytest.raises(errors.UnknownContext):
        r.assert_exists('club')

    r.register_context('club')

    with pytest.raises(errors.ContextAlreadyExists):
        r.assert_does_not_exist('club')

    with pytest.raises(errors.ContextAlreadyExists):
        r.register_context('club')


def test_replace() -> None:
    r = Registry()

    ctx = r.register_context('club')
    ctx.set_setting('closure_policy', 'cancel')

    assert ctx.get_setting('closure_policy') == 'cancel'

    ctx = r.register_context('club', replace=True)
    assert ctx.get_setting('closure_policy') != 'cancel'

    ctx.lock()

    with pytest.raises(errors.ContextIsLocked):
        ctx = r.register_context('club', replace=True)


def test_locked_contexts() -> None:
    r = Registry()

    context = r.register_context('club')
    context.set('dsn', 'postgresql://localhost/club')
    context.lock()

    with pytest.raises(errors.ContextIsLocked):
        context.set('dsn', 'postgresql://localhost/other')


def test_master_fallback() -> None:
    r = create_default_registry()

    assert r.master_context is not None
    assert r.master_context.locked
    assert r.master_context.get_setting('closure_policy') == 'notify'
    assert r.master_context.get_setting('comment_timestamp_format') \
        == '%d/%m %H:%M'

    north = r.register_context('north-club')
    assert north.get_setting('closure_policy') == 'notify'

    north.set_setting('closure_policy', 'cancel')
    assert north.get_setting('closure_policy') == 'cancel'

    south = r.register_context('south-club')
    assert south.get_setting('closure_policy') == 'notify'


def test_default_services() -> None:
    r = create_default_registry()
    context = r.register_context('club')

    assert isinstance(context.get_service('notifier'), LoggingNotifier)
    assert isinstance(context.get_service('permissions'), Permissions)

    with pytest.raises(errors.UnknownService):
        context.get_service('mailer')


def test_uuid_generator() -> None:
    r = create_default_registry()

    north = r.register_context('north-club')
    south = r.register_context('south-club')

    generate = north.get_service('uuid_generator')
    assert isinstance(generate('Main Range'), UUID)
    assert generate('Main Range') == generate('Main Range')
    assert generate('Main Range') != generate('Indoor Range')

    other = south.get_service('uuid_generator')
    assert generate('Main Range') != other('Main Range')


def test_new_booker_by_context_name() -> None:
    booker = new_booker(
        'club-by-name', 'Main Range', 'Europe/Zurich',
        settings={'settings.closure_policy': 'cancel'}
    )

    assert booker.context.name == 'club-by-name'
    assert booker.context.get_setting('closure_policy') == 'cancel'
    assert booker.closures.closure_policy == 'cancel'
    assert new_booker(
        'club-by-name', 'Main Range', 'Europe/Zurich'
    ).facility == booker.facility


def test_services() -> None:
    r = Registry()
    assert r.master_context is not None

    r.master_context.set_service('service', factory=lambda ctx: object())
    first_call = r.master_context.get_service('service')
    second_call = r.master_context.get_service('service')

    assert first_call is not second_call


def test_services_cache() -> None:
    r = Registry()
    assert r.master_context is not None

    r.master_context.set_service(
        'service', factory=lambda ctx: object(), cache=True
    )

    first_call = r.master_context.get_service('service')
    second_call = r.master_context.get_service('service')

    assert first_call is second_call


def test_threading_contexts() -> None:
    r = Registry()

    class Club(threading.Thread):

        def __init__(self, name: str, registry: Registry) -> None:
            threading.Thread.__init__(self)
            self.registry = registry
            self.name = name
            self.result: str | None = None

        def run(self) -> None:
            if self.registry.is_existing_context(self.name):
                self.registry.get_context(self.name).switch_to()
            else:
                self.registry.register_context(self.name).switch_to()

            self.result = self.registry.get_current_context().name

    names = ['north', 'south', 'east', 'west']

    for i in range(0, 100):

        threads = [Club(name, r) for name in names]
        random.shuffle(threads)

        for t in threads:
            t.start()

        for t in threads:
            t.join()

        assert sorted(t.result for t in threads) == sorted(names)
