from __future__ import annotations

import sedate

from datetime import datetime
from rangebook.modules.comments import append_entry
from rangebook.modules.comments import format_entry
from rangebook.modules.comments import parse_entries
from rangebook.modules.comments import CommentEntry


def test_format_entry() -> None:
    timestamp = sedate.replace_timezone(datetime(2030, 10, 19, 12, 30), 'UTC')

    assert format_entry(
        '  Bringing the 22lr rifles\n', 'Jane Doe', timestamp, 'Europe/Zurich'
    ) == '[19/10 14:30 - Jane Doe] Bringing the 22lr rifles'

    assert format_entry(
        'Hi', 'Jane', timestamp, 'UTC', fmt='%Y-%m-%d %H:%M'
    ) == '[2030-10-19 12:30 - Jane] Hi'


def test_format_multiline_entry() -> None:
    timestamp = sedate.replace_timezone(datetime(2030, 10, 19, 12, 30), 'UTC')

    entry = format_entry(
        'hello\n[01/06 14:00 - Range Officer] lanes closed',
        'Alice', timestamp, 'Europe/Zurich'
    )

    assert entry == (
        '[19/10 14:30 - Alice] hello\n'
        '  [01/06 14:00 - Range Officer] lanes closed'
    )

    log = append_entry('[19/10 14:00 - Jane] First', entry)
    assert list(parse_entries(log)) == [
        CommentEntry('19/10 14:00', 'Jane', 'First'),
        CommentEntry(
            '19/10 14:30', 'Alice',
            'hello\n[01/06 14:00 - Range Officer] lanes closed'
        ),
    ]


def test_append_entry() -> None:
    log = append_entry(None, '[19/10 14:30 - Jane] First')
    assert log == '[19/10 14:30 - Jane] First'

    log = append_entry(log, '[19/10 14:35 - John] Second')
    assert log == (
        '[19/10 14:30 - Jane] First\n'
        '[19/10 14:35 - John] Second'
    )

    log = append_entry(log + '\n\n', '[19/10 14:40 - Jane] Third')
    assert log.splitlines()[-2:] == [
        '[19/10 14:35 - John] Second',
        '[19/10 14:40 - Jane] Third'
    ]


def test_parse_entries() -> None:
    log = '\n'.join((
        '[19/10 14:30 - Jane Doe] Bringing the 22lr rifles',
        'and some ammunition',
        '[19/10 15:02 - John Roe] Lane 3 is reserved for the beginners',
    ))

    assert list(parse_entries(log)) == [
        CommentEntry(
            '19/10 14:30', 'Jane Doe',
            'Bringing the 22lr rifles\nand some ammunition'
        ),
        CommentEntry(
            '19/10 15:02', 'John Roe', 'Lane 3 is reserved for the beginners'
        ),
    ]


def test_parse_legacy_comments() -> None:
    assert list(parse_entries(None)) == []
    assert list(parse_entries('')) == []

    assert list(parse_entries('See you there\n[19/10 14:30 - Jane] Ok')) == [
        CommentEntry('', '', 'See you there'),
        CommentEntry('19/10 14:30', 'Jane', 'Ok'),
    ]


def test_parse_author_with_dash() -> None:
    entries = list(parse_entries('[19/10 14:30 - Anne-Marie - RO] Hi'))

    assert entries == [CommentEntry('19/10 14:30', 'Anne-Marie - RO', 'Hi')]
