""" The comment log of a reservation is a plain text, append-only log.

Each entry starts with a header naming the time and the author::

    [19/10 14:30 - Jane Doe] Bringing the 22lr rifles
    [19/10 15:02 - John Roe] Lane 3 is reserved for the beginners

Lines without a header belong to the entry above them. Entries spanning
several lines have their continuation lines indented, so a line of text can
never pass for the header of another entry::

    [19/10 15:10 - Jane Doe] Bring your own targets
      [19/10 15:12 - John Roe] this is still Jane writing

"""
from __future__ import annotations

import re
import sedate


from typing import NamedTuple
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime
    from sedate.types import TzInfoOrName


HEADER = re.compile(r'^\[(?P<timestamp>[^\]]+?) - (?P<author>[^\]]+)\] ?')

#: prefix of the continuation lines of an entry
INDENT = '  '


class CommentEntry(NamedTuple):
    timestamp: str
    author: str
    content: str


def format_entry(
    text: str,
    author: str,
    timestamp: datetime,
    timezone: TzInfoOrName,
    fmt: str = '%d/%m %H:%M'
) -> str:
    """ Renders a single log entry. The timestamp is shown in the given
    timezone, continuation lines are indented.

    """
    local = sedate.to_timezone(timestamp, timezone)
    first, *rest = text.strip().splitlines() or ['']
    lines = [f'[{local.strftime(fmt)} - {author}] {first}']
    lines.extend(f'{INDENT}{line}' for line in rest)

    return '\n'.join(lines)


def append_entry(log: str | None, entry: str) -> str:
    """ Returns the log with the entry appended. Existing entries are never
    touched.

    """
    if not log:
        return entry

    return f'{log.rstrip()}\n{entry}'


def parse_entries(log: str | None) -> Iterator[CommentEntry]:
    """ Yields the entries of the log in the order they were written.

    Text in front of the first header (e.g. comments written before the log
    format was introduced) is yielded as an entry without author.

    """
    if not log:
        return

    timestamp, author, lines = '', '', []

    for line in log.splitlines():
        match = HEADER.match(line)

        if match is None:
            lines.append(line.removeprefix(INDENT))
            continue

        if lines or author:
            yield CommentEntry(timestamp, author, '\n'.join(lines).strip())

        timestamp = match.group('timestamp')
        author = match.group('author')
        lines = [line[match.end():]]

    if lines or author:
        yield CommentEntry(timestamp, author, '\n'.join(lines).strip())
