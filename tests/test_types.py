from __future__ import annotations

import pytest
import sedate

from datetime import datetime
from rangebook.db.models.types.uuid_type import SoftUUID
from rangebook.db.models.types.utcdatetime import UTCDateTime
from rangebook.modules.errors import NotTimezoneAware
from uuid import uuid4


def test_string_equal_uuid() -> None:
    uuid = uuid4()

    assert uuid == SoftUUID(uuid.hex)
    assert uuid.hex == SoftUUID(uuid.hex)
    assert str(uuid) == SoftUUID(uuid.hex)


def test_hashable_uuid() -> None:
    uuid = uuid4()

    assert hash(SoftUUID(uuid.hex))
    assert hash(SoftUUID(uuid.hex)) == hash(SoftUUID(str(uuid)))


def test_utcdatetime() -> None:
    column = UTCDateTime()
    local = sedate.replace_timezone(datetime(2030, 6, 1, 12), 'Europe/Zurich')

    stored = column.process_bind_param(local, None)  # type: ignore[arg-type]
    assert stored == datetime(2030, 6, 1, 10)
    assert stored.tzinfo is None

    loaded = column.process_result_value(stored, None)  # type: ignore[arg-type]
    assert loaded == local
    assert loaded.tzinfo is not None

    assert column.process_bind_param(None, None) is None  # type: ignore[arg-type]

    with pytest.raises(NotTimezoneAware):
        column.process_bind_param(datetime(2030, 6, 1), None)  # type: ignore[arg-type]
