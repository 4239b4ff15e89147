from __future__ import annotations

from datetime import datetime
from sqlalchemy import DDL
from sqlalchemy import event
from sqlalchemy.orm import registry
from sqlalchemy.orm import DeclarativeBase
from uuid import UUID as PythonUUID

from .types import UTCDateTime
from .types import UUID


class ORMBase(DeclarativeBase):

    registry = registry(type_annotation_map={
        datetime: UTCDateTime(timezone=False),
        PythonUUID: UUID,
    })


# the exclusion constraints compare uuids/integers with '=' inside gist
event.listen(
    ORMBase.metadata,
    'before_create',
    DDL('CREATE EXTENSION IF NOT EXISTS btree_gist')
)
