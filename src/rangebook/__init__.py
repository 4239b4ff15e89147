from __future__ import annotations

from rangebook.context.registry import create_default_registry
from rangebook.db import new_booker

registry = create_default_registry()

__version__ = '0.1.0'
__all__ = (
    'new_booker',
    'registry'
)
