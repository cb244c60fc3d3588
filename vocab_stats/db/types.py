"""Custom database column types."""
from __future__ import annotations

from typing import Any

from sqlalchemy.types import String, TypeDecorator


class WordStatusType(TypeDecorator):
    """Persist a word status that is either a numeric level or a legacy tag.

    Numeric levels are stored as their decimal text so that equality and
    ``IN`` filters against plain integers keep working on every dialect.
    Values read back are ``int`` for numeric text and ``str`` otherwise.
    """

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return None
        if isinstance(value, bool):
            raise TypeError("Word status cannot be a boolean")
        return str(int(value)) if isinstance(value, int) else str(value)

    def process_result_value(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return None
        # str.isdigit() also accepts superscripts and other non-ASCII digits
        if value.isascii() and value.isdigit():
            return int(value)
        return value
