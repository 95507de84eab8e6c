"""Error types raised by the task model, the record and storage.

Everything derives from TaskError so the CLI can catch one type. The
argument and deserialization errors are also ValueErrors, and the index
error is an IndexError, so plain Python callers can catch them as usual.
"""
from __future__ import annotations
from typing import Optional


class TaskError(Exception):
    """Base error for task operations."""


class InvalidArgumentError(TaskError, ValueError):
    """A date is not in the future, or start is not before end."""


class InvalidStateError(TaskError):
    """A change would leave a task with an illegal start/end/precedent mix."""


class DeserializationError(TaskError, ValueError):
    """Persisted task data is malformed or references an unknown task.

    ``index`` is the array position of the offending entry and ``field`` the
    persisted key, when either is known.
    """

    def __init__(self, message: str, index: Optional[int] = None, field: Optional[str] = None):
        self.index = index
        self.field = field
        where = []
        if index is not None:
            where.append(f"task #{index}")
        if field is not None:
            where.append(f"field {field!r}")
        if where:
            message = f"{message} ({', '.join(where)})"
        super().__init__(message)


class TaskIndexError(TaskError, IndexError):
    """Positional access beyond the bounds of a record."""
