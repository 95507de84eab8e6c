"""Data model for a single task.

A task takes one of four shapes, decided by which of start, end and
precedent are populated:

    interval   start and end
    timestamp  start only
    due        end only
    followup   precedent only (no dates of its own)

_validate() is the one place that decides whether a proposed
(start, end, precedent) combination is legal. The factories and both date
setters run it on the tentative values before anything is committed.
Times are naive local datetimes taken from _now().
"""
from __future__ import annotations
import logging
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from errors import InvalidArgumentError, InvalidStateError

logger = logging.getLogger(__name__)


class TaskKind(str, Enum):
    INTERVAL = "interval"
    TIMESTAMP = "timestamp"
    DUE = "due"
    FOLLOWUP = "followup"


def _now() -> datetime:
    """Current local time. Tests monkeypatch this to move the clock."""
    return datetime.now()


def _validate(start: Optional[datetime], end: Optional[datetime],
              precedent: Optional["Task"], future: Iterable[str] = ()) -> None:
    """Raise if (start, end, precedent) is not a legal task shape.

    ``future`` names the date fields ("start", "end") being newly assigned;
    those must lie strictly after now and, when both dates are present,
    start must come before end. Trusted reconstruction passes nothing and
    only gets the structural check.
    """
    if precedent is not None:
        if start is not None or end is not None:
            raise InvalidStateError("A followup task cannot have a start or end date")
    elif start is None and end is None:
        raise InvalidStateError("A task needs a start or end date unless it follows another task")

    future = tuple(future)
    if not future:
        return
    now = _now()
    for label, value in (("start", start), ("end", end)):
        if label in future and value is not None and value <= now:
            raise InvalidArgumentError(f"{label.capitalize()} must be in the future")
    if start is not None and end is not None and start >= end:
        raise InvalidArgumentError("Start must be before end")


class Task:
    """A single task.

    Prefer the factories (interval/timestamp/due/followup), which enforce
    forward-looking dates. The constructor only checks the shape and is what
    from_record() uses to rebuild persisted tasks, past dates included.

    Fields:
        name: Free text, mutable.
        creation_date: When the task was created (read-only).
        id: Integer id, unique within its TaskRecord (read-only).
        completed: One-way flag, only set through complete().
        start / end: Optional datetimes, mutable under the shape rules.
        precedent: The task this one follows (read-only, non-owning).
    """

    def __init__(self, name: str, task_id: int, *,
                 start: Optional[datetime] = None,
                 end: Optional[datetime] = None,
                 precedent: Optional[Task] = None,
                 creation_date: Optional[datetime] = None,
                 completed: bool = False):
        self.name = name
        _validate(start, end, precedent)
        self._id = task_id
        self._start = start
        self._end = end
        self._precedent = precedent
        self._creation_date = creation_date if creation_date is not None else _now()
        self._completed = bool(completed)

    # -------------------- factories --------------------
    @classmethod
    def interval(cls, start: datetime, name: str, end: datetime, task_id: int) -> Task:
        _validate(start, end, None, future=("start", "end"))
        return cls(name, task_id, start=start, end=end)

    @classmethod
    def timestamp(cls, start: datetime, name: str, task_id: int) -> Task:
        _validate(start, None, None, future=("start",))
        return cls(name, task_id, start=start)

    @classmethod
    def due(cls, name: str, end: datetime, task_id: int) -> Task:
        _validate(None, end, None, future=("end",))
        return cls(name, task_id, end=end)

    @classmethod
    def followup(cls, name: str, precedent: Task, task_id: int) -> Task:
        return cls(name, task_id, precedent=precedent)

    @classmethod
    def from_record(cls, name: str, creation_date: datetime, task_id: int, completed: bool,
                    start: Optional[datetime], end: Optional[datetime],
                    precedent: Optional[Task]) -> Task:
        """Rebuild a persisted task. No date checks, shape is still enforced."""
        return cls(name, task_id, start=start, end=end, precedent=precedent,
                   creation_date=creation_date, completed=completed)

    # -------------------- read-only fields --------------------
    @property
    def id(self) -> int:
        return self._id

    @property
    def creation_date(self) -> datetime:
        return self._creation_date

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def precedent(self) -> Optional[Task]:
        return self._precedent

    @property
    def precedent_id(self) -> Optional[int]:
        return self._precedent.id if self._precedent is not None else None

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if value is None:
            raise InvalidArgumentError("Name is required")
        self._name = value

    # -------------------- dates --------------------
    @property
    def start(self) -> Optional[datetime]:
        return self._start

    @start.setter
    def start(self, value: Optional[datetime]) -> None:
        _validate(value, self._end, self._precedent, future=("start",) if value is not None else ())
        self._start = value

    @property
    def end(self) -> Optional[datetime]:
        return self._end

    @end.setter
    def end(self, value: Optional[datetime]) -> None:
        _validate(self._start, value, self._precedent, future=("end",) if value is not None else ())
        self._end = value

    # -------------------- derived status --------------------
    @property
    def kind(self) -> TaskKind:
        if self._precedent is not None:
            return TaskKind.FOLLOWUP
        if self._start is not None and self._end is not None:
            return TaskKind.INTERVAL
        if self._start is not None:
            return TaskKind.TIMESTAMP
        return TaskKind.DUE

    @property
    def late(self) -> bool:
        """Past its end and not completed, or following a late task.

        Only the end date counts; a timestamp-only task is never late.
        """
        if self._end is not None:
            return self._end < _now() and not self._completed
        if self._precedent is not None:
            return self._precedent.late
        return False

    def complete(self) -> None:
        """Mark the task completed when it is eligible, otherwise do nothing.

        A followup is eligible once its precedent is completed; any other
        task once its start has passed. A due-only task has no start and so
        is never eligible.
        """
        if self._completed:
            return
        if self._precedent is not None:
            eligible = self._precedent.completed
        else:
            eligible = self._start is not None and self._start < _now()
        if eligible:
            self._completed = True
            logger.debug("Task %s completed", self._id)
        else:
            logger.debug("Task %s not eligible for completion yet", self._id)

    def __str__(self) -> str:
        follows = self._precedent.name if self._precedent is not None else ''
        return (f"ID: {self._id},\n"
                f"Name: {self.name},\n"
                f"CreationDate: {self._creation_date},\n"
                f"Completed?: {'Yes' if self._completed else 'No'},\n"
                f"Late?: {'Yes' if self.late else 'No'},\n"
                f"Start date: {self._start or ''},\n"
                f"End date: {self._end or ''},\n"
                f"Follows: {follows}")

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"Task(id={self._id}, name={self.name}, kind={self.kind.value})"
