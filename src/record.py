"""TaskRecord: the ordered task collection, ID management and value form.

Tasks are kept in insertion order and addressed by position. IDs are
unique but may have gaps; a new ID is always max(existing) + 1 (0 for an
empty record), recomputed on each add rather than cached.

The value form (to_list/from_list) is a list of plain dicts using the
persisted key names. A followup's precedent travels as PrecedentTaskID and
is resolved by ID against the tasks already rebuilt, so a precedent must
appear before its followups.
"""
from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from errors import DeserializationError, InvalidArgumentError, InvalidStateError, TaskIndexError
from models import Task

logger = logging.getLogger(__name__)

TaskEntry = Dict[str, Any]


class TaskRecord:
    """Ordered collection of tasks.

    Not thread-safe: two adds racing would compute the same ID. Iteration is
    a live view over the underlying list, so do not add while iterating.
    """

    def __init__(self) -> None:
        self._tasks: List[Task] = []

    # -------------------- id management --------------------
    def next_id(self) -> int:
        if not self._tasks:
            return 0
        return max(t.id for t in self._tasks) + 1

    # -------------------- queries --------------------
    def __getitem__(self, index: int) -> Task:
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError(f"Task index must be an int, not {type(index).__name__}")
        if index < 0 or index >= len(self._tasks):
            raise TaskIndexError(f"No task at position {index} (record holds {len(self._tasks)})")
        return self._tasks[index]

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def find(self, task_id: int) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    # -------------------- task operations --------------------
    def add_task(self, task: Task) -> Task:
        """Append an already built task as-is (no new ID is assigned)."""
        if self.find(task.id) is not None:
            raise InvalidArgumentError(f"Task id {task.id} is already in the record")
        self._tasks.append(task)
        logger.debug("Task %s added (%s)", task.id, task.kind.value)
        return task

    def add_interval(self, name: str, start: datetime, end: datetime) -> Task:
        return self.add_task(Task.interval(start, name, end, self.next_id()))

    def add_timestamp(self, name: str, start: datetime) -> Task:
        return self.add_task(Task.timestamp(start, name, self.next_id()))

    def add_due(self, name: str, end: datetime) -> Task:
        return self.add_task(Task.due(name, end, self.next_id()))

    def add_procedural(self, name: str, precedent_index: int) -> Task:
        """Add a followup of the task at position ``precedent_index``.

        The precedent is chosen by position in the record, not by ID.
        """
        precedent = self[precedent_index]
        return self.add_task(Task.followup(name, precedent, self.next_id()))

    # -------------------- serialization --------------------
    def to_list(self) -> List[TaskEntry]:
        return [_task_to_entry(task) for task in self._tasks]

    @classmethod
    def from_list(cls, rows: Any) -> TaskRecord:
        """Rebuild a record from its value form.

        Raises DeserializationError naming the entry and field at fault.
        """
        if not isinstance(rows, list):
            raise DeserializationError(f"Expected a list of tasks, got {type(rows).__name__}")
        record = cls()
        for index, raw in enumerate(rows):
            record._tasks.append(record._entry_to_task(raw, index))
        return record

    def _entry_to_task(self, raw: Any, index: int) -> Task:
        if not isinstance(raw, dict):
            raise DeserializationError(f"Expected an object, got {type(raw).__name__}", index=index)
        name = _required(raw, 'Name', index)
        if not isinstance(name, str):
            raise DeserializationError("Expected a string", index, 'Name')
        creation_date = _parse_time(_required(raw, 'CreationDate', index), index, 'CreationDate')
        task_id = _parse_int(_required(raw, 'ID', index), index, 'ID')
        completed = _required(raw, 'Completed', index)
        if not isinstance(completed, bool):
            raise DeserializationError("Expected a boolean", index, 'Completed')
        start = _parse_optional_time(_required(raw, 'Start', index), index, 'Start')
        end = _parse_optional_time(_required(raw, 'End', index), index, 'End')

        if self.find(task_id) is not None:
            raise DeserializationError(f"Duplicate task id {task_id}", index, 'ID')

        precedent = None
        raw_precedent = raw.get('PrecedentTaskID')
        if raw_precedent is not None:
            precedent_id = _parse_int(raw_precedent, index, 'PrecedentTaskID')
            precedent = self.find(precedent_id)
            if precedent is None:
                raise DeserializationError(
                    f"Precedent task {precedent_id} is not among the tasks before it",
                    index, 'PrecedentTaskID')

        try:
            return Task.from_record(name, creation_date, task_id, completed, start, end, precedent)
        except InvalidStateError as exc:
            raise DeserializationError(str(exc), index=index) from exc


def _task_to_entry(task: Task) -> TaskEntry:
    return {
        'Name': task.name,
        'CreationDate': task.creation_date.isoformat(),
        'ID': task.id,
        'Completed': task.completed,
        'Start': task.start.isoformat() if task.start is not None else None,
        'End': task.end.isoformat() if task.end is not None else None,
        'PrecedentTaskID': task.precedent_id,
    }


def _required(raw: TaskEntry, key: str, index: int) -> Any:
    if key not in raw:
        raise DeserializationError("Missing field", index, key)
    return raw[key]


def _parse_int(value: Any, index: int, key: str) -> int:
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        raise DeserializationError("Expected an integer", index, key)
    return value


def _parse_time(value: Any, index: int, key: str) -> datetime:
    if not isinstance(value, str):
        raise DeserializationError("Expected an ISO timestamp string", index, key)
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    try:
        dt = datetime.fromisoformat(value)
    except ValueError as exc:
        raise DeserializationError(f"Invalid timestamp {value!r}", index, key) from exc
    if dt.tzinfo is not None:
        # the model works in naive local time
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def _parse_optional_time(value: Any, index: int, key: str) -> Optional[datetime]:
    if value is None:
        return None
    return _parse_time(value, index, key)

