"""Persistence helpers (load/save) for a TaskRecord.

The file is a JSON array of task objects (see record.py for the keys).
Reads and writes are whole-file and blocking; nothing is locked, so only
one process should own a tasks file at a time.
"""
import json
import logging
import os
from pathlib import Path
from typing import Union

from errors import DeserializationError
from record import TaskRecord

logger = logging.getLogger(__name__)

DEFAULT_TASKS_FILE = Path(__file__).parent.parent / 'data' / 'tasks.json'

PathLike = Union[str, Path]


def tasks_file() -> Path:
    """Tasks file location: ATOR_TASKS_FILE if set, else data/tasks.json."""
    override = os.environ.get('ATOR_TASKS_FILE')
    return Path(override) if override else DEFAULT_TASKS_FILE


class Storage:
    @staticmethod
    def load_record(path: PathLike) -> TaskRecord:
        """Load a TaskRecord from a JSON file.

        Missing file -> empty record. Malformed content raises
        DeserializationError; other I/O errors propagate unchanged.
        """
        path = Path(path)
        if not path.exists():
            logger.debug("No tasks file at %s, starting empty", path)
            return TaskRecord()
        raw = path.read_bytes()
        try:
            data = json.loads(raw.decode('utf-8'))
        except UnicodeDecodeError as exc:
            raise DeserializationError(f"{path} is not valid UTF-8: {exc.reason} at byte {exc.start}") from exc
        except json.JSONDecodeError as exc:
            raise DeserializationError(f"{path} is not valid JSON: {exc.msg} at line {exc.lineno}") from exc
        record = TaskRecord.from_list(data)
        logger.debug("Loaded %d tasks from %s", len(record), path)
        return record

    @staticmethod
    def save_record(record: TaskRecord, path: PathLike) -> None:
        """Persist a record to disk (pretty-printed), overwriting the file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(record.to_list(), f, indent=4)
        logger.debug("Saved %d tasks to %s", len(record), path)

