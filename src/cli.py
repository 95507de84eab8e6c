"""Command-line interface for the task record.

Every invocation loads the tasks file, runs one command and, when the
command changed something, writes the file back. Running with no command
prints the task list.
"""
import functools
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import click

from errors import TaskError
from logging_setup import level_from_env, setup_logging
from models import Task, TaskKind
from record import TaskRecord
from storage import Storage, tasks_file
from theme import color, BOLD, EMPTY_COLOR, HEADER_COLOR, ID_COLOR, STATE_COLOR

logger = logging.getLogger(__name__)

DATE_FORMATS = ['%Y-%m-%d', '%Y-%m-%dT%H:%M', '%Y-%m-%d %H:%M', '%Y-%m-%d %H:%M:%S']
WHEN = click.DateTime(formats=DATE_FORMATS)

COLUMNS = ('#', 'ID', 'KIND', 'NAME', 'START', 'END', 'STATE')
MIN_NAME_WIDTH = 8
SEP = '  '


class Session:
    """The loaded record plus the file it came from."""

    def __init__(self, path: Path):
        self.path = path
        self.record: TaskRecord = Storage.load_record(path)

    def save(self) -> None:
        Storage.save_record(self.record, self.path)

    def task(self, task_id: int) -> Task:
        task = self.record.find(task_id)
        if task is None:
            raise click.ClickException(f"Task id {task_id} not found.")
        return task


pass_session = click.make_pass_decorator(Session)


def _reports_task_errors(func: Callable) -> Callable:
    """Turn core errors into click errors (message on stderr, exit code 1)."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TaskError as exc:
            logger.debug("Command failed", exc_info=True)
            raise click.ClickException(str(exc)) from exc
    return wrapper


# -------------------- rendering --------------------
def state_of(task: Task) -> str:
    if task.completed:
        return 'done'
    if task.late:
        return 'late'
    return 'open'


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime('%Y-%m-%d %H:%M') if value is not None else '-'


def _kind_label(task: Task) -> str:
    if task.kind is TaskKind.FOLLOWUP:
        return f"after {task.precedent_id}"
    return task.kind.value


def _rows(record: TaskRecord) -> List[List[str]]:
    return [[str(pos), str(task.id), _kind_label(task), task.name or '<untitled>',
             _fmt_date(task.start), _fmt_date(task.end), state_of(task)]
            for pos, task in enumerate(record)]


def _fit_name_width(widths: List[int], term_width: int) -> None:
    """Shrink the NAME column (in place) so a row fits the terminal."""
    name_col = COLUMNS.index('NAME')
    total = sum(widths) + len(SEP) * (len(widths) - 1)
    overflow = total - term_width
    if overflow > 0:
        widths[name_col] = max(MIN_NAME_WIDTH, widths[name_col] - overflow)


def _clip(text: str, width: int) -> str:
    if len(text) <= width:
        return text.ljust(width)
    return text[:width - 1] + '…'


def render_table(record: TaskRecord) -> List[str]:
    """Lines of the task table, colored by task state."""
    if not len(record):
        return [color('(no tasks)', EMPTY_COLOR)]
    rows = _rows(record)
    widths = [max(len(COLUMNS[i]), *(len(r[i]) for r in rows)) for i in range(len(COLUMNS))]
    _fit_name_width(widths, shutil.get_terminal_size((120, 30)).columns)

    lines = [SEP.join(color(_clip(h, w), HEADER_COLOR, BOLD) for h, w in zip(COLUMNS, widths)),
             SEP.join(color('-' * w, HEADER_COLOR) for w in widths)]
    for row in rows:
        state_col = STATE_COLOR[row[-1]]
        cells = []
        for i, (text, w) in enumerate(zip(row, widths)):
            cells.append(color(_clip(text, w), ID_COLOR if i < 2 else state_col))
        lines.append(SEP.join(cells).rstrip())
    return lines


# -------------------- commands --------------------
@click.group(invoke_without_command=True)
@click.option('--file', 'file_path', type=click.Path(dir_okay=False, path_type=Path),
              envvar='ATOR_TASKS_FILE', help='Tasks file (default: data/tasks.json).')
@click.option('--log-file', type=click.Path(dir_okay=False, path_type=Path),
              envvar='ATOR_LOG_FILE', help='Also write debug logs to this file.')
@click.option('-v', '--verbose', is_flag=True, help='Log debug output to stderr.')
@click.pass_context
def cli(ctx: click.Context, file_path: Optional[Path], log_file: Optional[Path], verbose: bool) -> None:
    """Track interval, timestamp, due-date and followup tasks."""
    setup_logging(logging.DEBUG if verbose else level_from_env(), log_file)
    path = file_path or tasks_file()
    try:
        ctx.obj = Session(path)
    except TaskError as exc:
        raise click.ClickException(f"Cannot load {path}: {exc}") from exc
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_tasks)


@cli.command('list')
@pass_session
def list_tasks(session: Session) -> None:
    """Show all tasks in record order."""
    for line in render_table(session.record):
        click.echo(line)


@cli.command()
@click.argument('task_id', type=int)
@pass_session
def show(session: Session, task_id: int) -> None:
    """Show every field of one task."""
    click.echo(str(session.task(task_id)))


@cli.group()
def add() -> None:
    """Add a task of the given kind."""


@add.command('interval')
@click.argument('name')
@click.argument('start', type=WHEN)
@click.argument('end', type=WHEN)
@pass_session
@_reports_task_errors
def add_interval(session: Session, name: str, start: datetime, end: datetime) -> None:
    """Task running from START to END."""
    task = session.record.add_interval(name, start, end)
    session.save()
    click.echo(f"Added task {task.id}.")


@add.command('timestamp')
@click.argument('name')
@click.argument('start', type=WHEN)
@pass_session
@_reports_task_errors
def add_timestamp(session: Session, name: str, start: datetime) -> None:
    """Task that can be done once START has passed."""
    task = session.record.add_timestamp(name, start)
    session.save()
    click.echo(f"Added task {task.id}.")


@add.command('due')
@click.argument('name')
@click.argument('end', type=WHEN)
@pass_session
@_reports_task_errors
def add_due(session: Session, name: str, end: datetime) -> None:
    """Task due by END."""
    task = session.record.add_due(name, end)
    session.save()
    click.echo(f"Added task {task.id}.")


@add.command('followup')
@click.argument('name')
@click.argument('precedent_index', type=int)
@pass_session
@_reports_task_errors
def add_followup(session: Session, name: str, precedent_index: int) -> None:
    """Task following the one at list position PRECEDENT_INDEX (the # column)."""
    task = session.record.add_procedural(name, precedent_index)
    session.save()
    click.echo(f"Added task {task.id}, following task {task.precedent_id}.")


@cli.command()
@click.argument('task_id', type=int)
@pass_session
def complete(session: Session, task_id: int) -> None:
    """Complete a task whose start has passed or whose precedent is done."""
    task = session.task(task_id)
    if task.completed:
        click.echo(f"Task {task_id} already completed.")
        return
    task.complete()
    if not task.completed:
        click.echo(f"Task {task_id} cannot be completed yet.")
        return
    session.save()
    click.echo(f"Task {task_id} completed.")


@cli.command()
@click.argument('task_id', type=int)
@click.argument('name', nargs=-1, required=True)
@pass_session
def rename(session: Session, task_id: int, name: tuple) -> None:
    """Give a task a new NAME."""
    session.task(task_id).name = ' '.join(name)
    session.save()


def _date_command(field: str) -> Callable:
    @click.argument('task_id', type=int)
    @click.argument('when', type=WHEN, required=False)
    @click.option('--clear', is_flag=True, help=f'Remove the {field} date.')
    @pass_session
    @_reports_task_errors
    def command(session: Session, task_id: int, when: Optional[datetime], clear: bool) -> None:
        if clear == (when is not None):
            raise click.UsageError(f"Give either a new {field} date or --clear.")
        task = session.task(task_id)
        setattr(task, field, None if clear else when)
        session.save()
        click.echo(f"Task {task_id} kind: {task.kind.value}.")
    command.__doc__ = f"Set or clear the {field} date of a task."
    return command


cli.command('set-start')(_date_command('start'))
cli.command('set-end')(_date_command('end'))
