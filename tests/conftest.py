# tests/conftest.py

from __future__ import annotations

import logging
from datetime import datetime, timedelta

import pytest

import models

T0 = datetime(2026, 1, 1, 12, 0)


class Clock:
    """Settable stand-in for models._now()."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock(monkeypatch: pytest.MonkeyPatch) -> Clock:
    """Freeze the task clock at T0; tests move it with clock.advance()."""
    c = Clock(T0)
    monkeypatch.setattr(models, "_now", c)
    return c


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """The CLI reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.captureWarnings(False)
