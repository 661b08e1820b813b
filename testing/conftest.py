"""
Pytest configuration for daylog tests.

Provides a controllable clock and a session factory. Sessions built by the
factory never install process exit hooks and are always shut down after
the test, so each test gets its own run and its own log directory.

Usage:
    pytest testing/
    pytest testing/test_lifecycle.py -k shutdown
"""

import io
from collections.abc import Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from daylog import LogSession, reset_default_session
from daylog.config import get_settings


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 5, 3, 14, 30, 15, 123456))


@pytest.fixture
def log_base(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def day_dir(log_base: Path) -> Path:
    """Daily directory matching the clock fixture's date."""
    return log_base / "2025-05-03"


@pytest.fixture
def console() -> tuple[io.StringIO, io.StringIO]:
    return io.StringIO(), io.StringIO()


@pytest.fixture
def make_session(log_base, clock, console) -> Generator:
    """Factory for sessions writing under log_base with captured console."""
    sessions: list[LogSession] = []
    stdout, stderr = console

    def factory(**kwargs) -> LogSession:
        kwargs.setdefault("run_name", "test-run")
        kwargs.setdefault("base_dir", log_base)
        kwargs.setdefault("min_level", "DEBUG")
        kwargs.setdefault("install_exit_hooks", False)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("stdout", stdout)
        kwargs.setdefault("stderr", stderr)
        session = LogSession(**kwargs)
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        session.shutdown()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path) -> Generator[None, None, None]:
    """Point the default session at tmp_path and reset cached settings."""
    monkeypatch.setenv("DAYLOG_BASE_DIR", str(tmp_path / "default-logs"))
    monkeypatch.setenv("DAYLOG_INSTALL_EXIT_HOOKS", "false")
    monkeypatch.delenv("DAYLOG_MIN_LEVEL", raising=False)
    monkeypatch.delenv("DAYLOG_RUN_NAME", raising=False)
    get_settings.cache_clear()
    yield
    reset_default_session()
    get_settings.cache_clear()
