"""
Pytest fixtures for gitbot-ssh tests.

Provides:
- Event capture fixture for asserting event sequences
- write_config fixture for building ssh_config files under tmp_path
- Environment isolation so the real ~/.ssh/config is never read
"""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Generator

import pytest

if TYPE_CHECKING:
    from gitbot_ssh.events import EventCollector


@pytest.fixture
def event_collector() -> Generator["EventCollector", None, None]:
    """
    Fixture for capturing and asserting event sequences.

    Usage:
        def test_example(event_collector):
            emitter = EventEmitter(collector=event_collector)
            resolver = CredentialResolver(emitter=emitter)
            ...
            assert event_collector.events[0].event_type == "RESOLVE"
    """
    from gitbot_ssh.events import EventCollector

    collector = EventCollector()
    yield collector
    collector.clear()


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str, str], Path]:
    """
    Write a dedented ssh_config file relative to tmp_path.

    Usage:
        path = write_config("config", '''
            Host *
                User git
        ''')
    """
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"))
        return path

    return _write


@pytest.fixture
def fake_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at an empty directory so ~ expands under tmp_path."""
    home = tmp_path / "home"
    (home / ".ssh").mkdir(parents=True)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home
