"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import logging

import pytest

from tests.helpers.supervisor_fakes import FakeBackendProcess
from video_agent.config import runtime
from video_agent.process_supervisor_helpers import process_terminator


@pytest.fixture(autouse=True)
def isolated_config_defaults():
    """Keep developer .env / JSON defaults out of the tests."""
    runtime._DEFAULT_VALUES = {}
    yield
    runtime._DEFAULT_VALUES = None


@pytest.fixture
def no_descendants(monkeypatch):
    """Fake processes have no real children for psutil to find."""
    monkeypatch.setattr(process_terminator, "collect_descendants", lambda pid: [])


@pytest.fixture
def fake_process():
    return FakeBackendProcess()


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
