"""Shared fixtures."""

import pytest

from popvars import _logging


@pytest.fixture(autouse=True)
def fresh_logger(monkeypatch):
    """Build the shared logger inside each test so it writes to that test's stderr."""
    monkeypatch.setattr(_logging, "_logger", None)
    monkeypatch.delenv("POPVARS_DEBUG", raising=False)
    monkeypatch.delenv("POPVARS_LOG_LEVEL", raising=False)
