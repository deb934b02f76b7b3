"""Global test configuration and shared fixtures."""

from __future__ import annotations

import typing as t

import pytest

import fakes.defaults

pytest_plugins = ("fakes.pytest_plugin", "pytester")


@pytest.fixture(autouse=True)
def reset_pendable_defaults() -> t.Generator[None, None, None]:
    """Restore the process-wide fallback delay after each test."""
    yield
    fakes.defaults.DEFAULTS.reset()


@pytest.fixture
def short_delay() -> float:
    """Return a fallback delay short enough to keep timeout tests fast."""
    return 0.05
