"""Pytest plugin controlling the default pendable fallback delay."""

from __future__ import annotations

import logging
import typing as t

import pytest

from ._validators import parse_fallback_delay, validate_fallback_delay
from .defaults import DEFAULTS, PendableDefaults, temporary_delay

logger = logging.getLogger(__name__)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("fakes")
    group.addoption(
        "--fakes-pendable-delay",
        action="store",
        dest="fakes_pendable_delay",
        default=None,
        help=(
            "Seconds a pending spy call waits before returning its fallback. "
            "Overrides the pytest.ini setting."
        ),
    )
    parser.addini(
        "fakes_pendable_delay",
        "Seconds a pending spy call waits before returning its fallback.",
        default="",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register plugin-specific markers."""
    config.addinivalue_line(
        "markers",
        (
            "fakes(pendable_delay: float): override the pendable fallback "
            "delay for a single test."
        ),
    )


def _get_marker_delay(request: pytest.FixtureRequest) -> float | None:
    """Return the marker override for the delay if present."""
    marker = request.node.get_closest_marker("fakes")
    if marker is None or "pendable_delay" not in marker.kwargs:
        return None
    return validate_fallback_delay(
        marker.kwargs["pendable_delay"], name="fakes(pendable_delay)"
    )


def _configured_delay(request: pytest.FixtureRequest) -> float | None:
    """Return the delay requested for this test, or ``None`` to leave it alone."""
    # Priority order: marker > CLI option > INI setting

    marker_value = _get_marker_delay(request)
    if marker_value is not None:
        return marker_value

    config = request.config
    cli_value = config.getoption("fakes_pendable_delay", default=None)
    if cli_value is not None:
        return parse_fallback_delay(str(cli_value), name="--fakes-pendable-delay")

    ini_value = str(config.getini("fakes_pendable_delay")).strip()
    if ini_value:
        return parse_fallback_delay(ini_value, name="fakes_pendable_delay")
    return None


@pytest.fixture(autouse=True)
def pendable_delay(
    request: pytest.FixtureRequest,
) -> t.Generator[PendableDefaults, None, None]:
    """Apply the configured fallback delay for the duration of a test.

    Yields the process-wide :class:`~fakes.defaults.PendableDefaults`. When no
    marker, option or ini value is set the delay is left unchanged.
    """
    delay = _configured_delay(request)
    if delay is None:
        yield DEFAULTS
        return
    logger.debug("Using pendable fallback delay %.3fs for %s", delay, request.node)
    with temporary_delay(delay) as defaults:
        yield defaults
