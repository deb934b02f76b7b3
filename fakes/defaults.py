"""Process-wide defaults for :class:`~fakes.pendable.Pendable`."""

from __future__ import annotations

import contextlib
import logging
import os
import threading
import typing as t

from ._validators import parse_fallback_delay, validate_fallback_delay

logger = logging.getLogger(__name__)

FAKES_PENDABLE_DELAY_ENV = "FAKES_PENDABLE_DELAY"
DEFAULT_FALLBACK_DELAY: t.Final[float] = 1.0


def _initial_delay() -> float:
    """Return the delay from :data:`FAKES_PENDABLE_DELAY_ENV`, if set."""
    raw = os.environ.get(FAKES_PENDABLE_DELAY_ENV)
    if raw is None or not raw.strip():
        return DEFAULT_FALLBACK_DELAY
    return parse_fallback_delay(raw, name=FAKES_PENDABLE_DELAY_ENV)


class PendableDefaults:
    """Thread-safe holder for the default fallback delay.

    Every pending call that is not given an explicit ``fallback_delay`` reads
    :attr:`delay` at call time. Tests typically shorten it so that forgotten
    stubs only slow the suite down a little.

    Parameters
    ----------
    delay:
        Initial delay in seconds. When omitted, the value of the
        ``FAKES_PENDABLE_DELAY`` environment variable is used, falling back to
        one second.
    """

    def __init__(self, delay: float | None = None) -> None:
        self._lock = threading.Lock()
        self._delay = (
            _initial_delay() if delay is None else validate_fallback_delay(delay)
        )

    @property
    def delay(self) -> float:
        """Return the current default delay in seconds."""
        with self._lock:
            return self._delay

    @delay.setter
    def delay(self, value: float) -> None:
        value = validate_fallback_delay(value, name="delay")
        with self._lock:
            previous, self._delay = self._delay, value
        logger.debug(
            "Default fallback delay changed from %.3fs to %.3fs", previous, value
        )

    def swap(self, value: float) -> float:
        """Set the delay to *value* and return the previous one atomically."""
        value = validate_fallback_delay(value, name="delay")
        with self._lock:
            previous, self._delay = self._delay, value
        return previous

    def reset(self) -> None:
        """Restore the delay from the environment (or the built-in default)."""
        self.delay = _initial_delay()

    def __repr__(self) -> str:
        return f"PendableDefaults(delay={self.delay!r})"


DEFAULTS = PendableDefaults()


@contextlib.contextmanager
def temporary_delay(
    seconds: float, *, defaults: PendableDefaults | None = None
) -> t.Iterator[PendableDefaults]:
    """Temporarily replace the default fallback delay.

    Nested uses restore correctly because each context remembers the value it
    replaced.
    """
    target = DEFAULTS if defaults is None else defaults
    previous = target.swap(seconds)
    logger.debug("Temporarily using fallback delay %.3fs", target.delay)
    try:
        yield target
    finally:
        target.swap(previous)


__all__ = [
    "DEFAULTS",
    "DEFAULT_FALLBACK_DELAY",
    "FAKES_PENDABLE_DELAY_ENV",
    "PendableDefaults",
    "temporary_delay",
]
