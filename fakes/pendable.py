"""Single-resolution, awaitable result cells with a fallback-after-delay policy.

A :class:`Pendable` models an asynchronous call that has not finished yet. A
test hands one to the code under test (usually through a
:class:`~fakes.spy.PendableSpy`), and later resolves it to let the caller
continue.

Tests frequently end while a call is still pending. If those callers were
left blocked forever the suite would slowly grind to a halt, so every wait
races a timer: when ``fallback_delay`` seconds pass without a resolution the
cell resolves itself with its fallback value. :meth:`Pendable.resolve_with_fallback`
forces the same outcome immediately.

Callers may await the cell from any event loop (:meth:`Pendable.call`) or
block a plain thread on it (:meth:`Pendable.wait`). Resolution is safe from
any thread.
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import enum
import logging
import threading
import typing as t

from typing_extensions import TypeVar

from ._validators import validate_fallback_delay
from .defaults import DEFAULTS, PendableDefaults
from .errors import PendableInProgressError
from .result import Failure, Success

logger = logging.getLogger(__name__)

ValueT = TypeVar("ValueT", default=None)
SuccessT = TypeVar("SuccessT", default=None)


class _State(enum.Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


class ResolvableWithFallback(t.Protocol):
    """Something that can be forced to finish with its fallback value."""

    def resolve_with_fallback(self) -> None:
        """Resolve with the fallback value unless already resolved."""
        ...


class _Waiter(t.Protocol):
    def notify(self, value: t.Any) -> None: ...  # noqa: ANN401


def _set_result_if_pending(future: asyncio.Future[t.Any], value: object) -> None:
    if not future.done():
        future.set_result(value)


@dc.dataclass(slots=True, eq=False)
class _AsyncWaiter:
    """A coroutine suspended in :meth:`Pendable.call` on ``loop``."""

    loop: asyncio.AbstractEventLoop
    future: asyncio.Future[t.Any]

    def notify(self, value: object) -> None:
        try:
            self.loop.call_soon_threadsafe(_set_result_if_pending, self.future, value)
        except RuntimeError:
            # The loop has been closed; nobody is left awaiting the future.
            logger.debug("Skipping notification for closed loop %r", self.loop)


@dc.dataclass(slots=True, eq=False)
class _ThreadWaiter:
    """A thread blocked in :meth:`Pendable.wait`."""

    event: threading.Event = dc.field(default_factory=threading.Event)
    value: t.Any = None

    def notify(self, value: object) -> None:
        self.value = value
        self.event.set()


def _notify(waiters: list[_Waiter], value: object) -> None:
    for waiter in waiters:
        waiter.notify(value)


class Pendable(t.Generic[ValueT]):
    """A thread-safe, awaitable cell that is either pending or resolved.

    Parameters
    ----------
    fallback_value:
        Value handed to every caller when the cell is not resolved before
        the fallback delay elapses.
    defaults:
        Source of the default fallback delay. When omitted the process-wide
        :data:`fakes.defaults.DEFAULTS` is used.

    Notes
    -----
    Resolving an already resolved cell is allowed. The new value replaces the
    old one for every later caller; callers that were already woken keep the
    value they received.
    """

    def __init__(
        self, fallback_value: ValueT, *, defaults: PendableDefaults | None = None
    ) -> None:
        self._lock = threading.Lock()
        self._state = _State.PENDING
        self._fallback_value = fallback_value
        self._value: ValueT = fallback_value
        self._waiters: list[_Waiter] = []
        self._defaults = defaults

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def pending(
        cls,
        fallback: ValueT = None,  # type: ignore[assignment]
        *,
        defaults: PendableDefaults | None = None,
    ) -> Pendable[ValueT]:
        """Return a pending cell that falls back to *fallback*."""
        return cls(fallback, defaults=defaults)

    @classmethod
    def finished(
        cls,
        value: ValueT = None,  # type: ignore[assignment]
        *,
        defaults: PendableDefaults | None = None,
    ) -> Pendable[ValueT]:
        """Return a cell already resolved with *value*."""
        pendable = cls(value, defaults=defaults)
        pendable.resolve(value)
        return pendable

    @classmethod
    def pending_failure(
        cls,
        error: BaseException | None = None,
        *,
        defaults: PendableDefaults | None = None,
    ) -> Pendable[Success[t.Any] | Failure]:
        """Return a pending cell whose fallback is a failure.

        The fallback error defaults to :class:`~fakes.errors.PendableInProgressError`
        so a forgotten resolution is distinguishable from a stubbed failure.
        """
        fallback = Failure(error if error is not None else PendableInProgressError())
        return Pendable(fallback, defaults=defaults)

    def __del__(self) -> None:
        # call() and wait() hold a reference while waiting; this only
        # catches waiters queued without one.
        if getattr(self, "_waiters", None):
            self.resolve_with_fallback()

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def fallback_value(self) -> ValueT:
        """Return the value used when the cell resolves through its fallback."""
        return self._fallback_value

    @property
    def is_pending(self) -> bool:
        with self._lock:
            return self._state is _State.PENDING

    @property
    def is_resolved(self) -> bool:
        with self._lock:
            return self._state is _State.RESOLVED

    @property
    def value(self) -> ValueT:
        """Return the resolved value, or the fallback while pending."""
        with self._lock:
            return self._current_value()

    def _current_value(self) -> ValueT:
        if self._state is _State.RESOLVED:
            return self._value
        return self._fallback_value

    def _fallback_delay(self, fallback_delay: float | None) -> float:
        if fallback_delay is not None:
            return validate_fallback_delay(fallback_delay)
        defaults = self._defaults if self._defaults is not None else DEFAULTS
        return defaults.delay

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def resolve(self, value: ValueT) -> None:
        """Resolve the cell with *value*, waking every queued caller."""
        self._settle(value, only_if_pending=False)

    def resolve_with_fallback(self) -> None:
        """Resolve with the fallback value; no-op when already resolved."""
        self._settle(self._fallback_value, only_if_pending=True)

    def reset(self) -> None:
        """Wake queued callers with the current value and become pending again."""
        with self._lock:
            waiters, self._waiters = self._waiters, []
            current = self._current_value()
            self._state = _State.PENDING
        _notify(waiters, current)

    def _settle(self, value: ValueT, *, only_if_pending: bool) -> bool:
        """Transition to resolved and notify waiters outside the lock."""
        with self._lock:
            if only_if_pending and self._state is _State.RESOLVED:
                return False
            self._state = _State.RESOLVED
            self._value = value
            waiters, self._waiters = self._waiters, []
        _notify(waiters, value)
        return True

    def _discard(self, waiter: _Waiter) -> None:
        with self._lock:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------
    async def call(self, fallback_delay: float | None = None) -> ValueT:
        """Return the value, waiting up to *fallback_delay* seconds for it.

        When the delay elapses first, the cell is resolved with its fallback
        and the fallback is returned. Resolved cells return immediately.
        """
        delay = self._fallback_delay(fallback_delay)
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._state is _State.RESOLVED:
                return self._value
            waiter = _AsyncWaiter(loop, loop.create_future())
            self._waiters.append(waiter)

        try:
            return await asyncio.wait_for(asyncio.shield(waiter.future), delay)
        except TimeoutError:
            if self._settle(self._fallback_value, only_if_pending=True):
                logger.debug(
                    "Pendable %r resolved with its fallback after %.3fs", self, delay
                )
            # Every queued waiter is notified by whichever resolution won.
            return await waiter.future
        except asyncio.CancelledError:
            self._discard(waiter)
            raise

    def wait(self, fallback_delay: float | None = None) -> ValueT:
        """Block the calling thread until the value is available.

        This is the thread-based counterpart of :meth:`call`. Do not use it
        from a coroutine running on the event loop that is expected to
        resolve the cell.
        """
        delay = self._fallback_delay(fallback_delay)
        waiter = _ThreadWaiter()
        with self._lock:
            if self._state is _State.RESOLVED:
                return self._value
            self._waiters.append(waiter)

        if not waiter.event.wait(delay):
            if self._settle(self._fallback_value, only_if_pending=True):
                logger.debug(
                    "Pendable %r resolved with its fallback after %.3fs", self, delay
                )
            waiter.event.wait()
        return waiter.value

    async def unwrap(self, fallback_delay: float | None = None) -> t.Any:  # noqa: ANN401
        """Await a result-valued cell and return its success or raise its error."""
        return _unwrap_result(await self.call(fallback_delay))

    def wait_unwrap(self, fallback_delay: float | None = None) -> t.Any:  # noqa: ANN401
        """Blocking counterpart of :meth:`unwrap`."""
        return _unwrap_result(self.wait(fallback_delay))

    def __repr__(self) -> str:
        with self._lock:
            state = self._state.value
            value = self._current_value()
        if state == _State.PENDING.value:
            return f"Pendable(pending, fallback={value!r})"
        return f"Pendable(resolved={value!r})"


def _unwrap_result(value: object) -> t.Any:  # noqa: ANN401
    if not isinstance(value, Success | Failure):
        msg = f"expected a Success or Failure value, got {value!r}"
        raise TypeError(msg)
    return value.get()


ThrowingPendable: t.TypeAlias = Pendable[Success[SuccessT] | Failure]


__all__ = ["Pendable", "ResolvableWithFallback", "ThrowingPendable"]
