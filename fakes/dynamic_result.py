"""Ordered, replaceable stub lists consumed one call at a time."""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import threading
import typing as t

from typing_extensions import TypeVar

from .errors import StubListEmptyError
from .pendable import Pendable

logger = logging.getLogger(__name__)

ArgsT = TypeVar("ArgsT", default=tuple[()])
ReturnT = TypeVar("ReturnT", default=None)


class StubKind(enum.StrEnum):
    """Variants of :class:`Stub`."""

    VALUE = "value"
    PENDABLE = "pendable"
    CLOSURE = "closure"


@dc.dataclass(frozen=True, slots=True)
class Stub(t.Generic[ArgsT, ReturnT]):
    """A canned response: a literal value or a function of the call arguments.

    Build stubs with :meth:`value` and :meth:`closure`. Literal
    :class:`~fakes.pendable.Pendable` values are tagged ``PENDABLE`` so they
    can be resolved with their fallback when the stub is discarded.
    """

    kind: StubKind
    payload: t.Any

    @classmethod
    def value(cls, value: ReturnT) -> Stub[ArgsT, ReturnT]:
        """Return a stub that always produces *value*."""
        kind = StubKind.PENDABLE if isinstance(value, Pendable) else StubKind.VALUE
        return cls(kind, value)

    @classmethod
    def closure(cls, func: t.Callable[[ArgsT], ReturnT]) -> Stub[ArgsT, ReturnT]:
        """Return a stub that calls ``func(arguments)`` on every use."""
        if not callable(func):
            msg = f"closure stubs require a callable, got {func!r}"
            raise TypeError(msg)
        return cls(StubKind.CLOSURE, func)

    def __call__(self, arguments: ArgsT) -> ReturnT:
        """Produce the response for *arguments*."""
        if self.kind is StubKind.CLOSURE:
            return self.payload(arguments)
        return self.payload

    def resolve_with_fallback(self) -> None:
        """Force a pendable literal to finish; other kinds are left alone."""
        if self.kind is StubKind.PENDABLE:
            self.payload.resolve_with_fallback()


def _require_stubs(stubs: t.Sequence[Stub[t.Any, t.Any]], action: str) -> None:
    if not stubs:
        msg = f"{action} requires at least one value or stub"
        raise ValueError(msg)


class DynamicResult(t.Generic[ArgsT, ReturnT]):
    """Produce responses from an ordered list of stubs.

    Each call consumes the first stub. Once only one stub is left it is reused
    for every later call, so ``DynamicResult(1, 2, 3)`` called five times
    returns ``1, 2, 3, 3, 3``.

    ``DynamicResult`` is the engine behind :class:`~fakes.spy.Spy` but can be
    composed into other fakes directly.
    """

    def __init__(self, *values: ReturnT) -> None:
        stubs = [Stub.value(value) for value in values]
        _require_stubs(stubs, "DynamicResult")
        self._setup(stubs)

    def _setup(self, stubs: list[Stub[ArgsT, ReturnT]]) -> None:
        self._lock = threading.Lock()
        self._stubs = stubs
        self._history: list[ReturnT] = []

    @classmethod
    def from_closure(
        cls, func: t.Callable[[ArgsT], ReturnT]
    ) -> DynamicResult[ArgsT, ReturnT]:
        """Create a result that calls *func* with the arguments of every call."""
        return cls.from_stubs(Stub.closure(func))

    @classmethod
    def from_stubs(
        cls, *stubs: Stub[ArgsT, ReturnT]
    ) -> DynamicResult[ArgsT, ReturnT]:
        """Create a result that works through *stubs* in order."""
        _require_stubs(stubs, "DynamicResult")
        result = cls.__new__(cls)
        result._setup(list(stubs))
        return result

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def stubs(self) -> list[Stub[ArgsT, ReturnT]]:
        """Return a copy of the stubs still queued."""
        with self._lock:
            return list(self._stubs)

    @property
    def history(self) -> list[ReturnT]:
        """Return every value produced so far, oldest first."""
        with self._lock:
            return list(self._history)

    # ------------------------------------------------------------------
    # Calling
    # ------------------------------------------------------------------
    def call(self, arguments: ArgsT = ()) -> ReturnT:  # type: ignore[assignment]
        """Consume the next stub and return what it produces for *arguments*."""
        return self.evaluate(self.next_stub(), arguments)

    def next_stub(self) -> Stub[ArgsT, ReturnT]:
        """Consume and return the next stub (the last one is never removed)."""
        with self._lock:
            if not self._stubs:
                msg = (
                    "DynamicResult has no stubs; this is a bug in fakes, "
                    "stub lists are never meant to be empty"
                )
                raise StubListEmptyError(msg)
            if len(self._stubs) > 1:
                return self._stubs.pop(0)
            return self._stubs[0]

    def evaluate(self, stub: Stub[ArgsT, ReturnT], arguments: ArgsT) -> ReturnT:
        """Run *stub* for *arguments* and remember the produced value.

        Closures run without holding the lock so they may call back into
        the fake that owns this result.
        """
        value = stub(arguments)
        with self._lock:
            self._history.append(value)
        return value

    # ------------------------------------------------------------------
    # Replacing
    # ------------------------------------------------------------------
    def replace(self, *values: ReturnT) -> None:
        """Replace every stub with the literal *values*."""
        self.replace_stubs(*(Stub.value(value) for value in values))

    def replace_closure(self, func: t.Callable[[ArgsT], ReturnT]) -> None:
        """Replace every stub with a single closure."""
        self.replace_stubs(Stub.closure(func))

    def replace_stubs(self, *stubs: Stub[ArgsT, ReturnT]) -> None:
        """Replace every stub with *stubs*.

        Pendable literals in the discarded list are resolved with their
        fallback first, so callers waiting on them are released.
        """
        _require_stubs(stubs, "replace")
        with self._lock:
            discarded = [s for s in self._stubs if s.kind is StubKind.PENDABLE]
            if discarded:
                logger.debug(
                    "Resolving %d pending stub(s) before replacement", len(discarded)
                )
            for stub in discarded:
                stub.resolve_with_fallback()
            self._stubs = list(stubs)

    # ------------------------------------------------------------------
    # Appending
    # ------------------------------------------------------------------
    def append(self, *values: ReturnT) -> None:
        """Queue the literal *values* after the current stubs."""
        self.append_stubs(*(Stub.value(value) for value in values))

    def append_closure(self, func: t.Callable[[ArgsT], ReturnT]) -> None:
        """Queue a closure after the current stubs."""
        self.append_stubs(Stub.closure(func))

    def append_stubs(self, *stubs: Stub[ArgsT, ReturnT]) -> None:
        """Queue *stubs* after the current stubs without resolving anything."""
        _require_stubs(stubs, "append")
        with self._lock:
            self._stubs.extend(stubs)

    # ------------------------------------------------------------------
    # Pendable bookkeeping
    # ------------------------------------------------------------------
    def pendables(self, *, include_next: bool = True) -> list[Pendable[t.Any]]:
        """Return distinct pendables produced so far, plus the next queued one.

        Parameters
        ----------
        include_next:
            Also include the pendable the next call would return, when the
            head stub is a pendable literal.
        """
        with self._lock:
            candidates: list[object] = list(self._history)
            if include_next and self._stubs[0].kind is StubKind.PENDABLE:
                candidates.append(self._stubs[0].payload)
        seen: set[int] = set()
        found: list[Pendable[t.Any]] = []
        for candidate in candidates:
            if isinstance(candidate, Pendable) and id(candidate) not in seen:
                seen.add(id(candidate))
                found.append(candidate)
        return found

    def resolve_pending(self) -> None:
        """Resolve every held or produced pendable with its fallback."""
        with self._lock:
            queued = [s.payload for s in self._stubs if s.kind is StubKind.PENDABLE]
        for pendable in [*queued, *self.pendables(include_next=False)]:
            pendable.resolve_with_fallback()

    def __repr__(self) -> str:
        with self._lock:
            kinds = ", ".join(stub.kind.value for stub in self._stubs)
        return f"DynamicResult([{kinds}])"


__all__ = ["DynamicResult", "Stub", "StubKind"]
