"""Spies: call-recording test doubles that return stubbed responses.

A spy stands in for one method of a dependency. Fakes implement the
dependency's interface and forward each method to a spy::

    class FakeRecipeStore(RecipeStore):
        def __init__(self) -> None:
            self.load_spy: ThrowingSpy[str, Recipe] = ThrowingSpy(success=RECIPE)

        def load(self, name: str) -> Recipe:
            return self.load_spy(name)

A spy receives a single *arguments* value per call. Methods without
parameters call the spy with no arguments (recorded as ``()``); methods with
several parameters pass a tuple.
"""

from __future__ import annotations

import logging
import threading
import typing as t
import weakref

from typing_extensions import TypeVar

from .assertions import CallLogAssertions
from .dynamic_result import DynamicResult, Stub
from .pendable import Pendable
from .result import Failure, Success, catching

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .defaults import PendableDefaults

logger = logging.getLogger(__name__)

ArgsT = TypeVar("ArgsT", default=tuple[()])
ReturnT = TypeVar("ReturnT", default=None)
ValueT = TypeVar("ValueT", default=None)
SuccessT = TypeVar("SuccessT", default=None)
ElementT = TypeVar("ElementT")

_UNSET: t.Final = object()


def _chosen_option(**options: object) -> tuple[str, t.Any] | None:
    """Return the single option that was supplied, or ``None``."""
    chosen = [(key, value) for key, value in options.items() if value is not _UNSET]
    if len(chosen) > 1:
        names = ", ".join(key for key, _ in chosen)
        msg = f"pass at most one of: {names}"
        raise ValueError(msg)
    return chosen[0] if chosen else None


def _release_pending(result: DynamicResult[t.Any, t.Any], name: str) -> None:
    """Resolve outstanding pendables of a spy that is being collected."""
    logger.debug("Spy %r released; resolving outstanding pendables", name)
    result.resolve_pending()


class Spy(CallLogAssertions[ArgsT], t.Generic[ArgsT, ReturnT]):
    """Record every call and answer it from a :class:`DynamicResult`.

    ``Spy(1, 2, 3)`` returns ``1``, ``2`` and then ``3`` forever. ``Spy()``
    returns ``None``, which suits methods returning nothing or an optional.

    Parameters
    ----------
    *values:
        Literal responses, in order.
    name:
        Label used in assertion failure messages.
    """

    def __init__(self, *values: ReturnT, name: str = "spy") -> None:
        if not values:
            values = (None,)  # type: ignore[assignment]
        self._setup(DynamicResult(*values), name)

    def _setup(self, result: DynamicResult[ArgsT, ReturnT], name: str) -> None:
        self._lock = threading.Lock()
        self._calls: list[ArgsT] = []
        self._result = result
        self.name = name
        self._finalizer = weakref.finalize(self, _release_pending, result, name)
        self._finalizer.atexit = False

    @classmethod
    def from_closure(
        cls, func: t.Callable[[ArgsT], ReturnT], *, name: str = "spy"
    ) -> t.Self:
        """Create a spy that answers every call with ``func(arguments)``."""
        spy = cls.__new__(cls)
        spy._setup(DynamicResult.from_closure(func), name)
        return spy

    @classmethod
    def from_stubs(cls, *stubs: Stub[ArgsT, ReturnT], name: str = "spy") -> t.Self:
        """Create a spy that works through *stubs* in order."""
        spy = cls.__new__(cls)
        spy._setup(DynamicResult.from_stubs(*stubs), name)
        return spy

    # ------------------------------------------------------------------
    # Call log
    # ------------------------------------------------------------------
    @property
    def calls(self) -> list[ArgsT]:
        """Return a snapshot of the recorded arguments, oldest first."""
        with self._lock:
            return list(self._calls)

    def clear_calls(self) -> None:
        """Forget every recorded call; stubs are left untouched."""
        with self._lock:
            self._calls.clear()

    # ------------------------------------------------------------------
    # Calling
    # ------------------------------------------------------------------
    def call(self, arguments: ArgsT = ()) -> ReturnT:  # type: ignore[assignment]
        """Record *arguments* and return the raw stubbed response."""
        with self._lock:
            self._calls.append(arguments)
            stub = self._result.next_stub()
        return self._result.evaluate(stub, arguments)

    def __call__(self, arguments: ArgsT = ()) -> ReturnT:  # type: ignore[assignment]
        """Record *arguments* and return the stubbed response."""
        return self.call(arguments)

    async def record(self, sequence: t.AsyncIterable[ElementT]) -> None:
        """Record every element of *sequence* as a :class:`Success`.

        An exception raised by the sequence is recorded as a
        :class:`Failure` and ends the recording.
        """
        try:
            async for element in sequence:
                self.call(Success(element))  # type: ignore[arg-type]
        except Exception as exc:  # noqa: BLE001 - recorded as a Failure
            self.call(Failure(exc))  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Stubbing
    # ------------------------------------------------------------------
    def stub(self, *values: ReturnT) -> None:
        """Replace the stubs with *values*, resolving pending ones first."""
        with self._lock:
            self._result.replace(*values)

    def stub_closure(self, func: t.Callable[[ArgsT], ReturnT]) -> None:
        """Replace the stubs with a closure over the call arguments."""
        with self._lock:
            self._result.replace_closure(func)

    def replace(self, *stubs: Stub[ArgsT, ReturnT]) -> None:
        """Replace the stubs with *stubs*, resolving pending ones first."""
        with self._lock:
            self._result.replace_stubs(*stubs)

    def append(self, *values: ReturnT) -> None:
        """Queue *values* after the current stubs."""
        with self._lock:
            self._result.append(*values)

    def append_closure(self, func: t.Callable[[ArgsT], ReturnT]) -> None:
        """Queue a closure after the current stubs."""
        with self._lock:
            self._result.append_closure(func)

    def append_stubs(self, *stubs: Stub[ArgsT, ReturnT]) -> None:
        """Queue *stubs* after the current stubs."""
        with self._lock:
            self._result.append_stubs(*stubs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, calls={self.call_count})"


class ThrowingSpy(
    Spy[ArgsT, Success[SuccessT] | Failure], t.Generic[ArgsT, SuccessT]
):
    """A spy whose responses are :class:`Success` or :class:`Failure` values.

    Calling it returns the success value or raises the stubbed error.

    ``ThrowingSpy(success=3)`` and ``ThrowingSpy(failure=KeyError("x"))``
    cover the common cases; ``ThrowingSpy()`` succeeds with ``None``.
    """

    def __init__(
        self,
        *results: Success[SuccessT] | Failure,
        success: object = _UNSET,
        failure: BaseException | object = _UNSET,
        name: str = "throwing_spy",
    ) -> None:
        choice = _chosen_option(
            results=results or _UNSET, success=success, failure=failure
        )
        if choice is None:
            initial: tuple[Success[t.Any] | Failure, ...] = (Success(None),)
        elif choice[0] == "results":
            initial = tuple(results)
        elif choice[0] == "success":
            initial = (Success(success),)
        else:
            initial = (Failure(t.cast("BaseException", failure)),)
        self._setup(DynamicResult(*initial), name)

    @classmethod
    def from_raising(
        cls, func: t.Callable[[ArgsT], SuccessT], *, name: str = "throwing_spy"
    ) -> t.Self:
        """Create a spy that calls *func*, capturing what it raises as a failure."""
        return cls.from_closure(lambda arguments: catching(func, arguments), name=name)

    def __call__(self, arguments: ArgsT = ()) -> SuccessT:  # type: ignore[assignment]
        """Record *arguments*, then return the success or raise the failure."""
        return self.call(arguments).get()

    def stub_success(self, *values: SuccessT) -> None:
        """Stub successful responses; ``stub_success()`` succeeds with ``None``."""
        self.stub(*(Success(value) for value in (values or (None,))))

    def stub_failure(self, error: BaseException) -> None:
        """Stub a response that raises *error*."""
        self.stub(Failure(error))

    def stub_raising(self, func: t.Callable[[ArgsT], SuccessT]) -> None:
        """Stub a closure whose exceptions are raised to the caller."""
        self.stub_closure(lambda arguments: catching(func, arguments))


class _PendableSpyBase(Spy[ArgsT, Pendable[ValueT]], t.Generic[ArgsT, ValueT]):
    """Shared behaviour for spies that return :class:`Pendable` cells."""

    _defaults: PendableDefaults | None = None

    def _pending(self, fallback: ValueT) -> Pendable[ValueT]:
        return Pendable.pending(fallback, defaults=self._defaults)

    def _finished(self, value: ValueT) -> Pendable[ValueT]:
        return Pendable.finished(value, defaults=self._defaults)

    def resolve_stub(self, value: ValueT) -> None:
        """Resolve every pendable handed out so far, and the next one, with *value*.

        This unblocks code currently waiting on the spy without needing a
        handle to the cell it received.
        """
        with self._lock:
            pendables = self._result.pendables()
        for pendable in pendables:
            pendable.resolve(value)


class PendableSpy(_PendableSpyBase[ArgsT, ValueT]):
    """A spy for asynchronous calls that may stay in flight.

    ``await spy(arguments)`` records the call and waits on the stubbed
    :class:`Pendable`. Pending stubs finish when the test calls
    :meth:`resolve_stub`, or with their fallback after the fallback delay.

    ``PendableSpy()`` is pending with a ``None`` fallback;
    ``PendableSpy(pending_fallback=v)`` and ``PendableSpy(finished=v)`` cover
    the other common cases.
    """

    def __init__(
        self,
        *pendables: Pendable[ValueT],
        pending_fallback: object = _UNSET,
        finished: object = _UNSET,
        name: str = "pendable_spy",
        defaults: PendableDefaults | None = None,
    ) -> None:
        self._defaults = defaults
        choice = _chosen_option(
            pendables=pendables or _UNSET,
            pending_fallback=pending_fallback,
            finished=finished,
        )
        if choice is None:
            initial = (self._pending(None),)  # type: ignore[arg-type]
        elif choice[0] == "pendables":
            initial = tuple(pendables)
        elif choice[0] == "pending_fallback":
            initial = (self._pending(pending_fallback),)  # type: ignore[arg-type]
        else:
            initial = (self._finished(finished),)  # type: ignore[arg-type]
        self._setup(DynamicResult(*initial), name)

    def __call__(  # type: ignore[override]
        self,
        arguments: ArgsT = (),  # type: ignore[assignment]
        *,
        fallback_delay: float | None = None,
    ) -> t.Coroutine[t.Any, t.Any, ValueT]:
        """Record *arguments* and return an awaitable for the stubbed pendable.

        The call is recorded immediately; only the wait is deferred. The
        returned coroutine holds the pendable, not the spy, so dropping the
        spy still releases suspended callers.

        Parameters
        ----------
        fallback_delay:
            Seconds to wait for a pending stub before returning its fallback.
            Ignored once the pendable is resolved. Defaults to the
            process-wide default delay.
        """
        return self.call(arguments).call(fallback_delay)

    def wait(
        self,
        arguments: ArgsT = (),  # type: ignore[assignment]
        *,
        fallback_delay: float | None = None,
    ) -> ValueT:
        """Record *arguments* and block the current thread on the stubbed pendable."""
        return self.call(arguments).wait(fallback_delay)

    def stub_pending(self, fallback: ValueT = None) -> None:  # type: ignore[assignment]
        """Stub a pending cell that falls back to *fallback*."""
        self.stub(self._pending(fallback))

    def stub_finished(self, value: ValueT = None) -> None:  # type: ignore[assignment]
        """Stub a cell already resolved with *value*."""
        self.stub(self._finished(value))


class ThrowingPendableSpy(
    _PendableSpyBase[ArgsT, Success[SuccessT] | Failure], t.Generic[ArgsT, SuccessT]
):
    """A pendable spy whose cells hold :class:`Success` or :class:`Failure` values.

    Awaiting it returns the success value or raises the failure. The default
    stub is pending and falls back to
    :class:`~fakes.errors.PendableInProgressError`, so a test that forgets to
    resolve it sees a distinct error rather than a stubbed one.
    """

    def __init__(
        self,
        *,
        pending_success: object = _UNSET,
        pending_failure: BaseException | object = _UNSET,
        success: object = _UNSET,
        failure: BaseException | object = _UNSET,
        name: str = "throwing_pendable_spy",
        defaults: PendableDefaults | None = None,
    ) -> None:
        self._defaults = defaults
        choice = _chosen_option(
            pending_success=pending_success,
            pending_failure=pending_failure,
            success=success,
            failure=failure,
        )
        if choice is None:
            initial = Pendable.pending_failure(defaults=defaults)
        else:
            option, value = choice
            outcome: Success[t.Any] | Failure = (
                Success(value) if option.endswith("success") else Failure(value)
            )
            if option.startswith("pending"):
                initial = self._pending(outcome)
            else:
                initial = self._finished(outcome)
        self._setup(DynamicResult(initial), name)

    def __call__(  # type: ignore[override]
        self,
        arguments: ArgsT = (),  # type: ignore[assignment]
        *,
        fallback_delay: float | None = None,
    ) -> t.Coroutine[t.Any, t.Any, SuccessT]:
        """Record *arguments* and return an awaitable that unwraps the stubbed cell."""
        return self.call(arguments).unwrap(fallback_delay)

    def wait(
        self,
        arguments: ArgsT = (),  # type: ignore[assignment]
        *,
        fallback_delay: float | None = None,
    ) -> SuccessT:
        """Blocking counterpart of awaiting the spy."""
        return self.call(arguments).wait_unwrap(fallback_delay)

    def stub_pending_success(self, value: SuccessT = None) -> None:  # type: ignore[assignment]
        """Stub a pending cell that falls back to succeeding with *value*."""
        self.stub(self._pending(Success(value)))

    def stub_pending_failure(self, error: BaseException | None = None) -> None:
        """Stub a pending cell that falls back to raising *error*.

        Without *error* the fallback is a
        :class:`~fakes.errors.PendableInProgressError`.
        """
        self.stub(Pendable.pending_failure(error, defaults=self._defaults))

    def stub_success(self, value: SuccessT = None) -> None:  # type: ignore[assignment]
        """Stub a finished cell that succeeds with *value*."""
        self.stub(self._finished(Success(value)))

    def stub_failure(self, error: BaseException) -> None:
        """Stub a finished cell that raises *error*."""
        self.stub(self._finished(Failure(error)))

    def resolve_stub_success(self, value: SuccessT = None) -> None:  # type: ignore[assignment]
        """Resolve outstanding cells so callers receive *value*."""
        self.resolve_stub(Success(value))

    def resolve_stub_failure(self, error: BaseException) -> None:
        """Resolve outstanding cells so callers raise *error*."""
        self.resolve_stub(Failure(error))


__all__ = ["PendableSpy", "Spy", "ThrowingPendableSpy", "ThrowingSpy"]
