"""Unit tests for :mod:`fakes.dynamic_result`."""

from __future__ import annotations

import logging

import pytest

from fakes.dynamic_result import DynamicResult, Stub, StubKind
from fakes.errors import StubListEmptyError
from fakes.pendable import Pendable


def _calls(result: DynamicResult, count: int, arguments: object = ()) -> list:
    return [result.call(arguments) for _ in range(count)]


def test_single_value_repeats_forever() -> None:
    """A single stub is reused for every call."""
    result = DynamicResult(1)
    assert _calls(result, 3) == [1, 1, 1]


def test_values_are_consumed_in_order_then_last_sticks() -> None:
    """Stubs are consumed in order and the last one is never removed."""
    result = DynamicResult(1, 2, 3)
    assert _calls(result, 5) == [1, 2, 3, 3, 3]


def test_closure_receives_arguments() -> None:
    """Closure stubs compute the response from the call arguments."""
    result: DynamicResult[int, int] = DynamicResult.from_closure(lambda x: x + 1)
    assert [result.call(n) for n in (1, 2, 3)] == [2, 3, 4]


def test_mixed_stubs() -> None:
    """Value and closure stubs can be queued together."""
    result: DynamicResult[int, int] = DynamicResult.from_stubs(
        Stub.value(0),
        Stub.closure(lambda x: x * 10),
        Stub.value(-1),
    )
    assert [result.call(n) for n in (1, 2, 3, 4)] == [0, 20, -1, -1]


def test_empty_constructor_rejected() -> None:
    """A stub list can never start empty."""
    with pytest.raises(ValueError, match="at least one"):
        DynamicResult()
    with pytest.raises(ValueError, match="at least one"):
        DynamicResult.from_stubs()


def test_closure_stub_requires_callable() -> None:
    """Stub.closure rejects non-callables up front."""
    with pytest.raises(TypeError, match="callable"):
        Stub.closure(3)  # type: ignore[arg-type]


def test_stub_kind_is_classified_on_construction() -> None:
    """Pendable literals are tagged so they can be released later."""
    assert Stub.value(1).kind is StubKind.VALUE
    assert Stub.value(Pendable.pending(0)).kind is StubKind.PENDABLE
    assert Stub.closure(lambda _: 1).kind is StubKind.CLOSURE


def test_replace_discards_remaining_stubs() -> None:
    """replace() drops queued stubs in favour of the new ones."""
    result = DynamicResult(1, 2, 3)
    result.call()
    result.replace(7, 8)
    assert _calls(result, 3) == [7, 8, 8]


def test_replace_closure() -> None:
    """replace_closure installs a single closure stub."""
    result: DynamicResult[int, int] = DynamicResult(0)
    result.replace_closure(lambda x: -x)
    assert result.call(5) == -5


def test_replace_rejects_empty_list() -> None:
    """Replacing with nothing would leave the list empty."""
    result = DynamicResult(1)
    with pytest.raises(ValueError, match="replace requires"):
        result.replace()
    assert result.call() == 1


def test_append_extends_queue() -> None:
    """append() queues after the current stubs without resetting."""
    result = DynamicResult(1, 2)
    result.append(3, 4)
    assert _calls(result, 5) == [1, 2, 3, 4, 4]


def test_append_after_sticky_last_value() -> None:
    """The sticky last stub is consumed once something is appended."""
    result = DynamicResult(1)
    assert result.call() == 1
    result.append(2)
    assert _calls(result, 3) == [1, 2, 2]


def test_append_closure() -> None:
    """append_closure queues a closure stub."""
    result: DynamicResult[int, int] = DynamicResult(0)
    result.append_closure(lambda x: x * 2)
    assert [result.call(n) for n in (5, 6)] == [0, 12]


def test_history_records_produced_values() -> None:
    """Every produced value is remembered in order."""
    result = DynamicResult("a", "b")
    _calls(result, 3)
    assert result.history == ["a", "b", "b"]


def test_stubs_returns_a_copy() -> None:
    """Mutating the returned list does not affect the result."""
    result = DynamicResult(1, 2)
    result.stubs.clear()
    assert len(result.stubs) == 2


def test_replace_resolves_queued_pendables(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Discarded pendable stubs are released with their fallback."""
    held = Pendable.pending(fallback="fallback")
    result = DynamicResult(held)

    with caplog.at_level(logging.DEBUG, logger="fakes.dynamic_result"):
        result.replace(Pendable.finished("new"))

    assert held.is_resolved
    assert held.value == "fallback"
    assert "pending stub" in caplog.text


def test_append_does_not_resolve_pendables() -> None:
    """Appending leaves queued pendables pending."""
    held = Pendable.pending(fallback=0)
    result = DynamicResult(held)
    result.append(Pendable.finished(1))
    assert held.is_pending


def test_pendables_lists_history_and_next_head() -> None:
    """pendables() includes produced cells and the one about to be served."""
    first = Pendable.pending(fallback=1)
    second = Pendable.pending(fallback=2)
    result = DynamicResult(first, second)

    assert result.pendables() == [first]
    assert result.call() is first
    assert result.pendables() == [first, second]
    assert result.pendables(include_next=False) == [first]


def test_pendables_are_distinct() -> None:
    """The sticky pendable is reported once however often it was returned."""
    only = Pendable.pending(fallback=1)
    result = DynamicResult(only)
    _calls(result, 3)
    assert result.pendables() == [only]


def test_resolve_pending_releases_everything() -> None:
    """resolve_pending() finishes queued and produced pendables."""
    produced = Pendable.pending(fallback=1)
    queued = Pendable.pending(fallback=2)
    result = DynamicResult(produced, queued)
    result.call()

    result.resolve_pending()

    assert produced.value == 1
    assert produced.is_resolved
    assert queued.is_resolved


def test_closure_may_reenter_the_result() -> None:
    """Closures run outside the lock and may inspect their owner."""
    result: DynamicResult[int, int] = DynamicResult(0)
    result.replace_closure(lambda _: len(result.history))
    assert _calls(result, 3) == [0, 1, 2]


def test_emptied_stub_list_raises() -> None:
    """A corrupted, empty stub list reports an internal error."""
    result = DynamicResult(1)
    result._stubs.clear()
    with pytest.raises(StubListEmptyError, match="bug in fakes"):
        result.call()


def test_repr_lists_stub_kinds() -> None:
    result = DynamicResult.from_stubs(Stub.value(1), Stub.closure(lambda _: 2))
    assert repr(result) == "DynamicResult([value, closure])"
