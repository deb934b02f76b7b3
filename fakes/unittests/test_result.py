"""Unit tests for :mod:`fakes.result`."""

from __future__ import annotations

import pytest

from fakes.result import Failure, Success, catching


class _BoomError(Exception):
    pass


def test_success_returns_value() -> None:
    """Success.get returns the wrapped value."""
    outcome = Success(3)
    assert outcome.get() == 3
    assert outcome.is_success
    assert not outcome.is_failure


def test_success_defaults_to_none() -> None:
    """Success() models a void success."""
    assert Success().get() is None


def test_failure_raises_the_same_error() -> None:
    """Failure.get re-raises the configured exception object verbatim."""
    error = _BoomError("boom")
    outcome = Failure(error)

    with pytest.raises(_BoomError) as exc:
        outcome.get()

    assert exc.value is error
    assert outcome.is_failure


def test_failure_rejects_non_exceptions() -> None:
    """Failure only accepts exception instances."""
    with pytest.raises(TypeError, match="exception instance"):
        Failure("nope")  # type: ignore[arg-type]


def test_catching_captures_outcomes() -> None:
    """catching wraps return values and raised exceptions."""

    def halve(value: int) -> int:
        if value % 2:
            raise _BoomError(value)
        return value // 2

    assert catching(halve, 4) == Success(2)
    failed = catching(halve, 3)
    assert isinstance(failed, Failure)
    assert isinstance(failed.error, _BoomError)


def test_results_compare_by_value() -> None:
    """Results are frozen dataclasses that compare structurally."""
    assert Success(1) == Success(1)
    assert Success(1) != Success(2)
    error = ValueError("x")
    assert Failure(error) == Failure(error)
