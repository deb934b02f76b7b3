"""Custom exceptions for fakes."""

from __future__ import annotations


class FakesError(Exception):
    """Base exception for fakes errors."""


class PendableInProgressError(FakesError):
    """Raised when a pending failure-flavoured cell is never resolved.

    Tests can tell this apart from a stubbed application failure: it means
    nobody resolved the stub before the fallback delay elapsed.
    """

    DEFAULT_MESSAGE = "Pendable was not resolved before its fallback delay elapsed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.DEFAULT_MESSAGE)


class StubListEmptyError(FakesError, RuntimeError):
    """Raised when a :class:`~fakes.dynamic_result.DynamicResult` has no stubs.

    This can only happen through a bug in fakes itself.
    """


__all__ = [
    "FakesError",
    "PendableInProgressError",
    "StubListEmptyError",
]
