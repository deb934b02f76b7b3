"""Success/failure values returned by failable stubs."""

from __future__ import annotations

import dataclasses as dc
import typing as t

from typing_extensions import TypeVar

ValueT = TypeVar("ValueT", default=None)
ArgsT = TypeVar("ArgsT", default=tuple[()])


@dc.dataclass(frozen=True, slots=True)
class Success(t.Generic[ValueT]):
    """A successful outcome carrying ``value``."""

    value: ValueT = None  # type: ignore[assignment]

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False

    def get(self) -> ValueT:
        """Return the wrapped value."""
        return self.value


@dc.dataclass(frozen=True, slots=True)
class Failure:
    """A failed outcome carrying the ``error`` to raise."""

    error: BaseException

    def __post_init__(self) -> None:
        """Reject values that cannot be raised."""
        if not isinstance(self.error, BaseException):
            msg = f"Failure requires an exception instance, got {self.error!r}"
            raise TypeError(msg)

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True

    def get(self) -> t.NoReturn:
        """Raise the wrapped error verbatim."""
        raise self.error


Result: t.TypeAlias = Success[ValueT] | Failure


def catching(
    func: t.Callable[[ArgsT], ValueT], arguments: ArgsT
) -> Success[ValueT] | Failure:
    """Call ``func(arguments)`` and capture the outcome as a result.

    Only :class:`Exception` subclasses are captured; ``KeyboardInterrupt``
    and friends still propagate.
    """
    try:
        value = func(arguments)
    except Exception as exc:  # noqa: BLE001 - captured as a Failure
        return Failure(exc)
    return Success(value)


__all__ = ["Failure", "Result", "Success", "catching"]
