"""Call-log queries and assertion helpers shared by every spy."""

from __future__ import annotations

import typing as t
from textwrap import indent

from typing_extensions import TypeVar

ArgsT = TypeVar("ArgsT", default=tuple[()])


def _numbered(entries: t.Sequence[str]) -> str:
    """Number *entries*, indenting continuation lines under their number."""
    if not entries:
        return "(none)"
    lines: list[str] = []
    for index, entry in enumerate(entries, start=1):
        entry_lines = entry.splitlines() or [""]
        lines.append(f"{index}. {entry_lines[0]}")
        lines.extend(f"   {extra}" for extra in entry_lines[1:])
    return "\n".join(lines)


def _format_sections(title: str, sections: list[tuple[str, str]]) -> str:
    parts = [title]
    for label, body in sections:
        if not body:
            continue
        parts.append("")
        parts.append(f"{label}:")
        parts.append(indent(body, "  "))
    return "\n".join(parts)


def describe_calls(calls: t.Sequence[object]) -> str:
    """Return a numbered, human readable listing of *calls*."""
    return _numbered([repr(call) for call in calls])


class CallLogAssertions(t.Generic[ArgsT]):
    """Queries over a recorded call log.

    Subclasses provide :attr:`calls` (a snapshot of the log) and
    :attr:`name` (used in failure messages).
    """

    name: str

    @property
    def calls(self) -> list[ArgsT]:  # pragma: no cover - provided by subclasses
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------
    @property
    def call_count(self) -> int:
        """Return how many times the spy has been called."""
        return len(self.calls)

    @property
    def was_called(self) -> bool:
        """Return ``True`` when the spy has been called at least once."""
        return bool(self.calls)

    @property
    def was_not_called(self) -> bool:
        """Return ``True`` when the spy has never been called."""
        return not self.calls

    def was_called_times(self, times: int) -> bool:
        """Return ``True`` when the spy has been called exactly *times* times."""
        return len(self.calls) == times

    def was_called_with(self, value: ArgsT) -> bool:
        """Return ``True`` when any call equals *value*."""
        return any(call == value for call in self.calls)

    def was_called_with_sequence(self, values: t.Sequence[ArgsT]) -> bool:
        """Return ``True`` when the calls equal *values*, in order, and nothing else."""
        calls = self.calls
        return len(calls) == len(values) and all(
            call == value for call, value in zip(calls, values, strict=True)
        )

    def was_called_matching(self, predicate: t.Callable[[ArgsT], bool]) -> bool:
        """Return ``True`` when any call satisfies *predicate*."""
        return any(predicate(call) for call in self.calls)

    def was_called_matching_sequence(
        self, predicates: t.Sequence[t.Callable[[ArgsT], bool]]
    ) -> bool:
        """Return ``True`` when each call satisfies the predicate at its position.

        For example, a spy called with ``1`` then ``2`` matches
        ``[lambda v: v == 1, lambda v: v == 2]``.
        """
        calls = self.calls
        return len(calls) == len(predicates) and all(
            predicate(call) for call, predicate in zip(calls, predicates, strict=True)
        )

    def was_most_recently_called_with(self, value: ArgsT) -> bool:
        """Return ``True`` when the latest call equals *value*."""
        calls = self.calls
        return bool(calls) and calls[-1] == value

    def was_most_recently_called_matching(
        self, predicate: t.Callable[[ArgsT], bool]
    ) -> bool:
        """Return ``True`` when the latest call satisfies *predicate*."""
        calls = self.calls
        return bool(calls) and bool(predicate(calls[-1]))

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------
    def _fail(self, title: str, sections: list[tuple[str, str]]) -> t.NoReturn:
        raise AssertionError(_format_sections(title, sections))

    def assert_called(self) -> None:
        """Raise ``AssertionError`` if the spy was never called."""
        if not self.calls:
            msg = f"Expected {self.name!r} to be called but it was never called"
            raise AssertionError(msg)

    def assert_not_called(self) -> None:
        """Raise ``AssertionError`` if the spy was called."""
        calls = self.calls
        if calls:
            self._fail(
                f"Expected {self.name!r} to be uncalled but it was called "
                f"{len(calls)} time(s).",
                [("Recorded calls", describe_calls(calls))],
            )

    def assert_called_times(self, times: int) -> None:
        """Raise ``AssertionError`` unless the spy was called *times* times."""
        calls = self.calls
        if len(calls) != times:
            self._fail(
                f"Expected {self.name!r} to be called {times} time(s).",
                [
                    ("Observed calls", f"{len(calls)} (expected {times})"),
                    ("Recorded calls", describe_calls(calls)),
                ],
            )

    def assert_called_with(self, value: ArgsT) -> None:
        """Raise ``AssertionError`` unless some call equals *value*."""
        calls = self.calls
        if not any(call == value for call in calls):
            self._fail(
                f"Expected {self.name!r} to be called with {value!r}.",
                [("Recorded calls", describe_calls(calls))],
            )

    def assert_most_recently_called_with(self, value: ArgsT) -> None:
        """Raise ``AssertionError`` unless the latest call equals *value*."""
        calls = self.calls
        if not calls:
            msg = f"Expected {self.name!r} to be called but it was never called"
            raise AssertionError(msg)
        if calls[-1] != value:
            self._fail(
                f"{self.name!r} most recently called with {calls[-1]!r}, "
                f"expected {value!r}.",
                [("Recorded calls", describe_calls(calls))],
            )


__all__ = ["CallLogAssertions", "describe_calls"]
