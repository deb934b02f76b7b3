"""Spy test doubles that record calls and return stubbed, possibly pending, results.

A :class:`Spy` records the arguments of every call and answers from an ordered
list of stubs. :class:`PendableSpy` answers with :class:`Pendable` cells that
callers await until the test resolves them, or until a fallback delay elapses
so that forgotten stubs never hang the suite.
"""

from __future__ import annotations

from .defaults import (
    DEFAULT_FALLBACK_DELAY,
    DEFAULTS,
    FAKES_PENDABLE_DELAY_ENV,
    PendableDefaults,
    temporary_delay,
)
from .dynamic_result import DynamicResult, Stub, StubKind
from .errors import FakesError, PendableInProgressError, StubListEmptyError
from .pendable import Pendable, ResolvableWithFallback, ThrowingPendable
from .property_spy import (
    PropertySpies,
    PropertySpy,
    SettablePropertySpy,
    property_spies,
)
from .result import Failure, Result, Success, catching
from .spy import PendableSpy, Spy, ThrowingPendableSpy, ThrowingSpy

__all__ = [
    "DEFAULTS",
    "DEFAULT_FALLBACK_DELAY",
    "FAKES_PENDABLE_DELAY_ENV",
    "DynamicResult",
    "Failure",
    "FakesError",
    "Pendable",
    "PendableDefaults",
    "PendableInProgressError",
    "PendableSpy",
    "PropertySpies",
    "PropertySpy",
    "ResolvableWithFallback",
    "Result",
    "SettablePropertySpy",
    "Spy",
    "Stub",
    "StubKind",
    "StubListEmptyError",
    "Success",
    "ThrowingPendable",
    "ThrowingPendableSpy",
    "ThrowingSpy",
    "catching",
    "property_spies",
    "temporary_delay",
]
