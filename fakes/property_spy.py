"""Descriptors that record property reads and writes through spies."""

from __future__ import annotations

import dataclasses as dc
import typing as t

from typing_extensions import TypeVar

from .spy import Spy

StoredT = TypeVar("StoredT")
ExposedT = TypeVar("ExposedT")


def _identity(value: t.Any) -> t.Any:  # noqa: ANN401
    return value


@dc.dataclass(frozen=True, slots=True)
class PropertySpies(t.Generic[StoredT, ExposedT]):
    """The spies behind one property of one instance.

    ``setter`` is ``None`` for read-only properties.
    """

    getter: Spy[tuple[()], StoredT]
    setter: Spy[ExposedT, None] | None = None


class PropertySpy(t.Generic[StoredT, ExposedT]):
    """A read-only property whose reads are recorded by a getter spy.

    Each instance of the owning class gets its own spies, stubbed with
    *value*. Reads return ``mapping(getter())``, which lets a fake stub a
    concrete object for a property typed as a protocol::

        class FakeClock(Clock):
            now = PropertySpy(datetime(2024, 1, 1))

        clock = FakeClock()
        clock.now
        assert property_spies(clock, "now").getter.was_called
    """

    def __init__(
        self,
        value: StoredT,
        mapping: t.Callable[[StoredT], ExposedT] | None = None,
    ) -> None:
        self._value = value
        self._get_mapping: t.Callable[[StoredT], ExposedT] = mapping or _identity
        self._name = "<unbound>"
        self._attr = "_fakes_property_spies"

    def __set_name__(self, owner: type, name: str) -> None:
        self._name = f"{owner.__name__}.{name}"
        self._attr = f"_fakes_property_spies_{name}"

    def _make_spies(self) -> PropertySpies[StoredT, ExposedT]:
        return PropertySpies(getter=Spy(self._value, name=f"{self._name} getter"))

    def spies_for(self, instance: object) -> PropertySpies[StoredT, ExposedT]:
        """Return (creating on first use) the spies for *instance*."""
        try:
            storage = vars(instance)
        except TypeError as exc:
            msg = f"{self._name} requires instances with a __dict__"
            raise TypeError(msg) from exc
        spies = storage.get(self._attr)
        if spies is None:
            spies = storage.setdefault(self._attr, self._make_spies())
        return spies

    @t.overload
    def __get__(self, instance: None, owner: type) -> t.Self: ...

    @t.overload
    def __get__(self, instance: object, owner: type) -> ExposedT: ...

    def __get__(self, instance: object | None, owner: type) -> t.Self | ExposedT:
        if instance is None:
            return self
        return self._get_mapping(self.spies_for(instance).getter())

    def __set__(self, instance: object, value: ExposedT) -> None:
        msg = f"{self._name} is a read-only property spy"
        raise AttributeError(msg)


class SettablePropertySpy(PropertySpy[StoredT, ExposedT]):
    """A read-write property recorded by a getter spy and a setter spy.

    Writes are recorded on the setter spy, then the getter is re-stubbed
    with ``set_mapping(new_value)`` so later reads observe the write.
    """

    def __init__(
        self,
        value: StoredT,
        get_mapping: t.Callable[[StoredT], ExposedT] | None = None,
        set_mapping: t.Callable[[ExposedT], StoredT] | None = None,
    ) -> None:
        super().__init__(value, get_mapping)
        self._set_mapping: t.Callable[[ExposedT], StoredT] = set_mapping or _identity

    def _make_spies(self) -> PropertySpies[StoredT, ExposedT]:
        return PropertySpies(
            getter=Spy(self._value, name=f"{self._name} getter"),
            setter=Spy(name=f"{self._name} setter"),
        )

    def __set__(self, instance: object, value: ExposedT) -> None:
        spies = self.spies_for(instance)
        if spies.setter is None:  # pragma: no cover - always set by _make_spies
            msg = f"{self._name} has no setter spy"
            raise AttributeError(msg)
        spies.setter(value)
        spies.getter.stub(self._set_mapping(value))


def property_spies(instance: object, name: str) -> PropertySpies[t.Any, t.Any]:
    """Return the spies behind the property *name* of *instance*."""
    for klass in type(instance).__mro__:
        descriptor = klass.__dict__.get(name)
        if isinstance(descriptor, PropertySpy):
            return descriptor.spies_for(instance)
    msg = f"{type(instance).__name__}.{name} is not a property spy"
    raise AttributeError(msg)


__all__ = [
    "PropertySpies",
    "PropertySpy",
    "SettablePropertySpy",
    "property_spies",
]
