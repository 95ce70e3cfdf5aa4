"""
Compute-once cells for derived values of immutable objects.

A cell stores the result of its factory in a single attribute. Two threads
racing on first use may both run the factory, but each publishes a complete
value with one store, so readers never observe partial state.
"""

from __future__ import annotations
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

_UNSET = object()


class Memo(Generic[T]):
    """Lazily computed, cached value."""

    __slots__ = ("_factory", "_value")

    def __init__(self, factory: Callable[[], T]):
        self._factory = factory
        self._value: Any = _UNSET

    @classmethod
    def of(cls, value: T) -> "Memo[T]":
        """A cell that is already computed."""
        cell = cls(lambda: value)
        cell._value = value
        return cell

    @property
    def computed(self) -> bool:
        return self._value is not _UNSET

    def get(self) -> T:
        value = self._value
        if value is _UNSET:
            value = self._factory()
            self._value = value
        return value

    def __repr__(self):
        if self.computed:
            return f"Memo({self._value!r})"
        return "Memo(<pending>)"
