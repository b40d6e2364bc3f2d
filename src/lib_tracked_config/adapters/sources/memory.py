"""In-memory configuration source.

Purpose
-------
Let applications and tests place an already constructed object into the
source stack, for example compiled-in defaults or values computed at start-up.
The object itself acts as the backing store, so saves replace it.
"""

from __future__ import annotations

from typing import Generic, Iterable, TypeVar

from ...domain.errors import ReadOnlySourceError
from ...domain.fields import clone, default_of, field_names, require_fields

T = TypeVar("T")


class MemorySource(Generic[T]):
    """Configuration source backed by a Python object.

    Parameters
    ----------
    config:
        The supplied object, or ``None`` to model an absent source.
    name:
        Label used for provenance and logging.
    primary_source / required / persistent_source / read_only:
        Stack flags, see :class:`~lib_tracked_config.application.ports.ConfigurationSource`.

    Attributes
    ----------
    saved_object:
        Object stored by the most recent save, ``None`` before any save.
    saved_fields:
        Field names written by the most recent save.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Person:
    ...     name: str | None = None
    ...     age: int = 0
    >>> source = MemorySource(Person(name="Tim", age=20))
    >>> source.partial_save(Person(age=88), ["age"])
    >>> source.config
    Person(name='Tim', age=88)
    """

    path: str | None = None

    def __init__(
        self,
        config: T | None,
        *,
        name: str = "memory",
        primary_source: bool = False,
        required: bool = False,
        persistent_source: bool = False,
        read_only: bool = False,
    ) -> None:
        self._config = config
        self.name = name
        self.primary_source = primary_source
        self.required = required
        self.persistent_source = persistent_source
        self.read_only = read_only
        self.saved_object: T | None = None
        self.saved_fields: tuple[str, ...] = ()

    @property
    def config(self) -> T | None:
        return self._config

    def invalidate(self) -> None:
        """Nothing is cached; the held object is the store."""

    def save(self, obj: T) -> None:
        """Replace the held object with a copy of *obj*."""

        self._guard_writable()
        self._config = clone(obj)
        self._record(self._config, field_names(obj))

    def partial_save(self, obj: T, field_names: Iterable[str]) -> None:
        """Copy *field_names* of *obj* onto the held object, keeping the rest."""

        self._guard_writable()
        names = require_fields(obj, field_names)
        target = clone(self._config) if self._config is not None else default_of(type(obj))
        for name in names:
            setattr(target, name, clone(getattr(obj, name)))
        self._config = target
        self._record(target, names)

    def _record(self, stored: T, names: tuple[str, ...]) -> None:
        self.saved_object = clone(stored)
        self.saved_fields = names

    def _guard_writable(self) -> None:
        if self.read_only:
            raise ReadOnlySourceError(f"Source {self.name} is read-only")

    def __repr__(self) -> str:
        return f"MemorySource(name={self.name!r}, primary_source={self.primary_source}, config={self._config!r})"
