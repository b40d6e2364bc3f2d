"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts that sources, serializers and validators must
satisfy so the manager can orchestrate behaviour without depending on
concrete implementations.

Contents
--------
* :class:`ConfigurationSource` – one participant in the source stack.
* :class:`PartialSerializer` – turns bytes into typed objects and back, with
  support for emitting a subset of fields.
* :class:`Validator` – optional semantic pre-check.

System Role
-----------
These protocols enforce Dependency Inversion: the manager only talks to the
abstractions, adapters implement them.
"""

from __future__ import annotations

from typing import IO, Iterable, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class ConfigurationSource(Protocol[T]):
    """Supply one partially populated configuration object plus persistence.

    Attributes
    ----------
    name:
        Label used for provenance and log events.
    path:
        Backing location, ``None`` for in-memory sources.
    primary_source:
        Marks the save-back destination; at most one per stack.
    required:
        Absence of :attr:`config` aborts manager construction.
    persistent_source:
        Informational flag for callers that distinguish durable layers.
    read_only:
        The source refuses :meth:`save` and :meth:`partial_save`.
    """

    name: str
    path: str | None
    primary_source: bool
    required: bool
    persistent_source: bool
    read_only: bool

    @property
    def config(self) -> T | None:
        """Return the (lazily loaded, cached) object or ``None`` when absent."""

    def invalidate(self) -> None:
        """Drop the cached object so the next access reloads it."""

    def save(self, obj: T) -> None:
        """Persist *obj* completely, overwriting the backing store."""

    def partial_save(self, obj: T, field_names: Iterable[str]) -> None:
        """Persist only *field_names* of *obj*, keeping every other stored field."""


@runtime_checkable
class PartialSerializer(Protocol[T]):
    """Serialize configuration objects, optionally restricted to a field subset.

    ``deserialize(serialize(x))`` must be structurally equal to ``x`` for any
    fully specified ``x``.
    """

    read_only: bool

    def serialize(self, stream: IO[bytes], obj: T) -> None:
        """Write every field of *obj* to *stream*."""

    def partial_serialize(self, stream: IO[bytes], obj: T, field_names: Iterable[str]) -> None:
        """Write only *field_names* of *obj* to *stream*."""

    def deserialize(self, stream: IO[bytes]) -> T:
        """Read *stream* and return a typed object or raise ``InvalidFormat``."""


@runtime_checkable
class Validator(Protocol[T]):
    """Reject configuration objects that violate semantic invariants."""

    def validate(self, obj: T) -> None:
        """Raise ``ValidationError`` when *obj* is invalid."""
