"""Application-layer merge policy.

Purpose
-------
Combine partially populated configuration objects of one structural type into
a single object. A secondary value only overrides the target when it is
itself non-default, so a later, less specific source never clobbers an
earlier explicit customisation with its own defaults. Remains free of I/O so
it can be reused outside the manager.

Contents
    - ``merge_with``: merge one object into another in place.
    - ``merge``: fold ``merge_with`` over an ordered sequence.
    - ``merge_with_provenance``: fold named layers and record which layer
      supplied every adopted value.
    - ``_merge_object`` / ``_should_adopt`` / ``_nested_default``: the
      recursive per-field stanzas.

System Role
-----------
Called by :class:`lib_tracked_config.core.ConfigurationManager` to build both
the working object and the comparison baseline.
"""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from ..domain.errors import ConfigError
from ..domain.fields import clone, default_of, field_names, is_config, values_equal
from ..domain.provenance import SourceInfo, clear_branch, dotted_key

T = TypeVar("T")


def merge_with(primary: T | None, secondary: T | None, *, default: T | None = None) -> T | None:
    """Merge *secondary* into *primary* field by field and return *primary*.

    Why
    ----
    Sources only customise a handful of fields; everything else carries the
    type's default. Comparing against a freshly probed default instance tells
    "explicitly set" apart from "left alone".

    What
    ----
    For every field with primary value ``p``, secondary value ``s`` and default
    value ``d``:

    * ``p`` absent and ``s`` present: adopt ``s``.
    * otherwise adopt ``s`` only when ``p`` is present, ``p != s`` and
      ``s != d``.
    * nested configuration objects on both sides are merged recursively using
      the nested default found on ``d`` (so a parent type that customises its
      nested default is honoured). An absent secondary nested object leaves
      the primary's nested object untouched.

    Adopted values are deep copies; *secondary* is never aliased.

    Parameters
    ----------
    primary:
        Target object, mutated in place. ``None`` is replaced with a fresh
        default instance of ``type(secondary)``.
    secondary:
        Object to merge in. ``None`` makes the call a no-op.
    default:
        Override for the default instance; normally probed from
        ``type(primary)``.

    Returns
    -------
    T | None
        The merged target (``None`` only when both inputs are ``None``).

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Person:
    ...     name: str | None = None
    ...     age: int = 0
    >>> merge_with(Person(name="Tim", age=20), Person(name="Fred"))
    Person(name='Fred', age=20)
    >>> merge_with(Person(name="Tim", age=20), Person(age=10))
    Person(name='Tim', age=10)
    """

    if secondary is None:
        return primary
    if primary is None:
        primary = default_of(type(secondary))
    probe = default if default is not None else default_of(type(primary))
    _merge_object(primary, secondary, probe, [], [])
    return primary


def merge(objects: Iterable[T | None], seed: T | None = None, *, config_type: type[T] | None = None) -> T:
    """Merge *objects* left to right into *seed* and return the result.

    An empty sequence yields *seed* unchanged, or a default instance of
    *config_type* (falling back to the type of the first non-``None`` object)
    when no seed is given.

    Raises
    ------
    ConfigError
        When neither a seed, a ``config_type`` nor a non-``None`` object is
        available to decide the result type.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Person:
    ...     name: str | None = None
    ...     age: int = 0
    >>> merge([Person(age=10), Person(name="Fred")])
    Person(name='Fred', age=10)
    >>> merge([], config_type=Person)
    Person(name=None, age=0)
    """

    items = list(objects)
    if seed is None:
        cls = config_type or next((type(item) for item in items if item is not None), None)
        if cls is None:
            raise ConfigError("merge() needs a seed or a config_type when every object is absent")
        seed = default_of(cls)
    result = seed
    for item in items:
        result = merge_with(result, item)
    return result  # type: ignore[return-value]


def merge_with_provenance(
    layers: Iterable[tuple[str, T | None, str | None]],
    *,
    config_type: type[T],
) -> tuple[T, dict[str, SourceInfo]]:
    """Merge named *layers* and record which layer supplied each adopted value.

    Parameters
    ----------
    layers:
        ``(layer_name, obj, path)`` tuples ordered from first to last merged.
        Absent objects (``None``) contribute nothing.
    config_type:
        Type of the merged result.

    Returns
    -------
    tuple[T, dict[str, SourceInfo]]
        ``(merged, provenance)`` where provenance maps dotted keys to
        :class:`SourceInfo`. Adopting a whole nested object records the parent
        key and clears stale descendant entries.
    """

    merged = default_of(config_type)
    probe = default_of(config_type)
    meta: dict[str, SourceInfo] = {}
    for layer, obj, path in layers:
        if obj is None:
            continue
        adopted: list[str] = []
        _merge_object(merged, obj, probe, [], adopted)
        for key in adopted:
            clear_branch(meta, key)
            meta[key] = SourceInfo(layer=layer, path=path, key=key)
    return merged, meta


def _merge_object(target: Any, incoming: Any, default: Any, segments: list[str], adopted: list[str]) -> None:
    """Recursively merge ``incoming`` into ``target`` and collect adopted keys."""

    names = field_names(target)
    _ensure_compatible(names, incoming)
    for name in names:
        current = getattr(target, name)
        value = getattr(incoming, name)
        fallback = getattr(default, name, None)
        if is_config(current) and value is None:
            continue
        if is_config(current) and is_config(value):
            _merge_object(current, value, _nested_default(current, fallback), [*segments, name], adopted)
            continue
        if _should_adopt(current, value, fallback):
            setattr(target, name, clone(value))
            adopted.append(dotted_key(segments, name))


def _should_adopt(current: Any, value: Any, fallback: Any) -> bool:
    """Return ``True`` when ``value`` must replace ``current``."""

    if current is None:
        return value is not None
    return not values_equal(current, value) and not values_equal(value, fallback)


def _nested_default(current: Any, fallback: Any) -> Any:
    """Return the default for a nested object, preferring the parent's customised default."""

    if is_config(fallback) and field_names(fallback) == field_names(current):
        return fallback
    return default_of(type(current))


def _ensure_compatible(names: tuple[str, ...], incoming: Any) -> None:
    """Raise :class:`ConfigError` when ``incoming`` lacks fields of the target."""

    missing = [name for name in names if not hasattr(incoming, name)]
    if missing:
        raise ConfigError(f"{type(incoming).__name__} cannot be merged: missing fields {', '.join(missing)}")
