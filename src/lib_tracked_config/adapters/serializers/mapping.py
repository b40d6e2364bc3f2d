"""Conversion between configuration objects and plain nested mappings.

Purpose
-------
Every structured format (JSON, YAML, TOML, XML) is a tree of mappings and
scalars. Converting typed objects to that shape in one place keeps each
serializer a thin wrapper around its parser.

Contents
--------
* :func:`to_mapping` – object → ``dict`` (optionally restricted to fields).
* :func:`from_mapping` – ``dict`` → object, starting from the type's defaults.
* :func:`nested_type` – decide whether a field holds a nested configuration.

Rules
-----
``None`` values are omitted when writing, since absence is how "unset" is
persisted. When reading, omitted fields keep their default and unknown keys
are ignored with an ``unknown_field_ignored`` debug event.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, TypeVar

from ...domain.errors import InvalidFormat
from ...domain.fields import clone, default_of, field_names, field_types, is_config, is_config_type, require_fields
from ...observability import log_debug

T = TypeVar("T")


def to_mapping(obj: Any, names: Iterable[str] | None = None) -> dict[str, Any]:
    """Return a plain ``dict`` for *obj*, restricted to *names* when given.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Person:
    ...     name: str | None = None
    ...     age: int = 0
    >>> to_mapping(Person(age=3))
    {'age': 3}
    >>> to_mapping(Person(name="Fred", age=3), ["name"])
    {'name': 'Fred'}
    """

    selected = field_names(obj) if names is None else require_fields(obj, names)
    result: dict[str, Any] = {}
    for name in selected:
        value = getattr(obj, name)
        if value is None:
            continue
        result[name] = _plain(value)
    return result


def from_mapping(config_type: type[T], data: Any, *, base: T | None = None) -> T:
    """Build a *config_type* instance from *data*.

    Parameters
    ----------
    config_type:
        Target dataclass type.
    data:
        Parsed mapping; anything else raises :class:`InvalidFormat`.
    base:
        Object to populate instead of a fresh default instance. Used for
        nested fields so a parent's customised nested default survives for
        sub-fields the data omits.
    """

    if not isinstance(data, Mapping):
        raise InvalidFormat(f"{config_type.__name__} expects a mapping, got {type(data).__name__}")
    instance = base if base is not None else default_of(config_type)
    known = field_names(instance)
    hints = field_types(type(instance))
    for key, value in data.items():
        if key not in known:
            log_debug("unknown_field_ignored", type=config_type.__name__, field=key)
            continue
        setattr(instance, key, _decode(hints.get(key), getattr(instance, key), value, key))
    return instance


def nested_type(hint: type | None, current: Any) -> type | None:
    """Return the nested configuration type of a field, if any.

    The declared annotation wins; otherwise the type of the default value is
    used so unannotated-but-defaulted nested fields still round-trip.
    """

    if is_config_type(hint):
        return hint
    if is_config(current):
        return type(current)
    return None


def _decode(hint: type | None, current: Any, value: Any, key: str) -> Any:
    """Rebuild a single field value, recursing into nested configuration types."""

    nested = nested_type(hint, current)
    if value is None or nested is None:
        return value
    if not isinstance(value, Mapping):
        raise InvalidFormat(f"Field {key} expects a mapping for {nested.__name__}, got {type(value).__name__}")
    start = clone(current) if is_config(current) and type(current) is nested else default_of(nested)
    return from_mapping(nested, value, base=start)


def _plain(value: Any) -> Any:
    """Convert nested objects and sequences into mapping-friendly values."""

    if is_config(value):
        return to_mapping(value)
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return clone(value)
