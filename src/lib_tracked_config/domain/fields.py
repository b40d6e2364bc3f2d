"""Field introspection, default probing and typed equality for config types.

Purpose
-------
Give the merge engine and the change tracker one vocabulary for "a structural
record with named, gettable/settable fields". Configuration types are plain
``@dataclass`` classes whose fields all carry defaults; nested configuration
types are dataclass instances stored in a field. ``None`` is the absent
sentinel for every field.

Contents
--------
* :func:`is_config` / :func:`is_config_type` – recognise configuration values
  and classes.
* :func:`field_names` – declaration-ordered field names.
* :func:`field_types` – resolved annotations with ``Optional`` unwrapped.
* :func:`require_fields` – reject unknown field names.
* :func:`default_of` – the Default Probe; a fresh zero-argument instance.
* :func:`values_equal` – ``None``-aware structural equality.
* :func:`clone` – deep copy used whenever a value crosses object boundaries.

System Role
-----------
Pure domain helpers without I/O or logging. Everything in
:mod:`lib_tracked_config.application` builds on these functions instead of
touching :mod:`dataclasses` directly.
"""

from __future__ import annotations

import copy
import dataclasses
import types
from functools import lru_cache
from typing import Any, Iterable, TypeVar, Union, get_args, get_origin, get_type_hints

from .errors import ConfigError, UsageError

T = TypeVar("T")


def is_config(value: object) -> bool:
    """Return ``True`` when *value* is a configuration *instance*.

    Examples
    --------
    >>> @dataclasses.dataclass
    ... class Demo:
    ...     name: str | None = None
    >>> is_config(Demo()), is_config(Demo), is_config("text")
    (True, False, False)
    """

    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def is_config_type(cls: object) -> bool:
    """Return ``True`` when *cls* is a dataclass type usable as a configuration type."""

    return isinstance(cls, type) and dataclasses.is_dataclass(cls)


def field_names(target: object) -> tuple[str, ...]:
    """Return field names of a configuration instance or type in declaration order.

    Raises
    ------
    ConfigError
        When *target* is neither a dataclass type nor a dataclass instance.
    """

    if not dataclasses.is_dataclass(target):
        raise ConfigError(f"{target!r} is not a dataclass configuration object")
    return tuple(item.name for item in dataclasses.fields(target))


def require_fields(target: object, names: Iterable[str]) -> tuple[str, ...]:
    """Return *names* as a tuple after checking each one exists on *target*.

    Raises
    ------
    UsageError
        When a name is not a field of *target*.

    Examples
    --------
    >>> @dataclasses.dataclass
    ... class Demo:
    ...     age: int = 0
    >>> require_fields(Demo, ["age"])
    ('age',)
    >>> require_fields(Demo, ["height"])
    Traceback (most recent call last):
    ...
    lib_tracked_config.domain.errors.UsageError: Demo has no field named 'height'
    """

    known = field_names(target)
    requested = tuple(names)
    for name in requested:
        if name not in known:
            owner = target.__name__ if isinstance(target, type) else type(target).__name__
            raise UsageError(f"{owner} has no field named {name!r}")
    return requested


@lru_cache(maxsize=None)
def field_types(cls: type) -> dict[str, type | None]:
    """Return the concrete annotation per field with ``Optional`` unwrapped.

    Why
    ----
    Serializers need the declared type to rebuild nested objects and to coerce
    textual values (XML) back into numbers and booleans.

    What
    ----
    Resolves string annotations via :func:`typing.get_type_hints`. Annotations
    that cannot be reduced to a single class (unions of several types,
    unresolvable forward references) map to ``None``.

    Examples
    --------
    >>> @dataclasses.dataclass
    ... class Demo:
    ...     age: int = 0
    ...     name: str | None = None
    >>> field_types(Demo)
    {'age': <class 'int'>, 'name': <class 'str'>}
    """

    try:
        hints = get_type_hints(cls)
    except NameError:
        hints = {item.name: item.type for item in dataclasses.fields(cls)}
    return {item.name: _concrete_type(hints.get(item.name)) for item in dataclasses.fields(cls)}


def default_of(cls: type[T]) -> T:
    """Produce a fresh default instance of *cls* (the Default Probe).

    Why
    ----
    The default instance answers "what would this field hold if nobody
    customised it". A new instance per call keeps mutable nested defaults from
    aliasing live configuration state.

    Raises
    ------
    ConfigError
        When *cls* is not a mutable dataclass type or cannot be constructed
        without arguments.

    Examples
    --------
    >>> @dataclasses.dataclass
    ... class Demo:
    ...     occupation: str = "Unemployed"
    >>> default_of(Demo)
    Demo(occupation='Unemployed')
    >>> default_of(Demo) is default_of(Demo)
    False
    """

    if not is_config_type(cls):
        raise ConfigError(f"{cls!r} is not a dataclass configuration type")
    if cls.__dataclass_params__.frozen:  # type: ignore[attr-defined]
        raise ConfigError(f"{cls.__name__} is frozen; configuration types must be mutable")
    try:
        return cls()
    except TypeError as exc:
        raise ConfigError(f"{cls.__name__} cannot be constructed without arguments: {exc}") from exc


def values_equal(left: Any, right: Any) -> bool:
    """Compare two field values with ``None`` awareness and structural recursion.

    ``None`` only equals ``None``. Two configuration instances are equal when
    they expose the same fields and every field compares equal recursively;
    anything else falls back to ``==``.

    Examples
    --------
    >>> values_equal(None, None), values_equal(None, 0), values_equal("a", "a")
    (True, False, True)
    """

    if left is None or right is None:
        return left is None and right is None
    if is_config(left) and is_config(right):
        names = field_names(left)
        if names != field_names(right):
            return False
        return all(values_equal(getattr(left, name), getattr(right, name)) for name in names)
    return bool(left == right)


def clone(value: T) -> T:
    """Deep-copy *value* so adopted values never alias their origin."""

    return copy.deepcopy(value)


def _concrete_type(hint: Any) -> type | None:
    """Reduce *hint* to a single class, unwrapping ``Optional``."""

    if hint is None:
        return None
    origin = get_origin(hint)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(members) != 1:
            return None
        return _concrete_type(members[0])
    if origin is not None:
        return origin if isinstance(origin, type) else None
    return hint if isinstance(hint, type) else None
