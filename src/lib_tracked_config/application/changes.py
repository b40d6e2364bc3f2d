"""Change tracking between a baseline and a current configuration object.

Purpose
-------
Answer "which fields did somebody customise" without any change-notification
wiring: every query compares the current state against a baseline, pulling
values fresh each time. The comparison mirrors the merge predicate in
:mod:`lib_tracked_config.application.merge` so that "what a later merge would
overwrite" and "what counts as a user change" share one notion of difference.

Contents
    - ``changed_fields`` / ``unchanged_fields``: partition the field list.
    - ``changes_by_name``: name → current value for every changed field.
    - ``changed_paths``: dotted leaf-level report for printing.
    - ``build_patch``: minimal object carrying only the delta.

Comparison modes
    *plain* (no ``default``): a field is changed unless both sides are absent
    or both compare equal.
    *default-aware* (``default`` given): additionally a current value equal to
    the default counts as "never customised" and is unchanged. Nested objects
    use the nested default found on ``default``.
"""

from __future__ import annotations

from typing import Any, Mapping, TypeVar

from ..domain.fields import clone, default_of, field_names, is_config, require_fields, values_equal
from ..domain.provenance import dotted_key

T = TypeVar("T")

_PLAIN: Any = object()


def changed_fields(base: T | None, current: T | None, *, default: T | None = None) -> tuple[str, ...]:
    """Return names of fields whose *current* value differs from *base*.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Person:
    ...     name: str | None = None
    ...     age: int = 0
    >>> changed_fields(Person(name="Fred"), Person(name="Fred", age=3))
    ('age',)
    >>> changed_fields(Person(age=10), Person(name="Fred"), default=Person())
    ('name',)
    """

    pair = _resolve_pair(base, current)
    if pair is None:
        return ()
    left, right = pair
    probe = _PLAIN if default is None else default
    return tuple(
        name
        for name in field_names(right)
        if _differs(getattr(right, name), getattr(left, name), _field_default(probe, name))
    )


def unchanged_fields(base: T | None, current: T | None, *, default: T | None = None) -> tuple[str, ...]:
    """Return the complement of :func:`changed_fields` in declaration order."""

    target = current if current is not None else base
    if target is None:
        return ()
    changed = set(changed_fields(base, current, default=default))
    return tuple(name for name in field_names(target) if name not in changed)


def changes_by_name(base: T | None, current: T | None, *, default: T | None = None) -> dict[str, Any]:
    """Map each changed field name to its value on *current*."""

    if current is None:
        return {}
    return {name: getattr(current, name) for name in changed_fields(base, current, default=default)}


def changed_paths(base: T | None, current: T | None, *, default: T | None = None) -> dict[str, Any]:
    """Return dotted leaf keys of every difference together with the current value.

    Nested configuration objects present on both sides are descended into so
    the report names ``"database.port"`` rather than ``"database"``.

    Examples
    --------
    >>> from dataclasses import dataclass, field
    >>> @dataclass
    ... class Database:
    ...     host: str = "localhost"
    ...     port: int = 5432
    >>> @dataclass
    ... class Settings:
    ...     database: Database = field(default_factory=Database)
    >>> changed_paths(Settings(), Settings(Database(port=6543)))
    {'database.port': 6543}
    """

    pair = _resolve_pair(base, current)
    if pair is None:
        return {}
    left, right = pair
    collected: dict[str, Any] = {}
    _collect_paths(right, left, _PLAIN if default is None else default, [], collected)
    return collected


def build_patch(config_type: type[T], changes: Mapping[str, Any]) -> T:
    """Return a fresh default instance of *config_type* carrying only *changes*.

    Raises
    ------
    UsageError
        When *changes* names a field that *config_type* does not declare.
    """

    patch = default_of(config_type)
    require_fields(patch, changes.keys())
    for name, value in changes.items():
        setattr(patch, name, clone(value))
    return patch


def _resolve_pair(base: Any, current: Any) -> tuple[Any, Any] | None:
    """Substitute a default instance for a missing side; ``None`` when both are missing."""

    if current is None and base is None:
        return None
    if base is None:
        return default_of(type(current)), current
    if current is None:
        return base, default_of(type(base))
    return base, current


def _differs(current: Any, base: Any, default: Any) -> bool:
    """Return ``True`` when ``current`` counts as a change relative to ``base``."""

    if _comparable_configs(current, base):
        nested = _nested_probe(current, default)
        return any(
            _differs(getattr(current, name), getattr(base, name), _field_default(nested, name))
            for name in field_names(current)
        )
    if current is None and base is None:
        return False
    if values_equal(current, base):
        return False
    if default is not _PLAIN and current is not None and values_equal(current, default):
        return False
    return True


def _collect_paths(current: Any, base: Any, default: Any, segments: list[str], collected: dict[str, Any]) -> None:
    """Descend through nested objects recording leaf differences."""

    for name in field_names(current):
        value = getattr(current, name)
        baseline = getattr(base, name)
        fallback = _field_default(default, name)
        if _comparable_configs(value, baseline):
            _collect_paths(value, baseline, _nested_probe(value, fallback), [*segments, name], collected)
        elif _differs(value, baseline, fallback):
            collected[dotted_key(segments, name)] = value


def _comparable_configs(left: Any, right: Any) -> bool:
    """Return ``True`` when both values are configuration objects with the same fields."""

    return is_config(left) and is_config(right) and field_names(left) == field_names(right)


def _field_default(probe: Any, name: str) -> Any:
    """Return the default for *name* on *probe*, keeping plain mode sticky."""

    if probe is _PLAIN:
        return _PLAIN
    return getattr(probe, name, None)


def _nested_probe(current: Any, fallback: Any) -> Any:
    """Return the default to use below a nested object."""

    if fallback is _PLAIN:
        return _PLAIN
    if is_config(fallback) and field_names(fallback) == field_names(current):
        return fallback
    return default_of(type(current))
