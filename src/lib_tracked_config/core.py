"""Composition root for ``lib_tracked_config``.

Purpose
-------
Orchestrate an ordered stack of configuration sources: merge them into one
working object, answer "what did the user change" at any later point, and
persist only those changes back to the primary source.

Contents
--------
* :class:`ConfigurationManager` – load phase at construction, query/save
  afterwards.
* :func:`read_config` – one-shot helper returning the merged object.
* :func:`_wrap_source` / :func:`_select_primary` – construction helpers.

System Role
-----------
Connects sources (:mod:`lib_tracked_config.adapters.sources`) with the merge
engine and change tracker (:mod:`lib_tracked_config.application`) while
emitting structured observability signals. Collaborator failures propagate
unchanged; the manager fails fast on an invalid source stack and never
retries.
"""

from __future__ import annotations

import os
from typing import Any, Generic, Iterable, Sequence, TypeVar, Union

from .adapters.sources.file import FileConfigurationSource
from .application.changes import build_patch, changed_paths, changes_by_name
from .application.merge import merge, merge_with_provenance
from .application.ports import ConfigurationSource, Validator
from .domain.errors import (
    ChangeTrackingError,
    ReadOnlySourceError,
    SourceConfigurationError,
    ValidationError,
)
from .domain.fields import default_of, field_names, require_fields
from .domain.provenance import SourceInfo
from .observability import log_debug, log_error, log_info, make_event

T = TypeVar("T")

SourceLike = Union[ConfigurationSource[T], str, "os.PathLike[str]"]


class ConfigurationManager(Generic[T]):
    """Merge a source stack into a live object and track changes to it.

    Why
    ----
    Applications mutate their configuration object from code that knows
    nothing about where values came from. Comparing the live object against a
    baseline recomputed from the non-primary sources recovers exactly what the
    user customised, without any change-notification wiring.

    What
    ----
    * ``out`` is the merge of every source (primary included) in stack order.
      Callers own it and may mutate it freely.
    * :meth:`base` is the merge of every non-primary source, recomputed per
      call so it reflects invalidated sources.
    * :meth:`save_changes` writes a patch holding only the delta to the
      primary source (or an explicit target).

    Parameters
    ----------
    config_type:
        Dataclass type of every source's object.
    *sources:
        Ordered sources; ``str``/``PathLike`` entries are wrapped into
        :class:`FileConfigurationSource`.
    validator:
        Optional validator run once, on the merged object, during
        construction. Individual source objects are not validated on their
        own, so a later override makes an earlier failing value moot.
    always_serialize / never_serialize:
        Field names forced into or out of every saved delta.

    Raises
    ------
    SourceConfigurationError
        Empty stack, more than one primary source, a required source without
        an object, or a source object of the wrong type.
    ValidationError
        The validator rejected the merged object.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> from lib_tracked_config.adapters.sources.memory import MemorySource
    >>> @dataclass
    ... class Person:
    ...     name: str | None = None
    ...     age: int = 0
    >>> local = MemorySource(Person(name="Tim"), name="local", primary_source=True)
    >>> manager = ConfigurationManager(Person, MemorySource(Person(age=10), name="site"), local)
    >>> manager.out
    Person(name='Tim', age=10)
    >>> manager.out.age = 42
    >>> manager.changes_by_name()
    {'name': 'Tim', 'age': 42}
    >>> manager.save_changes()
    ('name', 'age')
    >>> local.config
    Person(name='Tim', age=42)
    """

    def __init__(
        self,
        config_type: type[T],
        *sources: SourceLike[T],
        validator: Validator[T] | None = None,
        always_serialize: Iterable[str] = (),
        never_serialize: Iterable[str] = (),
    ) -> None:
        if not sources:
            raise SourceConfigurationError("ConfigurationManager needs at least one configuration source")
        default_of(config_type)
        self.config_type = config_type
        self.sources: tuple[ConfigurationSource[T], ...] = tuple(_wrap_source(entry, config_type) for entry in sources)
        self.primary: ConfigurationSource[T] = _select_primary(self.sources)
        self.validator = validator
        self._always: set[str] = set(require_fields(config_type, always_serialize))
        self._never: set[str] = set(require_fields(config_type, never_serialize))
        self._change_tracking = False
        self.out, self._provenance = self._load()
        self.enable_change_tracking()

    @property
    def change_tracking_enabled(self) -> bool:
        """Whether changes to :attr:`out` are currently tracked."""

        return self._change_tracking

    def enable_change_tracking(self) -> None:
        """Enable change tracking; a no-op when already enabled."""

        self._change_tracking = True

    def disable_change_tracking(self) -> None:
        """Refuse to disable change tracking.

        Raises
        ------
        ChangeTrackingError
            Always while tracking is enabled; pausing tracking is not supported.
        """

        if not self._change_tracking:
            return
        raise ChangeTrackingError("Change tracking cannot be disabled once enabled")

    def base(self) -> T:
        """Return a fresh merge of every non-primary source in stack order."""

        return merge(
            (source.config for source in self.sources if source is not self.primary),
            config_type=self.config_type,
        )

    def changes_by_name(self) -> dict[str, Any]:
        """Return ``{field: value}`` for every field the user customised.

        Primary-source values that differ from the baseline (ignoring values
        that merely equal the type default) come first; live edits to
        :attr:`out` relative to the baseline are layered on top and win.
        """

        baseline = self.base()
        changes = changes_by_name(baseline, self.primary.config, default=default_of(self.config_type))
        changes.update(changes_by_name(baseline, self.out))
        return self._ordered(changes)

    def changed_fields(self) -> tuple[str, ...]:
        """Return the names reported by :meth:`changes_by_name` in declaration order."""

        return tuple(self.changes_by_name())

    def unchanged_fields(self) -> tuple[str, ...]:
        """Return every field not reported by :meth:`changed_fields`."""

        changed = set(self.changed_fields())
        return tuple(name for name in field_names(self.config_type) if name not in changed)

    def changed_paths(self) -> dict[str, Any]:
        """Return dotted leaf keys of every change, for printing and inspection."""

        baseline = self.base()
        paths = changed_paths(baseline, self.primary.config, default=default_of(self.config_type))
        paths.update(changed_paths(baseline, self.out))
        return paths

    def origin(self, key: str) -> SourceInfo | None:
        """Return which source supplied *key* during the initial merge.

        Examples
        --------
        >>> from dataclasses import dataclass
        >>> from lib_tracked_config.adapters.sources.memory import MemorySource
        >>> @dataclass
        ... class Person:
        ...     name: str | None = None
        >>> manager = ConfigurationManager(Person, MemorySource(Person(name="Fred"), name="site"))
        >>> manager.origin("name")
        {'layer': 'site', 'path': None, 'key': 'name'}
        >>> manager.origin("missing") is None
        True
        """

        return self._provenance.get(key)

    def always_serialize(self, name: str) -> None:
        """Force *name* into every saved delta, even when unchanged."""

        require_fields(self.config_type, [name])
        self._never.discard(name)
        self._always.add(name)

    def never_serialize(self, name: str) -> None:
        """Keep *name* out of every saved delta, even when changed."""

        require_fields(self.config_type, [name])
        self._always.discard(name)
        self._never.add(name)

    def delta(self) -> dict[str, Any]:
        """Return the changes :meth:`save_changes` would persist.

        Starts from :meth:`changes_by_name`, adds always-serialized fields with
        their value on :attr:`out` and removes never-serialized fields.
        """

        changes = self.changes_by_name()
        for name in self._always:
            changes.setdefault(name, getattr(self.out, name))
        for name in self._never:
            changes.pop(name, None)
        return self._ordered(changes)

    def save_changes(self, target: SourceLike[T] | None = None) -> tuple[str, ...]:
        """Persist the delta to *target* (default: the primary source).

        A patch object (fresh default instance carrying only the delta) is
        handed to the target's ``partial_save`` together with the delta's
        field names, so fields outside the delta stay untouched in storage.

        Returns
        -------
        tuple[str, ...]
            Field names that were written.

        Raises
        ------
        ReadOnlySourceError
            When the destination refuses writes.
        """

        destination = self.primary if target is None else _wrap_source(target, self.config_type)
        if destination.read_only:
            raise ReadOnlySourceError(f"Cannot save changes to read-only source {destination.name}")
        changes = self.delta()
        names = tuple(changes)
        patch = build_patch(self.config_type, changes)
        destination.partial_save(patch, names)
        log_info("changes_saved", **make_event(destination.name, destination.path, {"fields": list(names)}))
        return names

    def invalidate_sources(self) -> None:
        """Invalidate every source so the baseline reflects current storage."""

        for source in self.sources:
            source.invalidate()

    def reload(self) -> T:
        """Invalidate every source and rebuild :attr:`out` from current storage.

        Unsaved mutations of the previous working object are discarded; the
        new object is returned and replaces :attr:`out`.
        """

        self.invalidate_sources()
        self.out, self._provenance = self._load()
        return self.out

    def _load(self) -> tuple[T, dict[str, SourceInfo]]:
        """Materialise every source, merge them and run the validator."""

        layers: list[tuple[str, T | None, str | None]] = []
        for source in self.sources:
            obj = source.config
            if obj is None:
                if source.required:
                    log_error("source_missing", **make_event(source.name, source.path, {"required": True}))
                    raise SourceConfigurationError(f"Required configuration source {source.name} provided no object")
                log_debug("source_absent", **make_event(source.name, source.path))
            elif not isinstance(obj, self.config_type):
                raise SourceConfigurationError(
                    f"Source {source.name} provided {type(obj).__name__}, expected {self.config_type.__name__}"
                )
            else:
                log_debug("source_loaded", **make_event(source.name, source.path, {"primary": source is self.primary}))
            layers.append((source.name, obj, source.path))

        merged, meta = merge_with_provenance(layers, config_type=self.config_type)
        if self.validator is not None:
            _validate(self.validator, merged)
        log_info("configuration_merged", source="final", path=None, total_sources=len(layers))
        return merged, meta

    def _ordered(self, changes: dict[str, Any]) -> dict[str, Any]:
        return {name: changes[name] for name in field_names(self.config_type) if name in changes}

    def __repr__(self) -> str:
        return f"ConfigurationManager({self.config_type.__name__}, sources={len(self.sources)}, primary={self.primary.name!r})"


def read_config(config_type: type[T], *sources: SourceLike[T], validator: Validator[T] | None = None) -> T:
    """Return the merged configuration object for *sources*.

    Convenience wrapper for callers that never save changes back.
    """

    return ConfigurationManager(config_type, *sources, validator=validator).out


def _validate(validator: Validator[T], merged: T) -> None:
    """Run *validator* on the merged object, logging rejections before re-raising."""

    try:
        validator.validate(merged)
    except ValidationError as exc:
        log_error("configuration_invalid", source="final", path=None, error=str(exc))
        raise


def _wrap_source(entry: SourceLike[T], config_type: type[T]) -> ConfigurationSource[T]:
    """Wrap plain paths into :class:`FileConfigurationSource`."""

    if isinstance(entry, (str, os.PathLike)):
        return FileConfigurationSource(entry, config_type)
    return entry


def _select_primary(sources: Sequence[ConfigurationSource[T]]) -> ConfigurationSource[T]:
    """Return the flagged primary source, or the last one when none is flagged."""

    flagged = [source for source in sources if source.primary_source]
    if len(flagged) > 1:
        names = ", ".join(source.name for source in flagged)
        raise SourceConfigurationError(f"Only one primary source is allowed, found {len(flagged)}: {names}")
    return flagged[0] if flagged else sources[-1]


__all__ = [
    "ConfigurationManager",
    "read_config",
]
