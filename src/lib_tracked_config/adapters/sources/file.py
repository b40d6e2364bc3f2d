"""File-backed configuration source.

Purpose
-------
Implement :class:`lib_tracked_config.application.ports.ConfigurationSource`
for a single structured file (XML, JSON, YAML or read-only TOML).

Contents
--------
* :class:`FileConfigurationSource` – lazily loads and caches the typed object,
  supports full and partial saves.
* :func:`_read_bytes` / :func:`_write_bytes` – tiny filesystem helpers that
  narrate how files are read and written.

System Role
-----------
Plain paths handed to :class:`lib_tracked_config.core.ConfigurationManager`
are wrapped into this source. A missing file is an *absent* object (the
``required`` flag decides whether that is fatal); malformed content raises
:class:`~lib_tracked_config.domain.errors.InvalidFormat` unchanged.
"""

from __future__ import annotations

import os
from io import BytesIO
from pathlib import Path
from typing import Generic, Iterable, TypeVar

from ...domain.errors import NotFound, ReadOnlySourceError
from ...domain.fields import require_fields
from ...observability import log_debug, make_event
from ..serializers.mapping import to_mapping
from ..serializers.structured import BaseSerializer, serializer_for

T = TypeVar("T")


class FileConfigurationSource(Generic[T]):
    """Configuration source reading and writing one file.

    Parameters
    ----------
    path:
        File location; the suffix selects the serializer unless *serializer*
        is given.
    config_type:
        Dataclass type produced by deserialization.
    serializer:
        Explicit serializer overriding the suffix lookup.
    name:
        Label used for provenance; defaults to the file name.
    primary_source / required / persistent_source:
        Stack flags.
    read_only:
        Defaults to the serializer's own capability (TOML is read-only).

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> from tempfile import TemporaryDirectory
    >>> @dataclass
    ... class Person:
    ...     name: str | None = None
    ...     age: int = 0
    >>> tmp = TemporaryDirectory()
    >>> source = FileConfigurationSource(Path(tmp.name) / "person.json", Person)
    >>> source.config is None
    True
    >>> source.save(Person(name="Fred", age=3))
    >>> source.config
    Person(name='Fred', age=3)
    >>> tmp.cleanup()
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        config_type: type[T],
        *,
        serializer: BaseSerializer[T] | None = None,
        name: str | None = None,
        primary_source: bool = False,
        required: bool = False,
        persistent_source: bool = True,
        read_only: bool | None = None,
    ) -> None:
        self.path: str | None = os.fspath(path)
        self.config_type = config_type
        self.serializer = serializer or serializer_for(self.path, config_type)
        self.name = name or Path(self.path).name
        self.primary_source = primary_source
        self.required = required
        self.persistent_source = persistent_source
        self.read_only = self.serializer.read_only if read_only is None else read_only
        self._config: T | None = None
        self._loaded = False

    @property
    def config(self) -> T | None:
        """Return the cached object, loading it on first access."""

        if not self._loaded:
            self._config = self._load()
            self._loaded = True
        return self._config

    def invalidate(self) -> None:
        """Drop the cached object so the next access re-reads the file."""

        self._config = None
        self._loaded = False

    def save(self, obj: T) -> None:
        """Overwrite the file with every field of *obj*."""

        self._guard_writable()
        buffer = BytesIO()
        self.serializer.serialize(buffer, obj)
        _write_bytes(self._file, buffer.getvalue())
        log_debug("config_file_written", **make_event(self.name, self.path, {"mode": "full"}))
        self.invalidate()

    def partial_save(self, obj: T, field_names: Iterable[str]) -> None:
        """Write only *field_names* of *obj*, preserving every other stored key.

        Fields whose value is ``None`` are removed from the stored document;
        absence is how an unset field is persisted. A nested configuration
        field is written as a whole, so sub-values *obj* inherited from other
        layers become pinned in this file once the field is saved.
        """

        self._guard_writable()
        names = require_fields(obj, field_names)
        stored = self._stored_mapping()
        updates = to_mapping(obj, names)
        for name in names:
            if name in updates:
                stored[name] = updates[name]
            else:
                stored.pop(name, None)
        buffer = BytesIO()
        self.serializer.dump_mapping(buffer, stored)
        _write_bytes(self._file, buffer.getvalue())
        log_debug("config_file_written", **make_event(self.name, self.path, {"mode": "partial", "fields": list(names)}))
        self.invalidate()

    @property
    def _file(self) -> Path:
        return Path(self.path or "")

    def _load(self) -> T | None:
        """Deserialize the file, returning ``None`` when it does not exist."""

        try:
            payload = _read_bytes(self._file)
        except NotFound:
            log_debug("config_file_missing", **make_event(self.name, self.path))
            return None
        obj = self.serializer.deserialize(BytesIO(payload))
        log_debug("config_file_loaded", **make_event(self.name, self.path, {"format": self.serializer.format_name}))
        return obj

    def _stored_mapping(self) -> dict[str, object]:
        """Return the raw mapping currently on disk, or an empty one."""

        try:
            payload = _read_bytes(self._file)
        except NotFound:
            return {}
        return self.serializer.load_mapping(BytesIO(payload))

    def _guard_writable(self) -> None:
        if self.read_only:
            raise ReadOnlySourceError(f"Source {self.name} ({self.path}) is read-only")

    def __repr__(self) -> str:
        return f"FileConfigurationSource(path={self.path!r}, primary_source={self.primary_source})"


def _read_bytes(path: Path) -> bytes:
    """Read *path* as bytes, raising :class:`NotFound` when the file is missing."""

    if not path.is_file():
        raise NotFound(f"Configuration file not found: {path}")
    payload = path.read_bytes()
    log_debug("config_file_read", path=str(path), size=len(payload))
    return payload


def _write_bytes(path: Path, payload: bytes) -> None:
    """Write *payload* to *path*, creating parent directories when missing."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)
