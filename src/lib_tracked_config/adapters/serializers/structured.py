"""Structured serializers for configuration objects.

Purpose
-------
Convert byte streams into typed configuration objects and back. Each
serializer is a small wrapper around ``json``/``yaml``/``tomllib``/
``xml.etree.ElementTree`` so error handling and observability live in one
place; the object ↔ mapping conversion is shared via
:mod:`lib_tracked_config.adapters.serializers.mapping`.

Contents
--------
* :class:`BaseSerializer` – shared serialize/partial/deserialize flow.
* :class:`JSONSerializer` – JSON documents.
* :class:`YAMLSerializer` – YAML documents via PyYAML.
* :class:`XMLSerializer` – element-per-field XML, root tag = class name.
* :class:`TOMLSerializer` – read-only TOML (the standard library cannot write it).
* :func:`serializer_for` – pick a serializer by file suffix.

System Role
-----------
Used by :class:`lib_tracked_config.adapters.sources.file.FileConfigurationSource`
to load and persist configuration files.
"""

from __future__ import annotations

import json
import tomllib
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from pathlib import Path
from typing import IO, Any, Generic, Iterable, TypeVar

import yaml

from ...domain.errors import InvalidFormat, ReadOnlySourceError
from ...domain.fields import default_of, field_types
from ...observability import log_error
from .mapping import from_mapping, nested_type, to_mapping

T = TypeVar("T")


class BaseSerializer(Generic[T]):
    """Common flow shared by the structured serializers.

    Subclasses implement :meth:`load_mapping` and :meth:`dump_mapping`; the
    base class adds the typed layer on top.
    """

    format_name = "base"
    read_only = False

    def __init__(self, config_type: type[T]) -> None:
        self.config_type = config_type

    def serialize(self, stream: IO[bytes], obj: T) -> None:
        """Write every non-absent field of *obj* to *stream*."""

        self.dump_mapping(stream, to_mapping(obj))

    def partial_serialize(self, stream: IO[bytes], obj: T, field_names: Iterable[str]) -> None:
        """Write only *field_names* of *obj* to *stream*."""

        self.dump_mapping(stream, to_mapping(obj, field_names))

    def deserialize(self, stream: IO[bytes]) -> T:
        """Read *stream* into a fresh :attr:`config_type` instance."""

        return from_mapping(self.config_type, self.load_mapping(stream))

    def load_mapping(self, stream: IO[bytes]) -> dict[str, Any]:
        """Parse *stream* into a plain mapping."""

        raise NotImplementedError

    def dump_mapping(self, stream: IO[bytes], data: Mapping[str, Any]) -> None:
        """Write plain *data* to *stream*."""

        raise NotImplementedError

    def _invalid(self, exc: Exception) -> InvalidFormat:
        """Log and wrap a parser failure."""

        log_error("config_data_invalid", format=self.format_name, type=self.config_type.__name__, error=str(exc))
        return InvalidFormat(f"Invalid {self.format_name.upper()} for {self.config_type.__name__}: {exc}")

    @staticmethod
    def _ensure_mapping(data: object, *, format_name: str) -> dict[str, Any]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseSerializer._ensure_mapping({"key": 1}, format_name="json")
        {'key': 1}
        >>> BaseSerializer._ensure_mapping(42, format_name="json")
        Traceback (most recent call last):
        ...
        lib_tracked_config.domain.errors.InvalidFormat: json document did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"{format_name} document did not produce a mapping")
        return dict(data)


class JSONSerializer(BaseSerializer[T]):
    """Serialize configuration objects as indented JSON."""

    format_name = "json"

    def load_mapping(self, stream: IO[bytes]) -> dict[str, Any]:
        try:
            data = json.loads(stream.read() or b"{}")
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(exc) from exc
        return self._ensure_mapping(data, format_name=self.format_name)

    def dump_mapping(self, stream: IO[bytes], data: Mapping[str, Any]) -> None:
        text = json.dumps(dict(data), indent=2, ensure_ascii=False)
        stream.write((text + "\n").encode("utf-8"))


class YAMLSerializer(BaseSerializer[T]):
    """Serialize configuration objects as block-style YAML."""

    format_name = "yaml"

    def load_mapping(self, stream: IO[bytes]) -> dict[str, Any]:
        try:
            data = yaml.safe_load(stream.read())
        except yaml.YAMLError as exc:
            raise self._invalid(exc) from exc
        if data is None:
            data = {}
        return self._ensure_mapping(data, format_name=self.format_name)

    def dump_mapping(self, stream: IO[bytes], data: Mapping[str, Any]) -> None:
        text = yaml.safe_dump(dict(data), sort_keys=False, allow_unicode=True, default_flow_style=False)
        stream.write(text.encode("utf-8"))


class TOMLSerializer(BaseSerializer[T]):
    """Read TOML documents; writing is refused."""

    format_name = "toml"
    read_only = True

    def load_mapping(self, stream: IO[bytes]) -> dict[str, Any]:
        try:
            data = tomllib.load(stream)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(exc) from exc
        return self._ensure_mapping(data, format_name=self.format_name)

    def dump_mapping(self, stream: IO[bytes], data: Mapping[str, Any]) -> None:
        raise ReadOnlySourceError("TOML configuration files are read-only")


class XMLSerializer(BaseSerializer[T]):
    """Serialize configuration objects as XML with one element per field.

    The root element is named after the configuration class, nested
    configuration objects become nested elements and list items are written as
    repeated ``<item>`` children. Text is coerced back using the declared field
    annotations (``bool`` accepts ``true``/``false``/``1``/``0``).

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> from io import BytesIO
    >>> @dataclass
    ... class Person:
    ...     name: str | None = None
    ...     age: int = 0
    >>> buffer = BytesIO()
    >>> XMLSerializer(Person).serialize(buffer, Person(name="Fred", age=30))
    >>> _ = buffer.seek(0)
    >>> XMLSerializer(Person).deserialize(buffer)
    Person(name='Fred', age=30)
    """

    format_name = "xml"

    def load_mapping(self, stream: IO[bytes]) -> dict[str, Any]:
        try:
            root = ET.parse(stream).getroot()
        except ET.ParseError as exc:
            raise self._invalid(exc) from exc
        return self._element_to_mapping(root, self.config_type)

    def dump_mapping(self, stream: IO[bytes], data: Mapping[str, Any]) -> None:
        root = ET.Element(self.config_type.__name__)
        _append_children(root, data)
        ET.indent(root)
        ET.ElementTree(root).write(stream, encoding="utf-8", xml_declaration=True)

    def _element_to_mapping(self, element: ET.Element, config_type: type) -> dict[str, Any]:
        """Convert child elements of *element* into a mapping typed by *config_type*."""

        hints = field_types(config_type)
        defaults = default_of(config_type)
        result: dict[str, Any] = {}
        for child in element:
            hint = hints.get(child.tag)
            nested = nested_type(hint, getattr(defaults, child.tag, None))
            if nested is not None:
                result[child.tag] = self._element_to_mapping(child, nested)
            elif hint is list or len(child):
                result[child.tag] = [item.text or "" for item in child]
            else:
                result[child.tag] = self._coerce(hint, child.text, child.tag)
        return result

    def _coerce(self, hint: type | None, text: str | None, tag: str) -> Any:
        """Turn element *text* into the declared scalar type."""

        raw = text or ""
        if hint is bool:
            lowered = raw.strip().lower()
            if lowered in ("true", "1"):
                return True
            if lowered in ("false", "0"):
                return False
            raise self._invalid(ValueError(f"{tag} expects a boolean, got {raw!r}"))
        if hint in (int, float):
            try:
                return hint(raw.strip())
            except ValueError as exc:
                raise self._invalid(ValueError(f"{tag} expects {hint.__name__}, got {raw!r}")) from exc
        return raw


def _append_children(parent: ET.Element, data: Mapping[str, Any]) -> None:
    """Append one element per mapping entry to *parent*."""

    for key, value in data.items():
        child = ET.SubElement(parent, key)
        if isinstance(value, Mapping):
            _append_children(child, value)
        elif isinstance(value, list):
            for item in value:
                ET.SubElement(child, "item").text = _text(item)
        else:
            child.text = _text(value)


def _text(value: Any) -> str:
    """Render a scalar as XML text."""

    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


_SERIALIZERS: dict[str, type[BaseSerializer[Any]]] = {
    ".json": JSONSerializer,
    ".yaml": YAMLSerializer,
    ".yml": YAMLSerializer,
    ".xml": XMLSerializer,
    ".toml": TOMLSerializer,
}


def serializer_for(path: str | Path, config_type: type[T]) -> BaseSerializer[T]:
    """Return the serializer matching the suffix of *path*.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Demo:
    ...     flag: bool = False
    >>> type(serializer_for("settings.xml", Demo)).__name__
    'XMLSerializer'
    """

    suffix = Path(path).suffix.lower()
    try:
        serializer_cls = _SERIALIZERS[suffix]
    except KeyError as exc:
        supported = ", ".join(sorted(_SERIALIZERS))
        raise InvalidFormat(f"Unsupported configuration format {suffix or '(none)'} for {path}; use one of {supported}") from exc
    return serializer_cls(config_type)
