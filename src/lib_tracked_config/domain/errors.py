"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by sources, serializers, the merge
engine and the :class:`~lib_tracked_config.core.ConfigurationManager`. The
hierarchy lives in the domain layer so outer layers may depend on it without
creating import cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class for all library failures.
* :class:`InvalidFormat` – serialized data could not be turned into an object.
* :class:`ValidationError` – a loaded configuration failed semantic checks.
* :class:`RuleBasedValidationError` – a single validator rule rejected an object.
* :class:`NotFound` – an expected backing resource is missing.
* :class:`SourceConfigurationError` – the source stack itself is invalid.
* :class:`UsageError` – an operation was requested in an unsupported way.
* :class:`ChangeTrackingError` / :class:`ReadOnlySourceError` – usage errors
  with a dedicated meaning.

System Role
-----------
Collaborators raise these exceptions and the manager lets them propagate
unchanged. Callers catch :class:`ConfigError` to handle all library failures
uniformly.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_tracked_config``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class InvalidFormat(ConfigError):
    """Raised when serialized input cannot be turned into a typed object.

    Typical Sources
    ---------------
    Structured serializers (:mod:`json`, :mod:`yaml`, :mod:`tomllib`,
    :mod:`xml.etree.ElementTree`) and the mapping codec in
    :mod:`lib_tracked_config.domain.fields`.
    """


class ValidationError(ConfigError):
    """Signifies that a syntactically valid configuration failed semantic checks.

    Raised by pluggable validators during manager construction; the manager
    never catches it.
    """


class RuleBasedValidationError(ValidationError):
    """Raised by :class:`~lib_tracked_config.application.validation.RuleBasedValidator`."""


class NotFound(ConfigError):
    """Represents a missing-but-optional resource (usually a file).

    File-backed sources translate it into an absent configuration object so
    the ``required`` flag decides whether absence is fatal.
    """


class SourceConfigurationError(ConfigError):
    """The source stack handed to the manager is unusable.

    Raised for more than one primary source, an empty stack, or a required
    source whose object is absent.
    """


class UsageError(ConfigError):
    """An operation was invoked in a way the library does not support."""


class ChangeTrackingError(UsageError):
    """Change tracking cannot be disabled once it has been enabled."""


class ReadOnlySourceError(UsageError):
    """A read-only source (or serializer) was asked to persist data."""
