"""Public package surface for ``lib_tracked_config``.

Merge a strongly typed configuration object from an ordered stack of partial
sources, track which fields were customised, and persist only those fields
back to the primary source. The names exported here are the stable API; the
subpackages (``domain``, ``application``, ``adapters``) may be reorganised.
"""

from __future__ import annotations

from .adapters.serializers.structured import (
    JSONSerializer,
    TOMLSerializer,
    XMLSerializer,
    YAMLSerializer,
    serializer_for,
)
from .adapters.sources.file import FileConfigurationSource
from .adapters.sources.memory import MemorySource
from .application.changes import build_patch, changed_fields, changed_paths, changes_by_name, unchanged_fields
from .application.merge import merge, merge_with, merge_with_provenance
from .application.ports import ConfigurationSource, PartialSerializer, Validator
from .application.validation import RuleBasedValidator
from .core import ConfigurationManager, read_config
from .domain.errors import (
    ChangeTrackingError,
    ConfigError,
    InvalidFormat,
    NotFound,
    ReadOnlySourceError,
    RuleBasedValidationError,
    SourceConfigurationError,
    UsageError,
    ValidationError,
)
from .domain.fields import default_of, field_names, values_equal
from .domain.provenance import SourceInfo
from .observability import bind_trace_id, get_logger

__all__ = [
    "ChangeTrackingError",
    "ConfigError",
    "ConfigurationManager",
    "ConfigurationSource",
    "FileConfigurationSource",
    "InvalidFormat",
    "JSONSerializer",
    "MemorySource",
    "NotFound",
    "PartialSerializer",
    "ReadOnlySourceError",
    "RuleBasedValidationError",
    "RuleBasedValidator",
    "SourceConfigurationError",
    "SourceInfo",
    "TOMLSerializer",
    "UsageError",
    "ValidationError",
    "Validator",
    "XMLSerializer",
    "YAMLSerializer",
    "bind_trace_id",
    "build_patch",
    "changed_fields",
    "changed_paths",
    "changes_by_name",
    "default_of",
    "field_names",
    "get_logger",
    "merge",
    "merge_with",
    "merge_with_provenance",
    "read_config",
    "serializer_for",
    "unchanged_fields",
    "values_equal",
]
