"""Adapter contract tests for the shipped ports implementations.

Purpose
-------
Verify the shipped sources, serializers and validators continue to satisfy
the application-layer ports defined in
``src/lib_tracked_config/application/ports.py`` so the manager can rely on
structural typing alone.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_tracked_config.adapters.serializers.structured import (
    JSONSerializer,
    TOMLSerializer,
    XMLSerializer,
    YAMLSerializer,
)
from lib_tracked_config.adapters.sources.file import FileConfigurationSource
from lib_tracked_config.adapters.sources.memory import MemorySource
from lib_tracked_config.application import ports
from lib_tracked_config.application.validation import RuleBasedValidator
from tests.support import Person


def test_memory_source_contract() -> None:
    assert isinstance(MemorySource(Person()), ports.ConfigurationSource)


def test_file_source_contract(tmp_path: Path) -> None:
    assert isinstance(FileConfigurationSource(tmp_path / "person.xml", Person), ports.ConfigurationSource)


@pytest.mark.parametrize("serializer_cls", [JSONSerializer, YAMLSerializer, XMLSerializer, TOMLSerializer])
def test_serializer_contract(serializer_cls: type) -> None:
    assert isinstance(serializer_cls(Person), ports.PartialSerializer)


def test_validator_contract() -> None:
    assert isinstance(RuleBasedValidator(), ports.Validator)


def test_plain_object_is_not_a_source() -> None:
    assert not isinstance(Person(), ports.ConfigurationSource)
