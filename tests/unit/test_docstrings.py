"""Run the usage examples embedded in module docstrings."""

from __future__ import annotations

import doctest
from types import ModuleType

import pytest

from lib_tracked_config import core, observability
from lib_tracked_config.adapters.serializers import mapping, structured
from lib_tracked_config.adapters.sources import file, memory
from lib_tracked_config.application import changes, merge, validation
from lib_tracked_config.domain import fields, provenance
from lib_tracked_config.examples import demo

MODULES = [core, observability, mapping, structured, file, memory, changes, merge, validation, fields, provenance, demo]


@pytest.mark.parametrize("module", MODULES, ids=lambda module: module.__name__)
def test_docstring_examples(module: ModuleType) -> None:
    result = doctest.testmod(module, optionflags=doctest.ELLIPSIS)
    assert result.failed == 0
