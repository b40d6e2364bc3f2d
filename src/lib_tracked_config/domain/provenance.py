"""Provenance records describing which source supplied a merged value.

Purpose
-------
Let tooling (CLI, logging, interactive debugging) explain why the working
configuration holds a given value after the initial merge.

Contents
--------
* :class:`SourceInfo` – typed metadata for one dotted key.
* :func:`dotted_key` – join nested field names.
* :func:`clear_branch` – drop provenance for a key and its descendants.
"""

from __future__ import annotations

from typing import Sequence, TypedDict


class SourceInfo(TypedDict):
    """Describe the origin of a merged field value.

    Attributes
    ----------
    layer:
        Name of the source that supplied the value.
    path:
        Backing file path, ``None`` for in-memory sources.
    key:
        Fully qualified dotted key (for example ``"database.port"``).
    """

    layer: str
    path: str | None
    key: str


def dotted_key(segments: Sequence[str], key: str) -> str:
    """Join *segments* and *key* with dots, skipping empties.

    Examples
    --------
    >>> dotted_key([], "age"), dotted_key(["database"], "port")
    ('age', 'database.port')
    """

    return ".".join([*segments, key]) if segments else key


def clear_branch(meta: dict[str, SourceInfo], prefix: str) -> None:
    """Remove provenance entries that belong to *prefix* or its descendants."""

    for meta_key in list(meta.keys()):
        if meta_key == prefix or meta_key.startswith(prefix + "."):
            meta.pop(meta_key, None)
