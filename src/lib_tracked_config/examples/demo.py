"""Runnable walkthrough of load → mutate → report → save.

Purpose
-------
Show the library end to end with real files. A shared site file and a
user-local file are merged, the working object is mutated by code that never
sees the manager, the change report is printed, and only the changes are
written to a new file.

Contents
    - ``DemoConfig``: the configuration type used by the walkthrough.
    - ``DemoFile``: dataclass capturing a relative path and text content.
    - ``write_demo_files``: writes ``site.xml`` and ``local.xml``.
    - ``run_demo``: performs the walkthrough and returns the printed lines.
    - ``_write_files`` / ``_should_write`` / ``_ensure_parent``: tiny
      filesystem helpers.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from ..core import ConfigurationManager

SITE_FILE = "site.xml"
LOCAL_FILE = "local.xml"
OUTPUT_FILE = "out.xml"


@dataclass
class DemoConfig:
    """Configuration used by the walkthrough; defaults mimic a fresh install."""

    name: str = "Timothy"
    age: int = 0
    connection_string: str = "localhost"

    def describe(self) -> str:
        return f'Hi, my name is {self.name}. I am {self.age} years old and I am a web server at "{self.connection_string}".'


@dataclass(slots=True)
class DemoFile:
    """A single demo file to be written to disk."""

    relative_path: Path
    content: str


def write_demo_files(destination: str | Path, *, force: bool = False) -> list[Path]:
    """Write the demo XML layers under *destination*.

    Returns the paths written during this call; existing files are skipped
    unless *force* is set.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> sorted(path.name for path in write_demo_files(tmp.name))
    ['local.xml', 'site.xml']
    >>> write_demo_files(tmp.name)
    []
    >>> tmp.cleanup()
    """

    return _write_files(Path(destination), _demo_files(), force)


def run_demo(destination: str | Path, *, force: bool = False) -> list[str]:
    """Run the walkthrough inside *destination* and return the report lines.

    The demo files are created when missing (or rewritten with *force*).
    ``local.xml`` is listed last and therefore primary; ``site.xml`` forms the
    baseline. The changes are written to ``out.xml``, which is then merged
    over ``site.xml`` again.
    """

    root = Path(destination)
    write_demo_files(root, force=force)
    manager = ConfigurationManager(DemoConfig, root / SITE_FILE, root / LOCAL_FILE)
    lines: list[str] = []
    lines.extend(_report(manager))

    lines.append(manager.out.describe())
    _manage_my_config(manager.out)
    lines.append(manager.out.describe())
    lines.extend(_report(manager))

    written = manager.save_changes(root / OUTPUT_FILE)
    lines.append(f"Saved {', '.join(written) or 'nothing'} to {OUTPUT_FILE}.")

    reloaded = ConfigurationManager(DemoConfig, root / SITE_FILE, root / OUTPUT_FILE)
    lines.append(f"After loading and merging '{OUTPUT_FILE}':")
    lines.append(reloaded.out.describe())
    return lines


def _manage_my_config(config: DemoConfig) -> None:
    """Mutate *config* without any knowledge of the manager."""

    config.age = 20


def _report(manager: ConfigurationManager[DemoConfig]) -> list[str]:
    """Describe the current change set."""

    changes = manager.changes_by_name()
    if not changes:
        return ["No changed properties."]
    return ["Changed Properties:", *(f"  {name}: {value}" for name, value in changes.items())]


def _demo_files() -> Iterator[DemoFile]:
    yield DemoFile(
        Path(LOCAL_FILE),
        '<?xml version="1.0" encoding="utf-8"?>\n<DemoConfig>\n  <name>Matthew</name>\n</DemoConfig>\n',
    )
    yield DemoFile(
        Path(SITE_FILE),
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<DemoConfig>\n  <connection_string>db.internal:5432</connection_string>\n</DemoConfig>\n",
    )


def _write_files(destination: Path, files: Iterator[DemoFile], force: bool) -> list[Path]:
    """Write all *files* under *destination* honouring the *force* flag."""

    written: list[Path] = []
    for demo_file in files:
        path = destination / demo_file.relative_path
        if not _should_write(path, force):
            continue
        _ensure_parent(path)
        path.write_text(demo_file.content, encoding="utf-8")
        written.append(path)
    return written


def _should_write(path: Path, force: bool) -> bool:
    """Return ``True`` when *path* should be written respecting *force*."""

    return force or not path.exists()


def _ensure_parent(path: Path) -> None:
    """Create parent directories for *path* when missing."""

    path.parent.mkdir(parents=True, exist_ok=True)
