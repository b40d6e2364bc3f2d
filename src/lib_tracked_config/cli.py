"""CLI adapter for ``lib_tracked_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect how a stack of configuration files merges and what a
primary file customises, without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_read` – merges files and prints the result as JSON (optionally
  with provenance).
* :func:`cli_changes` – prints the change report of the primary file.
* :func:`cli_demo` – runs the bundled walkthrough.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It only talks to
:class:`lib_tracked_config.core.ConfigurationManager`; ``lib_cli_exit_tools``
centralises the exit code strategy so all commands behave consistently across
shells and CI.
"""

from __future__ import annotations

import json
import sys
from importlib import import_module, metadata
from pathlib import Path
from typing import Any, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.serializers.mapping import to_mapping
from .adapters.sources.file import FileConfigurationSource
from .core import ConfigurationManager
from .domain.fields import field_names, is_config, is_config_type
from .examples import run_demo

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DIST_NAME: Final[str] = "lib_tracked_config"

_FILE_ARGUMENT = click.Path(path_type=Path, file_okay=True, dir_okay=False)


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version(_DIST_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Typed layered configuration with change tracking",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DIST_NAME,
    message=f"{_DIST_NAME} version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DIST_NAME)
    except metadata.PackageNotFoundError:
        click.echo(f"{_DIST_NAME} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DIST_NAME)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.11')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("read", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--type", "type_path", required=True, help="Configuration dataclass as 'package.module:ClassName'")
@click.option("--primary", type=_FILE_ARGUMENT, default=None, help="File that acts as primary source (default: last)")
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
@click.option(
    "--provenance/--no-provenance",
    default=False,
    help="Include the source of every merged key in the output",
)
@click.argument("files", nargs=-1, required=True, type=_FILE_ARGUMENT)
def cli_read(
    type_path: str,
    primary: Optional[Path],
    indent: Optional[int],
    provenance: bool,
    files: Sequence[Path],
) -> None:
    """Merge FILES in order and print the resulting configuration as JSON."""

    manager = _build_manager(type_path, files, primary)
    config = to_mapping(manager.out)
    if provenance:
        meta = {key: manager.origin(key) for key in _provenance_keys(manager)}
        click.echo(json.dumps({"config": config, "provenance": meta}, indent=indent, default=str))
        return
    click.echo(json.dumps(config, indent=indent, default=str))


@cli.command("changes", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--type", "type_path", required=True, help="Configuration dataclass as 'package.module:ClassName'")
@click.option("--primary", type=_FILE_ARGUMENT, default=None, help="File that acts as primary source (default: last)")
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
@click.argument("files", nargs=-1, required=True, type=_FILE_ARGUMENT)
def cli_changes(type_path: str, primary: Optional[Path], indent: Optional[int], files: Sequence[Path]) -> None:
    """Print the fields the primary file customises relative to the others."""

    manager = _build_manager(type_path, files, primary)
    changes = {name: _jsonable(value) for name, value in manager.changes_by_name().items()}
    click.echo(json.dumps(changes, indent=indent, default=str))


@cli.command("demo", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--destination",
    type=click.Path(path_type=Path, file_okay=False, dir_okay=True, resolve_path=True),
    required=True,
    help="Directory that receives the demo files",
)
@click.option("--force/--no-force", default=False, help="Rewrite demo files that already exist")
def cli_demo(destination: Path, force: bool) -> None:
    """Run the load → mutate → report → save walkthrough inside DESTINATION."""

    for line in run_demo(destination, force=force):
        click.echo(line)


def _build_manager(type_path: str, files: Sequence[Path], primary: Optional[Path]) -> ConfigurationManager[Any]:
    """Wrap *files* into sources, flagging *primary* when given."""

    config_type = _import_config_type(type_path)
    if primary is not None and primary not in files:
        raise click.BadParameter("The primary file must also be listed in FILES.", param_hint="--primary")
    sources = [FileConfigurationSource(path, config_type, primary_source=path == primary) for path in files]
    return ConfigurationManager(config_type, *sources)


def _import_config_type(type_path: str) -> type:
    """Resolve ``package.module:ClassName`` to a dataclass type."""

    module_name, _, attribute = type_path.partition(":")
    if not module_name or not attribute:
        raise click.BadParameter("Use the form 'package.module:ClassName'.", param_hint="--type")
    try:
        module = import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"Cannot import {module_name}: {exc}", param_hint="--type") from exc
    config_type = getattr(module, attribute, None)
    if not is_config_type(config_type):
        raise click.BadParameter(f"{type_path} is not a dataclass type", param_hint="--type")
    return config_type


def _provenance_keys(manager: ConfigurationManager[Any]) -> list[str]:
    """Return dotted keys that carry provenance, in a stable order."""

    return sorted(key for key in _dotted_keys(manager.out) if manager.origin(key) is not None)


def _dotted_keys(obj: Any, prefix: str = "") -> list[str]:
    keys: list[str] = []
    for name in field_names(obj):
        value = getattr(obj, name)
        dotted = f"{prefix}{name}"
        keys.append(dotted)
        if is_config(value):
            keys.extend(_dotted_keys(value, f"{dotted}."))
    return keys


def _jsonable(value: Any) -> Any:
    return to_mapping(value) if is_config(value) else value


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DIST_NAME,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
