"""CLI adapter for ``lib_env_decoder`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose key derivation and environment decoding via a command line interface
so operators can check which variables an application reads, and what it
would decode from the current environment, without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_env_prefix` – helper exposing :func:`lib_env_decoder.core.default_env_prefix`.
* :func:`cli_derive_key` – prints the key derived for a single field name.
* :func:`cli_keys` – lists every key a dataclass would consult.
* :func:`cli_decode` – decodes the environment into a dataclass and prints JSON.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It invokes the composition root
(:class:`~lib_env_decoder.core.Decoder`) and never reaches into the planner or
populator directly. ``lib_cli_exit_tools`` centralises the exit code strategy
so all commands behave consistently across shells and CI.
"""

from __future__ import annotations

import dataclasses
import enum
import json
import sys
from datetime import date, datetime, timedelta
from importlib import import_module, metadata
from typing import Any, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .application.plan import instantiate
from .core import default_env_prefix as _default_env_prefix
from .core import new_decoder
from .domain.keys import derive_key

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when metadata is missing."""

    try:
        return metadata.version("lib_env_decoder")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Decode environment variables into typed dataclasses",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_env_decoder",
    message="lib_env_decoder version %(version)s",
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
        meta = metadata.metadata("lib_env_decoder")
    except metadata.PackageNotFoundError:
        click.echo("lib_env_decoder (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_env_decoder')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")
    for entry in meta.get_all("Project-URL") or []:
        click.echo(f"  {entry}")


@cli.command("env-prefix", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("slug")
def cli_env_prefix(slug: str) -> None:
    """Compute the canonical environment prefix for *slug*.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> runner = CliRunner()
    >>> result = runner.invoke(cli, ["env-prefix", "config-kit"])
    >>> result.output.strip()
    'CONFIG_KIT'
    """

    click.echo(_default_env_prefix(slug))


@cli.command("derive-key", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("name")
@click.option("--prefix", default="", help="Key namespace prepended to the derived segment")
@click.option("--tag", default=None, help="Explicit key segment used verbatim")
@click.option("--split-words/--no-split-words", default=False, help="Split camel-case words with underscores")
def cli_derive_key(name: str, prefix: str, tag: Optional[str], split_words: bool) -> None:
    """Print the environment key derived for the field *name*."""

    click.echo(derive_key(prefix, name, tag, split_words))


_PREFIX_OPTION = click.option("--prefix", default=None, help="Key namespace (e.g. MYAPP)")
_SLUG_OPTION = click.option("--slug", default=None, help="Derive the namespace from an application slug")


@cli.command("keys", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("target")
@_PREFIX_OPTION
@_SLUG_OPTION
def cli_keys(target: str, prefix: Optional[str], slug: Optional[str]) -> None:
    """List the environment keys read for the dataclass TARGET (``module:Class``)."""

    target_type = _load_target(target)
    decoder = new_decoder().with_prefix(_resolve_prefix(prefix, slug))
    for key in decoder.keys(target_type):
        click.echo(key)


@cli.command("decode", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("target")
@_PREFIX_OPTION
@_SLUG_OPTION
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
def cli_decode(target: str, prefix: Optional[str], slug: Optional[str], indent: Optional[int]) -> None:
    """Decode the environment into the dataclass TARGET (``module:Class``) and print JSON.

    Datetimes are rendered in ISO format, durations as seconds, and values of
    custom types through ``str``.
    """

    target_type = _load_target(target)
    decoder = new_decoder().with_prefix(_resolve_prefix(prefix, slug))
    instance = decoder.decode(instantiate(target_type))
    click.echo(json.dumps(dataclasses.asdict(instance), indent=indent, default=_json_default))


def _resolve_prefix(prefix: Optional[str], slug: Optional[str]) -> str:
    """Return the explicit prefix, else the slug-derived prefix, else ``""``."""

    if prefix is not None and slug is not None:
        raise click.UsageError("Pass either --prefix or --slug, not both.")
    if prefix is not None:
        return prefix
    if slug is not None:
        return _default_env_prefix(slug)
    return ""


def _load_target(spec: str) -> type:
    """Import the dataclass named by ``module:Class`` (nested classes via dots)."""

    module_name, sep, qualname = spec.partition(":")
    if not sep or not module_name or not qualname:
        raise click.BadParameter("Target must look like 'package.module:ClassName'.", param_hint="TARGET")
    try:
        obj: Any = import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"Cannot import module {module_name!r}: {exc}", param_hint="TARGET") from exc
    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise click.BadParameter(f"{module_name!r} has no attribute {qualname!r}", param_hint="TARGET") from exc
    if not (isinstance(obj, type) and dataclasses.is_dataclass(obj)):
        raise click.BadParameter(f"{spec!r} is not a dataclass type", param_hint="TARGET")
    return obj


def _json_default(value: Any) -> Any:
    """Render decoded values that ``json`` cannot serialise natively."""

    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_env_decoder",
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
