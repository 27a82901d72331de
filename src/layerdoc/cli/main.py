"""
Main CLI entry point for layerdoc.

Provides the command-line interface using Click. Every command reads
fragments from files (JSON, or YAML by suffix) and writes JSON to stdout.
"""

import json as _json
import logging as _logging
import pathlib as _pathlib
import sys as _sys
import typing as _typing

import click as _click

import layerdoc
import layerdoc.config as config
import layerdoc.config.sources as config_sources
import layerdoc.node as node_module
import layerdoc.ops as ops
import layerdoc.schema as schema

_logger = _logging.getLogger(__name__)

# Custom Click context settings for better help formatting
CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

_FragmentPath = _click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path)


# =============================================================================
# Helpers
# =============================================================================


def _configure_logging(level: str, verbose: bool) -> None:
    """Route log records through rich on stderr."""
    import rich.console as _rich_console
    import rich.logging as _rich_logging

    handler = _rich_logging.RichHandler(
        console=_rich_console.Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    _logging.basicConfig(
        level=_logging.DEBUG if verbose else level.upper(),
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def _settings(ctx: _click.Context) -> config.Settings:
    return _typing.cast(config.Settings, ctx.obj["settings"])


def _read_fragment(path: _pathlib.Path) -> node_module.JsonNode:
    """Read one fragment file; malformed input aborts the command."""
    fragment, is_valid = ops.parse_fragment(str(path), path.read_bytes())
    if not is_valid:
        raise _click.ClickException(f"{path}: malformed input")
    return fragment


def _emit(ctx: _click.Context, node: node_module.JsonNode) -> None:
    try:
        text = node.to_json(compact=_settings(ctx).output.compact)
    except ValueError as e:
        raise _click.ClickException(str(e)) from e
    _click.echo(text)


def _build_registry(ctx: _click.Context, schema_dirs: tuple[_pathlib.Path, ...]) -> schema.SchemaRegistry:
    registry = _settings(ctx).build_schema_registry()
    for schema_dir in schema_dirs:
        registry.load_directory(schema_dir)
    return registry


_schema_dir_option = _click.option(
    "--schema-dir",
    "schema_dirs",
    multiple=True,
    type=_click.Path(exists=True, file_okay=False, path_type=_pathlib.Path),
    help="Directory of *.json schemas (in addition to schemas.search_paths)",
)


# =============================================================================
# Root group
# =============================================================================


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(layerdoc.__version__, "-v", "--version", prog_name="layerdoc")
@_click.option(
    "--verbose",
    is_flag=True,
    help="Enable debug logging",
)
@_click.option(
    "--compact/--pretty",
    default=None,
    help="Write JSON without whitespace / tab-indented (default: output.compact)",
)
@_click.pass_context
def cli(ctx: _click.Context, verbose: bool, compact: bool | None) -> None:
    """
    layerdoc - layered JSON documents.

    Merge, diff and intersect document fragments, look up values by path,
    and validate or normalize documents against JSON schemas.

    \b
    Examples:
        layerdoc merge base.json mod.json          # Later files override earlier ones
        layerdoc diff hero.json base.json          # Minimal patch from base to hero
        layerdoc get hero.json /skills/0/name      # Value at a path
        layerdoc validate hero.json hero --schema-dir schemas
        layerdoc config show                       # Effective configuration
    """
    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        ctx.obj["settings"] = config.Settings()
    settings = _settings(ctx)

    if compact is not None:
        settings.output.compact = compact

    _configure_logging(settings.logging.level, verbose)

    extra = settings.collect_all_extra_fields()
    if extra:
        _logger.warning("Unknown config keys: %s", ", ".join(sorted(extra)))


# =============================================================================
# Tree commands
# =============================================================================


@cli.command(name="merge")
@_click.argument("files", nargs=-1, required=True, type=_FragmentPath)
@_click.option(
    "--ignore-override/--honor-override",
    default=None,
    help="Ignore override flags and null tombstones (default: merge.ignore_override)",
)
@_click.pass_context
def merge_cmd(ctx: _click.Context, files: tuple[_pathlib.Path, ...], ignore_override: bool | None) -> None:
    """Merge fragment files in order; later files override earlier ones.

    A null value in a later file deletes the key; a key written as
    "name#override" (or tagged !replace in YAML) replaces instead of merging.
    """
    settings = _settings(ctx)
    if ignore_override is None:
        ignore_override = settings.merge.ignore_override

    result = node_module.JsonNode()
    for path in files:
        ops.merge.merge(
            result,
            _read_fragment(path),
            ignore_override=ignore_override,
            copy_meta=settings.merge.copy_meta,
        )
    _emit(ctx, result)


@cli.command(name="diff")
@_click.argument("node_file", type=_FragmentPath)
@_click.argument("base_file", type=_FragmentPath)
@_click.pass_context
def diff_cmd(ctx: _click.Context, node_file: _pathlib.Path, base_file: _pathlib.Path) -> None:
    """Print the patch that turns BASE_FILE into NODE_FILE when merged."""
    _emit(ctx, ops.difference(_read_fragment(node_file), _read_fragment(base_file)))


@cli.command(name="intersect")
@_click.argument("files", nargs=-1, required=True, type=_FragmentPath)
@_click.option(
    "--prune-empty/--keep-empty",
    default=None,
    help="Drop children without common data (default: merge.prune_empty)",
)
@_click.pass_context
def intersect_cmd(ctx: _click.Context, files: tuple[_pathlib.Path, ...], prune_empty: bool | None) -> None:
    """Print what all files have in common."""
    if prune_empty is None:
        prune_empty = _settings(ctx).merge.prune_empty
    _emit(ctx, ops.intersect_all((_read_fragment(path) for path in files), prune_empty=prune_empty))


@cli.command(name="get")
@_click.argument("file", type=_FragmentPath)
@_click.argument("pointer")
@_click.pass_context
def get_cmd(ctx: _click.Context, file: _pathlib.Path, pointer: str) -> None:
    """Print the value at POINTER, e.g. /skills/0/name."""
    try:
        node = _read_fragment(file).resolve_pointer(pointer)
    except node_module.PointerError as e:
        raise _click.ClickException(str(e)) from e
    _emit(ctx, node)


# =============================================================================
# Schema commands
# =============================================================================


@cli.command(name="validate")
@_click.argument("file", type=_FragmentPath)
@_click.argument("schema_name")
@_schema_dir_option
@_click.pass_context
def validate_cmd(
    ctx: _click.Context,
    file: _pathlib.Path,
    schema_name: str,
    schema_dirs: tuple[_pathlib.Path, ...],
) -> None:
    """Check FILE against SCHEMA_NAME; exits with status 1 on violations."""
    import rich.console as _rich_console
    import rich.table as _rich_table

    registry = _build_registry(ctx, schema_dirs)
    try:
        violations = schema.collect_violations(
            _read_fragment(file), schema_name, str(file), registry=registry
        )
    except schema.SchemaNotFoundError as e:
        raise _click.ClickException(str(e)) from e

    console = _rich_console.Console(file=_sys.stdout)
    if not violations:
        console.print(
            f"{file}: valid ({registry.uri(schema_name)})",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
        return

    table = _rich_table.Table(title=f"{file}: {len(violations)} violation(s)")
    table.add_column("Path")
    table.add_column("Problem")
    table.add_column("Schema rule")
    for violation in violations:
        table.add_row(violation.path or "/", violation.message, violation.schema_path)
    console.print(table)
    ctx.exit(1)


def _normalize(
    ctx: _click.Context,
    operation: _typing.Callable[..., None],
    file: _pathlib.Path,
    schema_name: str,
    schema_dirs: tuple[_pathlib.Path, ...],
) -> None:
    registry = _build_registry(ctx, schema_dirs)
    node = _read_fragment(file)
    try:
        operation(node, schema_name, registry=registry)
    except schema.SchemaNotFoundError as e:
        raise _click.ClickException(str(e)) from e
    _emit(ctx, node)


@cli.command(name="minimize")
@_click.argument("file", type=_FragmentPath)
@_click.argument("schema_name")
@_schema_dir_option
@_click.pass_context
def minimize_cmd(
    ctx: _click.Context,
    file: _pathlib.Path,
    schema_name: str,
    schema_dirs: tuple[_pathlib.Path, ...],
) -> None:
    """Print FILE without the required values that equal their schema default."""
    _normalize(ctx, schema.minimize, file, schema_name, schema_dirs)


@cli.command(name="maximize")
@_click.argument("file", type=_FragmentPath)
@_click.argument("schema_name")
@_schema_dir_option
@_click.pass_context
def maximize_cmd(
    ctx: _click.Context,
    file: _pathlib.Path,
    schema_name: str,
    schema_dirs: tuple[_pathlib.Path, ...],
) -> None:
    """Print FILE with schema defaults filled in for missing required values."""
    _normalize(ctx, schema.maximize, file, schema_name, schema_dirs)


# =============================================================================
# Config commands
# =============================================================================


@cli.group()
def config_cmd() -> None:
    """Configuration management commands."""


# Register config_cmd with the name "config" to avoid shadowing the module
cli.add_command(config_cmd, name="config")


@config_cmd.command(name="show")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.option("--provenance", is_flag=True, help="Show which file each value came from")
@_click.option("--section", type=str, default=None, help="Show specific section only")
@_click.option(
    "--color/--no-color",
    "use_color",
    default=None,
    help="Enable/disable syntax highlighting (default: auto-detect TTY)",
)
@_click.pass_context
def config_show(
    ctx: _click.Context,
    as_json: bool,
    provenance: bool,
    section: str | None,
    use_color: bool | None,
) -> None:
    """Show effective configuration from all sources.

    Displays the merged configuration from built-in defaults, user config,
    project config and LAYERDOC_* environment variables.

    Examples:
        layerdoc config show              # Show all config as YAML
        layerdoc config show --json       # Show as JSON
        layerdoc config show --provenance # Show config with sources
    """
    import yaml as _yaml

    full_config = _settings(ctx).to_dict()

    if section:
        if section not in full_config:
            raise _click.ClickException(f"Unknown section: {section}")
        full_config = {section: full_config[section]}

    if as_json:
        _click.echo(_json.dumps(full_config, indent=2))
        return

    yaml_text = _yaml.dump(full_config, default_flow_style=False, sort_keys=False)
    if provenance:
        yaml_text = _with_provenance(full_config)
    color = use_color if use_color is not None else _sys.stdout.isatty()
    _print_yaml(yaml_text, color=color, force_color=bool(use_color))


def _with_provenance(config_data: dict[str, _typing.Any]) -> str:
    """Render config as YAML-like lines annotated with the file each value came from."""
    import yaml as _yaml

    source = config_sources.LayeredYamlSettingsSource(config.Settings, config.find_project_root())
    lines = [f"# [{name}] {path}" for name, path in source.get_loaded_layers()]

    def walk(data: dict[str, _typing.Any], keys: tuple[str, ...]) -> None:
        indent = "  " * len(keys)
        for key, value in data.items():
            path = (*keys, key)
            if isinstance(value, dict) and value:
                lines.append(f"{indent}{key}:")
                walk(value, path)
                continue
            rendered = _yaml.safe_dump(value, default_flow_style=True).strip()
            if rendered.endswith("\n..."):
                rendered = rendered[: -len("\n...")]
            origin = source.get_provenance(*path) or "default/env"
            lines.append(f"{indent}{key}: {rendered}  # {origin}")

    walk(config_data, ())
    return "\n".join(lines)


def _print_yaml(yaml_text: str, *, color: bool, force_color: bool) -> None:
    """Print YAML text, optionally with syntax highlighting."""
    if not color:
        _click.echo(yaml_text)
        return

    import rich.console as _rich_console
    import rich.syntax as _rich_syntax

    console = _rich_console.Console(
        file=_sys.stdout,
        force_terminal=force_color,
    )
    console.print(_rich_syntax.Syntax(yaml_text, "yaml", theme="monokai", background_color="default"))


@config_cmd.command(name="path")
@_click.option("--all", "show_all", is_flag=True, help="Show all paths even if not found")
def config_path(show_all: bool) -> None:
    """Show configuration file paths and their status."""
    source = config_sources.LayeredYamlSettingsSource(config.Settings, config.find_project_root())
    for name, path, exists in source.get_layer_paths():
        if exists or show_all:
            status = "✓" if exists else "✗"
            _click.echo(f"{status} {name}: {path}")


def main() -> None:
    """Main entry point with correct program name."""
    cli(prog_name="layerdoc")


if __name__ == "__main__":
    main()
