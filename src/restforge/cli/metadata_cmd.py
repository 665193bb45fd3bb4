"""Metadata CLI commands: validate."""

import importlib
from pathlib import Path

import click

from restforge.config import Settings
from restforge.metadata.loader import MetadataLoader
from restforge.metadata.validator import _SUBDIR_SCHEMA, validate_metadata_dir, validate_yaml_file

metadata_dir_option = click.option(
    "--metadata-dir",
    "metadata_dir",
    default=None,
    type=click.Path(path_type=Path),
    help="Metadata directory (default: RESTFORGE_METADATA_PATH or ./metadata).",
)

plugin_option = click.option(
    "--plugin",
    "plugins",
    multiple=True,
    help="Module to import first, registering hooks, rules and query filters.",
)


def resolve_metadata_dir(metadata_dir: Path | None) -> Path:
    if metadata_dir is not None:
        return metadata_dir
    return Settings.from_env().metadata_path


def load_plugins(plugins: tuple[str, ...]) -> None:
    """Import plugin modules so their @hook/register_* calls run."""
    for name in plugins:
        try:
            importlib.import_module(name)
        except ImportError as e:
            click.echo(click.style(f"Cannot import plugin {name}: {e}", fg="red"), err=True)
            raise SystemExit(1)


def load_metadata(metadata_path: Path) -> MetadataLoader:
    """Load metadata, exiting with a message on semantic errors."""
    try:
        loader = MetadataLoader(metadata_path, Settings.from_env())
        loader.load_all()
    except (ValueError, KeyError) as e:
        click.echo(click.style(f"\nSemantic validation failed: {e}", fg="red"), err=True)
        raise SystemExit(1)
    return loader


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@metadata_dir_option
@plugin_option
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Validate a single YAML file instead of the whole metadata directory.",
)
def validate(metadata_dir: Path | None, plugins: tuple[str, ...], target_path: Path | None):
    """Validate metadata YAML files against JSON Schemas."""
    metadata_path = resolve_metadata_dir(metadata_dir)
    load_plugins(plugins)

    # ── Schema (JSON Schema) validation ─────────────────────────────────────
    if target_path is not None:
        # Single-file mode: infer schema from parent directory name
        parent = target_path.parent.name
        schema_name = _SUBDIR_SCHEMA.get(parent)
        if schema_name is None:
            click.echo(
                f"Warning: cannot determine schema for directory '{parent}'. "
                "Expected one of: models, resources.",
                err=True,
            )
            schema_issues = []
        else:
            schema_issues = validate_yaml_file(target_path, schema_name)
    else:
        if not metadata_path.exists():
            click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
            raise SystemExit(1)
        schema_issues = validate_metadata_dir(metadata_path)

    for issue in schema_issues:
        click.echo(click.style(str(issue), fg="red"))

    if schema_issues:
        click.echo(
            click.style(f"\n{len(schema_issues)} schema error(s) found", fg="red", bold=True)
        )
        raise SystemExit(1)

    # ── Semantic (loader) validation ─────────────────────────────────────────
    # Only runs when validating the full directory (target_path is None)
    if target_path is None:
        loader = load_metadata(metadata_path)

        models = loader.list_models()
        click.echo(f"\nLoaded {len(models)} models:")
        for name in sorted(models):
            model = loader.get_model(name)
            click.echo(f"  ✓ {name} ({len(model.fields)} fields, {len(model.variants)} variants)")

    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))
