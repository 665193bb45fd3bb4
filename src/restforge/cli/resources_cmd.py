"""Resource CLI commands: list."""

import json
from pathlib import Path

import click

from restforge.cli.metadata_cmd import (
    load_metadata,
    load_plugins,
    metadata_dir_option,
    plugin_option,
    resolve_metadata_dir,
)
from restforge.core.types import Operation


@click.group()
def resources():
    """Resource commands."""
    pass


@resources.command("list")
@metadata_dir_option
@plugin_option
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON.")
def list_cmd(metadata_dir: Path | None, plugins: tuple[str, ...], as_json: bool):
    """List resources defined in metadata, with their routes."""
    metadata_path = resolve_metadata_dir(metadata_dir)
    load_plugins(plugins)
    if not metadata_path.exists():
        click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
        raise SystemExit(1)

    loader = load_metadata(metadata_path)

    rows = []
    for name in sorted(loader.list_resources()):
        resource = loader.get_resource(name)
        permissions = resource.options.permissions
        rows.append(
            {
                "name": name,
                "prefix": resource.prefix,
                "model": resource.model.name,
                "operations": [
                    op.value for op in Operation if permissions.for_operation(op)
                ],
                "arrayFields": resource.model.array_fields,
                "allowAnonymous": resource.options.allow_anonymous,
            }
        )

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        click.echo("No resources defined.")
        return

    for row in rows:
        click.echo(f"{row['name']} -> {row['prefix']} (model: {row['model']})")
        click.echo(f"  operations: {', '.join(row['operations']) or 'none'}")
        if row["arrayFields"]:
            click.echo(f"  array fields: {', '.join(row['arrayFields'])}")
