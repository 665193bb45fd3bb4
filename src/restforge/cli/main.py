"""restforge CLI entry point."""

import click


@click.group()
def cli():
    """restforge: resource router CLI."""
    pass


# Register subcommand groups
from restforge.cli.metadata_cmd import metadata  # noqa: E402
from restforge.cli.resources_cmd import resources  # noqa: E402
from restforge.cli.serve_cmd import serve  # noqa: E402

cli.add_command(metadata)
cli.add_command(resources)
cli.add_command(serve)
