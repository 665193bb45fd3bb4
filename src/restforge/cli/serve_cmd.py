"""Serve CLI command."""

import logging
from pathlib import Path

import click

from restforge.cli.metadata_cmd import load_plugins, metadata_dir_option, plugin_option
from restforge.config import Settings


@click.command()
@metadata_dir_option
@plugin_option
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--port", default=None, type=int, help="Port (default: RESTFORGE_PORT or 8000).")
def serve(metadata_dir: Path | None, plugins: tuple[str, ...], host: str, port: int | None):
    """Serve every resource in the metadata directory."""
    import uvicorn

    from restforge.api.app import app_from_env

    settings = Settings.from_env()
    if metadata_dir is not None:
        settings.metadata_path = metadata_dir
    if port is not None:
        settings.port = port

    logging.basicConfig(level=settings.log_level.upper())
    load_plugins(plugins)

    app = app_from_env(settings)
    uvicorn.run(app, host=host, port=settings.port, log_level=settings.log_level)
