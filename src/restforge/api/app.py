"""FastAPI application assembly."""

import logging
from collections.abc import Iterable
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from restforge.auth.middleware import ActorMiddleware, ActorResolver, header_actor_resolver
from restforge.config import Settings
from restforge.errors import register_error_handlers
from restforge.metadata.loader import MetadataLoader
from restforge.metadata.validator import validate_metadata_dir
from restforge.persistence import DatabaseConfig, DocumentStore, create_store
from restforge.router.engine import ResourceRouter
from restforge.router.routes import build_api_router

logger = logging.getLogger(__name__)


def create_app(
    loader: MetadataLoader | None = None,
    store: DocumentStore | None = None,
    resolver: ActorResolver = header_actor_resolver,
    *,
    settings: Settings | None = None,
    resources: Iterable[tuple[str, ResourceRouter]] = (),
) -> FastAPI:
    """Build an application exposing every loaded resource.

    Args:
        loader: Loaded metadata; one router is mounted per resource at its prefix
        store: Document store shared by all resources (from DATABASE_URL if omitted)
        resolver: Returns the Actor of a request
        settings: Application settings (from the environment if omitted)
        resources: Extra (prefix, ResourceRouter) pairs built in Python
    """
    settings = settings or Settings.from_env()
    if store is None:
        store = create_store(DatabaseConfig.from_env())

    app = FastAPI(title="restforge API")

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(ActorMiddleware, resolver=resolver)
    register_error_handlers(app)

    mounted: dict[str, dict[str, Any]] = {}

    def mount(name: str, prefix: str, router: ResourceRouter) -> None:
        app.include_router(build_api_router(router), prefix=prefix, tags=[name])
        mounted[name] = {
            "name": name,
            "prefix": prefix,
            "model": router.model.name,
            "arrayFields": router.model.array_fields,
            "variants": sorted(router.model.variants),
        }
        logger.info("Mounted resource %s at %s", name, prefix)

    if loader is not None:
        for name in loader.list_resources():
            resource = loader.get_resource(name)
            mount(name, resource.prefix, ResourceRouter(resource.model, resource.options, store))

    for prefix, router in resources:
        mount(router.name, prefix, router)

    @app.get("/_resources")
    async def list_resources() -> dict[str, Any]:
        """List mounted resources."""
        return {"data": list(mounted.values())}

    app.state.store = store
    app.state.loader = loader
    app.state.settings = settings
    return app


def app_from_env(settings: Settings | None = None) -> FastAPI:
    """Load metadata from RESTFORGE_METADATA_PATH and build the application."""
    settings = settings or Settings.from_env()

    # Validate metadata YAML files against JSON Schemas (warn on errors, don't block startup)
    schema_issues = validate_metadata_dir(settings.metadata_path)
    for issue in schema_issues:
        logger.error("Metadata schema error: %s", issue)
    if schema_issues:
        logger.warning(
            "Metadata validation: %d error(s). Run 'restforge metadata validate' for details.",
            len(schema_issues),
        )

    loader = MetadataLoader(settings.metadata_path, settings)
    loader.load_all()

    db_config = DatabaseConfig.from_env()
    return create_app(loader, create_store(db_config), settings=settings)
