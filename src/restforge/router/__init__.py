"""Resource router: the per-resource request pipeline and its HTTP routes."""

from restforge.router.engine import ResourceRouter, merge_body
from restforge.router.options import PopulatePath, ResourceOptions
from restforge.router.routes import build_api_router

__all__ = [
    "PopulatePath",
    "ResourceOptions",
    "ResourceRouter",
    "build_api_router",
    "merge_body",
]
