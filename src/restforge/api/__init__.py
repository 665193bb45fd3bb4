"""HTTP application."""

from restforge.api.app import app_from_env, create_app

__all__ = ["app_from_env", "create_app"]
