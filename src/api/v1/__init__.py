"""
API v1 package.

Contains the endpoint families of the registration API and the helper
that stages and installs them onto a dispatcher.
"""

from fastapi import APIRouter, FastAPI

from src.api.registry import RouteFamilies, RouteRegistry
from src.api.v1.registration import build_registration_routes
from src.api.v1.session import build_session_routes

FAMILY_BUILDERS = (build_registration_routes, build_session_routes)


def install_routes(dispatcher: FastAPI | APIRouter, families: RouteFamilies) -> list[RouteRegistry]:
    """
    Stage every endpoint family, then install them in order.

    Raises:
        ConfigurationError: On a duplicate family or colliding route
    """
    registries = [build(families) for build in FAMILY_BUILDERS]
    for registry in registries:
        registry.install(dispatcher)
    return registries


__all__ = ["FAMILY_BUILDERS", "install_routes"]
