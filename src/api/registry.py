"""
Route registry - Staged route declarations installed onto a dispatcher.

Each endpoint family (registration, session, ...) stages its
(method, path, handler) tuples on its own RouteRegistry, then installs
them onto the shared FastAPI application or APIRouter in one step.
Staging never touches the dispatcher, so a half-built registry can be
discarded without side effects.

RouteFamilies is the factory owned by the application factory: it
hands out at most one live registry per family name.

Both duplicate staging and route collisions at install time raise
ConfigurationError, which must abort application startup.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fastapi import APIRouter, FastAPI
from starlette.routing import Route

from src.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ":name" (express style) and "{name}" / "{name:converter}" segments
_COLON_PARAM = re.compile(r"(?<=/):([A-Za-z_][A-Za-z0-9_]*)")
_BRACE_PARAM = re.compile(r"\{[^/{}]+\}")


class HTTPMethod(str, Enum):
    """HTTP methods a route may be registered for."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


def normalize_path(path: str) -> str:
    """Convert ":name" parameters to FastAPI's "{name}" form."""
    return _COLON_PARAM.sub(r"{\1}", path)


def resolve_path(path: str) -> str:
    """Path with parameter names erased, used for collision checks."""
    return _BRACE_PARAM.sub("{}", normalize_path(path))


@dataclass(frozen=True)
class RouteDescriptor:
    """One staged route."""

    method: HTTPMethod
    path: str
    handler: Callable[..., Any]
    options: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def key(self) -> tuple[str, str]:
        return self.method.value, resolve_path(self.path)


class RouteRegistry:
    """Stages routes for one endpoint family and installs them."""

    def __init__(self, family: str) -> None:
        self.family = family
        self._staged: list[RouteDescriptor] = []
        self._installed = False

    @property
    def descriptors(self) -> tuple[RouteDescriptor, ...]:
        return tuple(self._staged)

    @property
    def installed(self) -> bool:
        return self._installed

    def register(
        self,
        method: HTTPMethod | str,
        path: str,
        handler: Callable[..., Any],
        **options: Any,
    ) -> RouteDescriptor:
        """
        Stage a route. Extra keyword options are passed to add_api_route().

        Raises:
            ConfigurationError: If method is unsupported, (method, path) is
                already staged here, or the registry was already installed
        """
        if self._installed:
            raise ConfigurationError(f"Route family '{self.family}' is already installed")

        if not isinstance(method, HTTPMethod):
            try:
                method = HTTPMethod(method.upper())
            except ValueError:
                raise ConfigurationError(f"Unsupported HTTP method: {method}") from None

        descriptor = RouteDescriptor(
            method=method,
            path=normalize_path(path),
            handler=handler,
            options=options,
        )
        if any(staged.key == descriptor.key for staged in self._staged):
            raise ConfigurationError(
                f"Duplicate route {descriptor.method.value} {descriptor.path} "
                f"in family '{self.family}'"
            )

        self._staged.append(descriptor)
        return descriptor

    def install(self, dispatcher: FastAPI | APIRouter) -> None:
        """
        Attach every staged route to dispatcher, in staging order.

        All collisions are checked before anything is attached.

        Raises:
            ConfigurationError: If any staged route collides with a live
                route, or the registry was already installed
        """
        if self._installed:
            raise ConfigurationError(f"Route family '{self.family}' is already installed")

        prefix = getattr(dispatcher, "prefix", "")
        live = _live_routes(dispatcher)
        for descriptor in self._staged:
            method, path = descriptor.key
            if (method, resolve_path(prefix + path)) in live:
                raise ConfigurationError(
                    f"Route {method} {prefix}{descriptor.path} from family "
                    f"'{self.family}' collides with an installed route"
                )

        for descriptor in self._staged:
            dispatcher.add_api_route(
                descriptor.path,
                descriptor.handler,
                methods=[descriptor.method.value],
                **descriptor.options,
            )
            logger.debug(
                "Installed %s %s%s (%s)",
                descriptor.method.value,
                prefix,
                descriptor.path,
                self.family,
            )

        self._installed = True


def _live_routes(dispatcher: FastAPI | APIRouter) -> set[tuple[str, str]]:
    """Method and resolved path of every HTTP route, including /docs and /openapi.json."""
    live: set[tuple[str, str]] = set()
    for route in dispatcher.routes:
        if isinstance(route, Route):
            for method in route.methods or ():
                live.add((method, resolve_path(route.path)))
    return live


class RouteFamilies:
    """Factory owning at most one live RouteRegistry per endpoint family."""

    def __init__(self) -> None:
        self._live: dict[str, RouteRegistry] = {}

    def create(self, family: str) -> RouteRegistry:
        """
        Create the registry for family.

        Raises:
            ConfigurationError: If a registry for family is already live
        """
        if family in self._live:
            raise ConfigurationError(f"Route family '{family}' already instantiated")
        registry = RouteRegistry(family)
        self._live[family] = registry
        return registry

    def release(self, family: str) -> None:
        """Forget the live registry for family, if any."""
        self._live.pop(family, None)

    def __contains__(self, family: str) -> bool:
        return family in self._live

    def __iter__(self):
        return iter(self._live.values())
