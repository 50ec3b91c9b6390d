# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Route registration with CSRF exemption resolved up front.

:class:`RouteRegistry` builds Starlette routes from plain endpoints and
``@request_mapping`` controllers.  For every handler it records a
:class:`~csrfly.security.csrf.gate.HandlerMetadata` whose ``csrf_exempt``
flag already reflects handler-over-controller precedence, so the CSRF filter
only has to look the matched route up at dispatch time.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from markupsafe import Markup
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.routing import Match, Route
from starlette.types import Scope

from csrfly.security.csrf.decorators import is_csrf_exempt
from csrfly.security.csrf.gate import HandlerMetadata
from csrfly.web.mappings import MAPPING_ATTR, REQUEST_MAPPING_ATTR


@dataclass(frozen=True)
class RegisteredRoute:
    route: Route
    metadata: HandlerMetadata


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


def handle_return_value(result: Any, status_code: int = 200) -> Response:
    """Convert a handler's return value into a Starlette Response.

    - ``None`` -> empty response (204 unless status_code explicitly set)
    - ``Response`` -> passed through unchanged
    - ``Markup`` -> HTML page
    - anything else -> JSON
    """
    if result is None:
        return Response(status_code=status_code if status_code != 200 else 204)
    if isinstance(result, Response):
        return result
    if isinstance(result, Markup):
        return HTMLResponse(str(result), status_code=status_code)
    return JSONResponse(result, status_code=status_code)


class RouteRegistry:
    """Collects routes and their CSRF metadata."""

    def __init__(self) -> None:
        self._entries: list[RegisteredRoute] = []
        self._by_endpoint: dict[Any, HandlerMetadata] = {}

    @property
    def routes(self) -> list[Route]:
        return [entry.route for entry in self._entries]

    def add_route(
        self,
        path: str,
        endpoint: Callable[..., Any],
        *,
        methods: Sequence[str] | None = None,
        owner: type | None = None,
        name: str | None = None,
        status_code: int = 200,
    ) -> Route:
        """Register *endpoint* at *path*.

        *endpoint* receives the Starlette request and may be sync or async;
        its return value goes through :func:`handle_return_value`.  *owner*
        is the controller class whose ``@skip_csrf`` marker applies when the
        endpoint carries none of its own.
        """
        handler_name = _qualified_name(endpoint, owner)
        metadata = HandlerMetadata(
            handler_name=handler_name,
            csrf_exempt=is_csrf_exempt(endpoint, owner),
        )

        async def _dispatch(request: Request) -> Response:
            result = await _maybe_await(endpoint(request))
            return handle_return_value(result, status_code)

        route = Route(path, _dispatch, methods=list(methods) if methods else None, name=name or handler_name)
        self._entries.append(RegisteredRoute(route=route, metadata=metadata))
        self._by_endpoint[endpoint] = metadata
        return route

    def register_controller(self, controller: object) -> list[Route]:
        """Register every ``@*_mapping`` method of a controller instance."""
        cls = type(controller)
        base_path = getattr(cls, REQUEST_MAPPING_ATTR, "")
        routes: list[Route] = []

        for attr_name in dir(cls):
            func = getattr(cls, attr_name, None)
            mapping = getattr(func, MAPPING_ATTR, None)
            if mapping is None:
                continue

            routes.append(
                self.add_route(
                    base_path + mapping.path,
                    getattr(controller, attr_name),
                    methods=[mapping.method],
                    owner=cls,
                    status_code=mapping.status_code,
                )
            )

        return routes

    def metadata_for(self, endpoint: Callable[..., Any]) -> HandlerMetadata | None:
        return self._by_endpoint.get(endpoint)

    def resolve(self, scope: Scope) -> HandlerMetadata | None:
        """Return the metadata of the route fully matching *scope*, if any."""
        for entry in self._entries:
            match, _ = entry.route.matches(scope)
            if match is Match.FULL:
                return entry.metadata
        return None


def _qualified_name(endpoint: Callable[..., Any], owner: type | None) -> str:
    name = getattr(endpoint, "__name__", type(endpoint).__name__)
    if owner is not None:
        return f"{owner.__name__}.{name}"
    return name
