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
"""csrfly web application factory built on Starlette."""

from __future__ import annotations

from collections.abc import Sequence

from starlette.applications import Starlette
from starlette.middleware import Middleware

from csrfly.core.config import Config
from csrfly.kernel.exceptions import CsrflyException
from csrfly.security.csrf.properties import CsrfProperties
from csrfly.security.csrf.service import CsrfService
from csrfly.session.filter import SessionFilter
from csrfly.session.ports.outbound import SessionStore
from csrfly.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from csrfly.web.adapters.starlette.filters import CsrfFilter, RequestLoggingFilter
from csrfly.web.errors import global_exception_handler
from csrfly.web.ports.filter import WebFilter
from csrfly.web.routing import RouteRegistry


def create_app(
    registry: RouteRegistry,
    *,
    session_store: SessionStore | None = None,
    csrf_service: CsrfService | None = None,
    config: Config | None = None,
    extra_filters: Sequence[WebFilter] = (),
    debug: bool = False,
) -> Starlette:
    """Create a Starlette application with session and CSRF filters installed.

    The filter chain is, in ``@order`` sequence: request logging, session
    (when *session_store* is given), CSRF (unless
    ``csrfly.security.csrf.enabled`` is false), then any *extra_filters*.
    Every registered route passes through it.

    When *csrf_service* is omitted one is built from *config* (or the
    library defaults).  The service is exposed as ``app.state.csrf_service``
    for handlers that render forms.
    """
    config = config or Config.defaults()
    service = csrf_service or CsrfService(CsrfProperties.from_config(config))

    filters: list[WebFilter] = [RequestLoggingFilter()]

    if session_store is not None:
        filters.append(SessionFilter.from_config(session_store, config))

    if service.properties.enabled:
        filters.append(CsrfFilter(service.create_gate(), registry))

    filters.extend(extra_filters)

    app = Starlette(
        debug=debug,
        middleware=[Middleware(WebFilterChainMiddleware, filters=filters)],
        routes=registry.routes,
    )

    app.state.csrf_service = service
    app.add_exception_handler(CsrflyException, global_exception_handler)

    return app
