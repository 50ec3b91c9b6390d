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
"""CsrfFilter — synchronizer-token CSRF protection for every route.

Runs after the :class:`~csrfly.session.SessionFilter` so the session is
available at ``request.state.session``.  For each request it:

* resolves the matched route's :class:`HandlerMetadata` from the
  :class:`RouteRegistry` (carrying the flattened ``@skip_csrf`` decision),
* builds a :class:`CsrfRequest` from the Starlette request, parsing the
  body only when the gate will validate it,
* asks the :class:`CsrfGate`; a denial is answered with a generic 403.

Unexpected errors (a broken session object, an entropy failure) propagate,
so the handler never runs.
"""

from __future__ import annotations

from typing import Any, cast

from starlette.requests import Request
from starlette.responses import Response

from csrfly.kernel.exceptions import CsrfValidationException
from csrfly.security.csrf.gate import CsrfGate
from csrfly.web.adapters.starlette.request import to_csrf_request
from csrfly.web.errors import error_response
from csrfly.web.filters import OncePerRequestFilter
from csrfly.web.ordering import order
from csrfly.web.ports.filter import CallNext
from csrfly.web.routing import RouteRegistry


@order(-50)
class CsrfFilter(OncePerRequestFilter):
    """Enforces CSRF validation on unsafe methods of non-exempt routes."""

    def __init__(self, gate: CsrfGate, registry: RouteRegistry | None = None) -> None:
        self._gate = gate
        self._registry = registry

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        metadata = self._registry.resolve(request.scope) if self._registry is not None else None
        session: Any = getattr(request.state, "session", None)
        csrf_request = await to_csrf_request(
            request,
            parse_body=self._gate.requires_validation(request.method, metadata),
        )

        try:
            self._gate.check(session, csrf_request, metadata)
        except CsrfValidationException as exc:
            return error_response(request, exc)

        return cast(Response, await call_next(request))
