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
"""Access log for every request passing through the filter chain.

Each line carries the session fingerprint, the same one the CSRF gate logs
on rejection, so a ``csrf_validation_failed`` event can be matched with
the request that caused it.
"""

from __future__ import annotations

import time
from typing import Any, cast

import structlog
from starlette.requests import Request
from starlette.responses import Response

from csrfly.security.csrf.gate import session_fingerprint
from csrfly.web.filters import OncePerRequestFilter
from csrfly.web.ordering import HIGHEST_PRECEDENCE, order
from csrfly.web.ports.filter import CallNext

logger = structlog.get_logger("csrfly.web")


@order(HIGHEST_PRECEDENCE + 200)
class RequestLoggingFilter(OncePerRequestFilter):
    """Logs ``http_request`` (or ``http_request_failed``) with timing."""

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        start = time.perf_counter()
        try:
            response = cast(Response, await call_next(request))
        except Exception as exc:
            logger.error(
                "http_request_failed",
                **_request_fields(request, start),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise

        logger.info("http_request", **_request_fields(request, start), status_code=response.status_code)
        return response


def _request_fields(request: Request, start: float) -> dict[str, Any]:
    return {
        "method": request.method,
        "path": request.url.path,
        "session": session_fingerprint(getattr(request.state, "session", None)),
        "duration_ms": round((time.perf_counter() - start) * 1000, 2),
    }
