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
"""Global exception handler — RFC 7807 inspired error responses."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from csrfly.kernel.exceptions import (
    ConfigurationException,
    CsrflyException,
    InfrastructureException,
    SecurityException,
    SessionContractException,
)

# Exception -> HTTP status code mapping; first isinstance match wins
_STATUS_MAP: dict[type, int] = {
    SecurityException: 403,
    SessionContractException: 500,
    ConfigurationException: 500,
    InfrastructureException: 503,
}


def get_status_code(exc: Exception) -> int:
    """Map exception type to HTTP status code."""
    for exc_type, status in _STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return status
    return 500


def error_response(request: Any, exc: Exception) -> JSONResponse:
    """Build the JSON error body for *exc*.

    Only :class:`SecurityException` messages (CSRF rejections among them)
    reach the client verbatim; everything else is reported as an internal
    error so server details stay on the server.
    """
    transaction_id = getattr(request.state, "transaction_id", None) or str(uuid.uuid4())
    timestamp = datetime.now(UTC).isoformat()
    status = get_status_code(exc)

    if isinstance(exc, SecurityException):
        message = str(exc)
        code = exc.code or type(exc).__name__
    else:
        message = "Internal server error"
        code = exc.code if isinstance(exc, CsrflyException) and exc.code else "INTERNAL_ERROR"

    body: dict[str, Any] = {
        "error": {
            "message": message,
            "code": code,
            "transaction_id": transaction_id,
            "timestamp": timestamp,
            "status": status,
            "path": request.url.path,
        }
    }
    if isinstance(exc, SecurityException) and exc.context:
        body["error"]["context"] = exc.context

    return JSONResponse(body, status_code=status)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all exceptions with structured JSON responses."""
    return error_response(request, exc)
