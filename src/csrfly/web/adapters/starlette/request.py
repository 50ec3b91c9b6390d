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
"""Build a :class:`CsrfRequest` from a Starlette request."""

from __future__ import annotations

import json
from typing import Any

import structlog
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from csrfly.security.csrf.extractor import CsrfRequest
from csrfly.web.adapters.starlette.filter_chain import buffer_body

logger = structlog.get_logger("csrfly.web")

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def to_csrf_request(request: Request, *, parse_body: bool = True) -> CsrfRequest:
    """Snapshot method, path, headers, query and parsed body.

    Form bodies (urlencoded and multipart) and JSON object bodies are parsed;
    other content types, and bodies that fail to parse, yield an empty body.
    The raw body is buffered so the route handler can still read it.  With
    *parse_body* false the body is left untouched.
    """
    return CsrfRequest(
        method=request.method,
        path=request.url.path,
        body=await _parse_body(request) if parse_body else {},
        headers=request.headers,
        query=request.query_params,
    )


async def _parse_body(request: Request) -> dict[str, Any]:
    content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    if not content_type:
        return {}

    if content_type in _FORM_TYPES:
        await buffer_body(request)
        try:
            async with request.form() as form:
                return {key: value for key, value in form.items() if isinstance(value, str)}
        except (HTTPException, MultiPartException) as exc:
            logger.debug("csrf_body_not_form", path=request.url.path, error=str(exc))
            return {}

    if content_type == "application/json" or content_type.endswith("+json"):
        raw = await buffer_body(request)
        if not raw:
            return {}
        try:
            payload = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.debug("csrf_body_not_json", path=request.url.path)
            return {}
        return payload if isinstance(payload, dict) else {}

    return {}
