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
"""WebFilterChainMiddleware — pure ASGI middleware wrapping all WebFilters."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, cast

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from csrfly.web.ordering import get_order
from csrfly.web.ports.filter import CallNext, WebFilter

BUFFERED_BODY_KEY = "csrfly.buffered_body"


async def buffer_body(request: Request) -> bytes:
    """Read the full request body and keep it for the downstream app.

    Filters that inspect the body must use this instead of reading the
    stream directly; the chain replays the buffered bytes to the route.
    """
    body = await request.body()
    request.scope[BUFFERED_BODY_KEY] = body
    return body


def _replaying_receive(body: bytes, receive: Receive) -> Receive:
    sent = False

    async def _receive() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return _receive
class _CapturedResponse:
    """ASGI ``send`` target that collects the downstream response."""

    def __init__(self) -> None:
        self.status_code = 200
        self.raw_headers: list[tuple[bytes, bytes]] = []
        self.body = bytearray()

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status_code = message["status"]
            self.raw_headers = list(message.get("headers", []))
        elif message["type"] == "http.response.body":
            self.body.extend(message.get("body", b""))

    def to_response(self) -> Response:
        response = Response(content=bytes(self.body), status_code=self.status_code)
        response.raw_headers[:] = self.raw_headers
        return response


class WebFilterChainMiddleware:
    """Pure ASGI middleware running every :class:`WebFilter` around the app.

    Filters run in ``@order`` sequence, lowest first, so the lowest value is
    outermost.  A filter whose ``should_not_filter()`` returns ``True`` is
    bypassed for that request.
    """

    def __init__(self, app: ASGIApp, filters: Sequence[WebFilter] = ()) -> None:
        self.app = app
        self._filters = sorted(filters, key=lambda f: get_order(type(f)))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def _terminal(request: Any) -> Response:
            buffered = scope.get(BUFFERED_BODY_KEY)
            downstream_receive = receive if buffered is None else _replaying_receive(buffered, receive)
            captured = _CapturedResponse()
            await self.app(scope, downstream_receive, captured)
            return captured.to_response()

        chain: CallNext = _terminal
        for web_filter in reversed(self._filters):
            chain = _wrap(web_filter, chain)

        response = cast(Response, await chain(Request(scope, receive, send)))
        await response(scope, receive, send)


def _wrap(web_filter: WebFilter, next_call: CallNext) -> CallNext:
    async def _inner(request: Request) -> Response:
        if web_filter.should_not_filter(request):
            return cast(Response, await next_call(request))
        return cast(Response, await web_filter.do_filter(request, next_call))

    return _inner
