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
"""Tests for CsrfFilter — gate wiring, request snapshot, and 403 rendering."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.testclient import TestClient

from csrfly.kernel.exceptions import SessionContractException
from csrfly.security.csrf.decorators import skip_csrf
from csrfly.security.csrf.properties import CsrfProperties
from csrfly.security.csrf.service import CsrfService
from csrfly.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from csrfly.web.adapters.starlette.filters.csrf_filter import CsrfFilter
from csrfly.web.adapters.starlette.request import to_csrf_request
from csrfly.web.filters import OncePerRequestFilter
from csrfly.web.ordering import HIGHEST_PRECEDENCE, order
from csrfly.web.routing import RouteRegistry

TOKEN = "a" * 64


@order(HIGHEST_PRECEDENCE)
class FixedSessionFilter(OncePerRequestFilter):
    """Attaches a prepared session object to every request."""

    def __init__(self, session):
        self._session = session

    async def do_filter(self, request, call_next):
        request.state.session = self._session
        return await call_next(request)


def _registry() -> RouteRegistry:
    registry = RouteRegistry()

    async def submit(request: Request):
        form = await request.form()
        return {"received": dict(form)}

    async def submit_json(request: Request):
        return {"received": await request.json()}

    @skip_csrf
    async def webhook(request: Request):
        return {"ok": True}

    async def page(request: Request):
        return {"ok": True}

    async def raw(request: Request):
        return {"received": (await request.body()).decode()}

    registry.add_route("/submit", submit, methods=["POST"])
    registry.add_route("/json", submit_json, methods=["POST"])
    registry.add_route("/webhook", webhook, methods=["POST"])
    registry.add_route("/page", page, methods=["GET"])
    registry.add_route("/raw", raw, methods=["POST"])
    return registry


def _client(session, log=None, properties=None) -> tuple[TestClient, MagicMock]:
    log = log or MagicMock()
    registry = _registry()
    gate = CsrfService(properties).create_gate(log=log)
    app = Starlette(
        routes=registry.routes,
        middleware=[
            Middleware(
                WebFilterChainMiddleware,
                filters=[FixedSessionFilter(session), CsrfFilter(gate, registry)],
            )
        ],
    )
    return TestClient(app), log


class TestCsrfFilterAllows:
    def test_form_token_accepted_and_body_replayed(self):
        client, _ = _client({"_csrf": TOKEN})
        resp = client.post("/submit", data={"_csrf": TOKEN, "title": "hello"})
        assert resp.status_code == 200
        assert resp.json() == {"received": {"_csrf": TOKEN, "title": "hello"}}

    def test_header_token_accepted(self):
        client, _ = _client({"_csrf": TOKEN})
        resp = client.post("/submit", data={"title": "hello"}, headers={"X-CSRF-Token": TOKEN})
        assert resp.status_code == 200

    def test_query_token_accepted(self):
        client, _ = _client({"_csrf": TOKEN})
        resp = client.post("/submit?_csrf=" + TOKEN, data={"title": "hello"})
        assert resp.status_code == 200

    def test_json_token_accepted_and_body_replayed(self):
        client, _ = _client({"_csrf": TOKEN})
        resp = client.post("/json", json={"_csrf": TOKEN, "n": 1})
        assert resp.status_code == 200
        assert resp.json() == {"received": {"_csrf": TOKEN, "n": 1}}

    def test_safe_method_without_session(self):
        client, log = _client(None)
        assert client.get("/page").status_code == 200
        log.warning.assert_not_called()

    def test_exempt_route_without_token(self):
        client, log = _client({"_csrf": TOKEN})
        assert client.post("/webhook").status_code == 200
        log.debug.assert_called_once()
        assert log.debug.call_args.args[0] == "csrf_validation_skipped"


class TestCsrfFilterDenies:
    @pytest.mark.parametrize(
        ("session", "data", "reason"),
        [
            (None, {"_csrf": TOKEN}, "NO_SESSION"),
            ({}, {"_csrf": TOKEN}, "NO_SESSION_TOKEN"),
            ({"_csrf": TOKEN}, {"title": "x"}, "NO_REQUEST_TOKEN"),
            ({"_csrf": TOKEN}, {"_csrf": "b" * 64}, "TOKEN_MISMATCH"),
        ],
    )
    def test_denied_with_generic_body(self, session, data, reason):
        client, log = _client(session)
        resp = client.post("/submit", data=data)

        assert resp.status_code == 403
        error = resp.json()["error"]
        assert error["message"] == "Invalid or missing CSRF token"
        assert error["code"] == "CSRF_TOKEN_INVALID"
        assert reason not in resp.text

        log.warning.assert_called_once()
        assert log.warning.call_args.args[0] == "csrf_validation_failed"
        assert log.warning.call_args.kwargs["reason"] == reason

    def test_unknown_route_is_enforced(self):
        client, _ = _client({"_csrf": TOKEN})
        assert client.post("/missing").status_code == 403

    def test_custom_field_and_header(self):
        props = CsrfProperties(field_name="csrf_token", header_name="X-XSRF-TOKEN")
        client, _ = _client({"_csrf": TOKEN}, properties=props)
        assert client.post("/submit", data={"_csrf": TOKEN}).status_code == 403
        assert client.post("/submit", data={"csrf_token": TOKEN}).status_code == 200
        assert client.post("/submit", headers={"x-xsrf-token": TOKEN}).status_code == 200


class TestCsrfFilterFailsClosed:
    def test_broken_session_propagates(self):
        client, _ = _client(["not", "a", "session"])
        with pytest.raises(SessionContractException):
            client.post("/submit", data={"_csrf": TOKEN})


BROKEN_MULTIPART = {"content-type": "multipart/form-data"}
BROKEN_BODY = b"--x\r\nnot a multipart body"


class TestCsrfFilterUnparseableBody:
    def test_exempt_route_ignores_body(self):
        client, _ = _client(None)
        resp = client.post("/webhook", content=BROKEN_BODY, headers=BROKEN_MULTIPART)
        assert resp.status_code == 200

    def test_safe_method_ignores_body(self):
        client, log = _client(None)
        resp = client.request("GET", "/page", content=BROKEN_BODY, headers=BROKEN_MULTIPART)
        assert resp.status_code == 200
        log.warning.assert_not_called()

    def test_header_token_used_when_body_unparseable(self):
        client, _ = _client({"_csrf": TOKEN})
        resp = client.post("/raw", content=BROKEN_BODY, headers={**BROKEN_MULTIPART, "X-CSRF-Token": TOKEN})
        assert resp.status_code == 200
        assert resp.json() == {"received": BROKEN_BODY.decode()}

    def test_unparseable_body_without_header_denied(self):
        client, log = _client({"_csrf": TOKEN})
        resp = client.post("/raw", content=BROKEN_BODY, headers=BROKEN_MULTIPART)
        assert resp.status_code == 403
        assert log.warning.call_args.kwargs["reason"] == "NO_REQUEST_TOKEN"

def _starlette_request(body: bytes, content_type: str | None, query: bytes = b"") -> Request:
    headers = [(b"content-type", content_type.encode())] if content_type else []
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/submit",
        "root_path": "",
        "query_string": query,
        "headers": headers,
    }
    return Request(scope, receive)


class TestToCsrfRequest:
    @pytest.mark.asyncio
    async def test_urlencoded_form(self):
        request = _starlette_request(b"_csrf=abc&x=1", "application/x-www-form-urlencoded")
        snapshot = await to_csrf_request(request)
        assert snapshot.method == "POST"
        assert snapshot.path == "/submit"
        assert snapshot.body == {"_csrf": "abc", "x": "1"}

    @pytest.mark.asyncio
    async def test_json_object(self):
        request = _starlette_request(b'{"_csrf": "abc"}', "application/json; charset=utf-8")
        assert (await to_csrf_request(request)).body == {"_csrf": "abc"}

    @pytest.mark.asyncio
    async def test_json_array_ignored(self):
        request = _starlette_request(b'["abc"]', "application/json")
        assert (await to_csrf_request(request)).body == {}

    @pytest.mark.asyncio
    async def test_malformed_json_ignored(self):
        request = _starlette_request(b"{not json", "application/vnd.api+json")
        assert (await to_csrf_request(request)).body == {}

    @pytest.mark.asyncio
    async def test_other_content_type_not_read(self):
        request = _starlette_request(b"_csrf=abc", "text/plain")
        assert (await to_csrf_request(request)).body == {}
        assert "csrfly.buffered_body" not in request.scope

    @pytest.mark.asyncio
    async def test_headers_and_query_exposed(self):
        request = _starlette_request(b"", None, query=b"_csrf=q")
        snapshot = await to_csrf_request(request)
        assert snapshot.query["_csrf"] == "q"
        assert snapshot.body == {}

    @pytest.mark.asyncio
    async def test_malformed_multipart_yields_empty_body(self):
        request = _starlette_request(BROKEN_BODY, "multipart/form-data")
        snapshot = await to_csrf_request(request)
        assert snapshot.body == {}
        assert request.scope["csrfly.buffered_body"] == BROKEN_BODY

    @pytest.mark.asyncio
    async def test_body_left_unread_when_not_parsing(self):
        request = _starlette_request(b"_csrf=abc", "application/x-www-form-urlencoded")
        snapshot = await to_csrf_request(request, parse_body=False)
        assert snapshot.body == {}
        assert "csrfly.buffered_body" not in request.scope
