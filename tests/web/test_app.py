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
"""End-to-end tests for create_app — sessions, token issuing, and enforcement."""

from __future__ import annotations

import re
from typing import Any

from markupsafe import Markup
from starlette.requests import Request
from starlette.testclient import TestClient

from csrfly.core.config import Config
from csrfly.security.csrf.decorators import skip_csrf
from csrfly.security.csrf.rendering import csrf_hidden_input, csrf_meta_tags
from csrfly.web.adapters.starlette.app import create_app
from csrfly.web.mappings import delete_mapping, get_mapping, post_mapping, request_mapping
from csrfly.web.routing import RouteRegistry

_TOKEN_RE = re.compile(r'name="_csrf" value="([0-9a-f]{64})"')


class InMemorySessionStore:
    def __init__(self) -> None:
        self.sessions: dict[str, dict[str, Any]] = {}

    async def get(self, session_id: str) -> dict[str, Any] | None:
        return self.sessions.get(session_id)

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        self.sessions[session_id] = data

    async def delete(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)


@request_mapping("/notes")
class NoteController:
    def __init__(self) -> None:
        self.notes: list[str] = []

    @get_mapping("/new")
    async def new_note(self, request: Request) -> Markup:
        service = request.app.state.csrf_service
        session = request.state.session
        return Markup("<html><head>{}</head><body><form method=\"post\">{}</form></body></html>").format(
            csrf_meta_tags(service, session), csrf_hidden_input(service, session)
        )

    @post_mapping("", status_code=201)
    async def create(self, request: Request) -> dict:
        form = await request.form()
        self.notes.append(str(form["text"]))
        return {"count": len(self.notes)}

    @delete_mapping("/all")
    @skip_csrf
    async def clear(self, request: Request) -> None:
        self.notes.clear()

    @post_mapping("/logout")
    async def logout(self, request: Request) -> None:
        request.state.session.invalidate()


def _app(store: InMemorySessionStore | None = None, config: Config | None = None):
    registry = RouteRegistry()
    controller = NoteController()
    registry.register_controller(controller)
    app = create_app(registry, session_store=store, config=config)
    return app, controller


def _fetch_token(client: TestClient) -> str:
    resp = client.get("/notes/new")
    assert resp.status_code == 200
    match = _TOKEN_RE.search(resp.text)
    assert match is not None
    return match.group(1)


class TestFormFlow:
    def test_rendered_token_accepted(self):
        store = InMemorySessionStore()
        app, controller = _app(store)
        client = TestClient(app)

        token = _fetch_token(client)
        resp = client.post("/notes", data={"_csrf": token, "text": "hello"})

        assert resp.status_code == 201
        assert resp.json() == {"count": 1}
        assert controller.notes == ["hello"]

    def test_token_stable_across_pages(self):
        client = TestClient(_app(InMemorySessionStore())[0])
        assert _fetch_token(client) == _fetch_token(client)

    def test_token_stored_in_session(self):
        store = InMemorySessionStore()
        client = TestClient(_app(store)[0])
        token = _fetch_token(client)
        [data] = store.sessions.values()
        assert data["_csrf"] == token

    def test_meta_tags_rendered(self):
        client = TestClient(_app(InMemorySessionStore())[0])
        page = client.get("/notes/new").text
        assert '<meta name="csrf-header" content="X-Csrf-Token">' in page
        assert '<meta name="csrf-token" content="' in page

    def test_header_token_accepted(self):
        client = TestClient(_app(InMemorySessionStore())[0])
        token = _fetch_token(client)
        resp = client.post("/notes", data={"text": "x"}, headers={"X-CSRF-Token": token})
        assert resp.status_code == 201


class TestEnforcement:
    def test_missing_token_rejected_without_reason(self):
        app, controller = _app(InMemorySessionStore())
        client = TestClient(app)
        _fetch_token(client)

        resp = client.post("/notes", data={"text": "hello"})

        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "Invalid or missing CSRF token"
        assert "NO_REQUEST_TOKEN" not in resp.text
        assert controller.notes == []

    def test_token_from_other_session_rejected(self):
        store = InMemorySessionStore()
        app, _ = _app(store)
        victim = TestClient(app)
        attacker = TestClient(app)

        attacker_token = _fetch_token(attacker)
        _fetch_token(victim)

        resp = victim.post("/notes", data={"_csrf": attacker_token, "text": "x"})
        assert resp.status_code == 403

    def test_post_before_any_token_rejected(self):
        client = TestClient(_app(InMemorySessionStore())[0])
        resp = client.post("/notes", data={"_csrf": "a" * 64, "text": "x"})
        assert resp.status_code == 403

    def test_exempt_route_allowed_without_token(self):
        app, controller = _app(InMemorySessionStore())
        controller.notes.append("old")
        client = TestClient(app)

        resp = client.delete("/notes/all")

        assert resp.status_code == 204
        assert controller.notes == []

    def test_without_session_store_unsafe_requests_rejected(self):
        client = TestClient(_app(None)[0])
        assert client.post("/notes", data={"_csrf": "a" * 64, "text": "x"}).status_code == 403

    def test_disabled_by_config(self):
        config = Config({"csrfly": {"security": {"csrf": {"enabled": False}}}})
        client = TestClient(_app(InMemorySessionStore(), config)[0])
        assert client.post("/notes", data={"text": "x"}).status_code == 201


class TestSessionLifetime:
    def test_invalidated_session_drops_token(self):
        store = InMemorySessionStore()
        client = TestClient(_app(store)[0])
        first = _fetch_token(client)

        resp = client.post("/notes/logout", data={"_csrf": first})
        assert resp.status_code == 204
        assert store.sessions == {}

        second = _fetch_token(client)
        assert second != first
        assert client.post("/notes", data={"_csrf": first, "text": "x"}).status_code == 403
