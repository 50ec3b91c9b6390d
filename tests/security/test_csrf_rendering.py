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
"""Tests for CsrfService and the HTML rendering helpers."""

from __future__ import annotations

from markupsafe import Markup

from csrfly.security.csrf.extractor import CsrfRequest, TokenLocation
from csrfly.security.csrf.properties import CsrfProperties
from csrfly.security.csrf.rendering import csrf_hidden_input, csrf_meta_tags
from csrfly.security.csrf.service import CsrfService


class TestCsrfService:
    def test_generate_then_get(self) -> None:
        service = CsrfService()
        session: dict[str, str] = {}
        assert service.get_token(session) is None
        token = service.generate_token(session)
        assert service.get_token(session) == token
        assert service.generate_token(session) == token

    def test_wire_names(self) -> None:
        service = CsrfService()
        assert service.field_name == "_csrf"
        assert service.header_name == "x-csrf-token"
        assert service.display_header_name == "X-Csrf-Token"

    def test_extract_and_validate(self) -> None:
        service = CsrfService()
        session: dict[str, str] = {}
        token = service.generate_token(session)
        request = CsrfRequest(method="POST", headers={"x-csrf-token": token})

        extracted = service.extract_token(request)
        assert extracted is not None
        assert extracted.location is TokenLocation.HEADER
        assert service.validate(session, request).is_valid is True

    def test_gate_shares_properties(self) -> None:
        service = CsrfService(CsrfProperties(safe_methods=frozenset({"GET", "POST"})))
        gate = service.create_gate()
        assert gate.can_proceed(None, CsrfRequest(method="POST")).allow is True


class TestHiddenInput:
    def test_renders_session_token(self) -> None:
        service = CsrfService()
        session: dict[str, str] = {}
        html = csrf_hidden_input(service, session)
        token = session["_csrf"]
        assert isinstance(html, Markup)
        assert html == f'<input type="hidden" name="_csrf" value="{token}" data-testid="csrf-token">'

    def test_same_token_for_every_form_on_a_page(self) -> None:
        service = CsrfService()
        session: dict[str, str] = {}
        assert csrf_hidden_input(service, session) == csrf_hidden_input(service, session)

    def test_overrides(self) -> None:
        service = CsrfService()
        session = {"_csrf": "T1"}
        html = csrf_hidden_input(service, session, field_name="token", element_id="login-csrf", test_id="x")
        assert html == '<input type="hidden" name="token" value="T1" id="login-csrf" data-testid="x">'

    def test_values_are_escaped(self) -> None:
        html = csrf_hidden_input(CsrfService(), {"_csrf": 'T1"><script>'})
        assert "<script>" not in html
        assert "&#34;&gt;&lt;script&gt;" in html

    def test_empty_without_session(self) -> None:
        assert csrf_hidden_input(CsrfService(), None) == Markup("")


class TestMetaTags:
    def test_renders_token_and_header(self) -> None:
        html = csrf_meta_tags(CsrfService(), {"_csrf": "T1"})
        assert '<meta name="csrf-token" content="T1">' in html
        assert '<meta name="csrf-header" content="X-Csrf-Token">' in html

    def test_empty_without_session(self) -> None:
        assert csrf_meta_tags(CsrfService(), None) == ""
