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
"""CsrfService — one entry point for token issuing and validation.

Wires :class:`SessionTokenStore`, :class:`TokenExtractor` and
:class:`CsrfValidator` from a single :class:`CsrfProperties`.  Rendering
code calls :meth:`CsrfService.generate_token` with the current session to
embed the token in forms.
"""

from __future__ import annotations

from typing import Any

from csrfly.security.csrf.extractor import CsrfRequest, ExtractedToken, TokenExtractor
from csrfly.security.csrf.gate import CsrfGate
from csrfly.security.csrf.properties import CsrfProperties
from csrfly.security.csrf.store import SessionTokenStore
from csrfly.security.csrf.validator import CsrfValidator, ValidationResult


class CsrfService:
    def __init__(self, properties: CsrfProperties | None = None) -> None:
        self._properties = properties or CsrfProperties()
        self._store = SessionTokenStore(self._properties)
        self._extractor = TokenExtractor(self._properties)
        self._validator = CsrfValidator(self._store, self._extractor)

    @property
    def properties(self) -> CsrfProperties:
        return self._properties

    @property
    def validator(self) -> CsrfValidator:
        return self._validator

    @property
    def field_name(self) -> str:
        """Form field and query parameter name (default ``_csrf``)."""
        return self._properties.field_name

    @property
    def header_name(self) -> str:
        """Lower-case wire header name (default ``x-csrf-token``)."""
        return self._properties.header_name

    @property
    def display_header_name(self) -> str:
        return self._properties.display_header_name

    def generate_token(self, session: Any) -> str:
        """Return the session's token, creating it on first use."""
        return self._store.generate_or_get_token(session)

    def get_token(self, session: Any) -> str | None:
        return self._store.get_token_if_present(session)

    def extract_token(self, request: CsrfRequest) -> ExtractedToken | None:
        return self._extractor.extract(request)

    def validate(self, session: Any, request: CsrfRequest) -> ValidationResult:
        return self._validator.validate(session, request)

    def create_gate(self, log: Any = None) -> CsrfGate:
        """Build a :class:`CsrfGate` sharing this service's settings."""
        return CsrfGate(self._validator, self._properties, log=log)
