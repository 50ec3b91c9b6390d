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
"""CSRF validator — the single accept/reject decision for a request."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from csrfly.security.csrf.codec import constant_time_equals
from csrfly.security.csrf.extractor import CsrfRequest, TokenExtractor
from csrfly.security.csrf.store import SessionTokenStore


class CsrfFailureReason(str, enum.Enum):
    """Why validation failed, in the order the checks run."""

    NO_SESSION = "NO_SESSION"
    NO_SESSION_TOKEN = "NO_SESSION_TOKEN"
    NO_REQUEST_TOKEN = "NO_REQUEST_TOKEN"
    TOKEN_MISMATCH = "TOKEN_MISMATCH"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validation attempt.  ``reason`` is ``None`` when valid."""

    is_valid: bool
    reason: CsrfFailureReason | None = None
    token_present: bool = False
    session_present: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class CsrfValidator:
    """Compares the session's token with the one the request carries.

    Expected failures are returned as a :class:`ValidationResult`; only
    contract violations (e.g. a session that is not a key-value store)
    raise.
    """

    def __init__(self, store: SessionTokenStore, extractor: TokenExtractor) -> None:
        self._store = store
        self._extractor = extractor

    def validate(self, session: Any, request: CsrfRequest) -> ValidationResult:
        if session is None:
            return ValidationResult(
                is_valid=False,
                reason=CsrfFailureReason.NO_SESSION,
            )

        session_token = self._store.get_token_if_present(session)
        if session_token is None:
            return ValidationResult(
                is_valid=False,
                reason=CsrfFailureReason.NO_SESSION_TOKEN,
                session_present=True,
            )

        extracted = self._extractor.extract(request)
        if extracted is None:
            return ValidationResult(
                is_valid=False,
                reason=CsrfFailureReason.NO_REQUEST_TOKEN,
                session_present=True,
            )

        if not constant_time_equals(session_token, extracted.value):
            return ValidationResult(
                is_valid=False,
                reason=CsrfFailureReason.TOKEN_MISMATCH,
                token_present=True,
                session_present=True,
            )

        return ValidationResult(is_valid=True, token_present=True, session_present=True)
