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
"""CsrfGate — per-request policy deciding whether validation must run.

Decision order, evaluated fresh for every request:

1. Handler marked exempt (see :mod:`csrfly.security.csrf.decorators`) → allow.
2. Safe method (``GET``, ``HEAD``, ``OPTIONS`` by default) → allow.
3. Otherwise validate; a failed validation denies the request.

Opt-out is checked before the method so an exempt handler is never
validated, whatever its method.  The failure reason is logged, never
returned to the client.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any

import structlog

from csrfly.kernel.exceptions import CsrfValidationException
from csrfly.security.csrf.extractor import CsrfRequest
from csrfly.security.csrf.properties import CsrfProperties
from csrfly.security.csrf.validator import CsrfFailureReason, CsrfValidator

logger = structlog.get_logger("csrfly.security.csrf")


@dataclass(frozen=True)
class HandlerMetadata:
    """Registration-time facts about a route handler."""

    handler_name: str
    csrf_exempt: bool = False


@dataclass(frozen=True)
class GateDecision:
    """Result of :meth:`CsrfGate.can_proceed`.

    ``enforced`` tells whether validation ran at all; ``reason`` is set only
    for denials.
    """

    allow: bool
    enforced: bool
    reason: CsrfFailureReason | None = None


class CsrfGate:
    """Request interceptor policy for CSRF protection."""

    def __init__(
        self,
        validator: CsrfValidator,
        properties: CsrfProperties | None = None,
        log: Any = None,
    ) -> None:
        self._validator = validator
        self._properties = properties or CsrfProperties()
        self._log = log if log is not None else logger

    def requires_validation(self, method: str, handler_metadata: HandlerMetadata | None = None) -> bool:
        """Whether a request with *method* to this handler must carry a valid token.

        Callers use it to avoid parsing the request body when the gate would
        allow the request regardless.
        """
        if handler_metadata is not None and handler_metadata.csrf_exempt:
            return False
        return not self._properties.is_safe_method(method or "")

    def can_proceed(
        self,
        session: Any,
        request: CsrfRequest,
        handler_metadata: HandlerMetadata | None = None,
    ) -> GateDecision:
        method = (request.method or "").upper()

        if handler_metadata is not None and handler_metadata.csrf_exempt:
            self._log.debug(
                "csrf_validation_skipped",
                method=method,
                path=request.path,
                handler=handler_metadata.handler_name,
            )
            return GateDecision(allow=True, enforced=False)

        if not self.requires_validation(method, handler_metadata):
            return GateDecision(allow=True, enforced=False)

        result = self._validator.validate(session, request)
        if result.is_valid:
            return GateDecision(allow=True, enforced=True)

        self._log.warning(
            "csrf_validation_failed",
            reason=result.reason.value if result.reason else None,
            method=method,
            path=request.path,
            session=session_fingerprint(session),
            session_present=result.session_present,
            token_present=result.token_present,
            timestamp=result.timestamp.isoformat(),
        )
        return GateDecision(allow=False, enforced=True, reason=result.reason)

    def check(
        self,
        session: Any,
        request: CsrfRequest,
        handler_metadata: HandlerMetadata | None = None,
    ) -> None:
        """Raise :class:`CsrfValidationException` when the request is denied."""
        decision = self.can_proceed(session, request, handler_metadata)
        if not decision.allow:
            raise CsrfValidationException(reason=decision.reason)


def session_fingerprint(session: Any) -> str | None:
    """Short, non-reversible indicator of a session for log correlation."""
    session_id = getattr(session, "id", None)
    if not session_id:
        return None
    return hashlib.sha256(str(session_id).encode("utf-8")).hexdigest()[:12]
