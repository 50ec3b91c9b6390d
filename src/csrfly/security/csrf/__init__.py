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
"""Synchronizer-token CSRF protection.

A token is generated once per session, stored in the session, embedded in
forms, and compared in constant time against the value a state-changing
request submits in its body, ``X-CSRF-Token`` header, or query string.
"""

from csrfly.security.csrf.codec import constant_time_equals, generate_token
from csrfly.security.csrf.decorators import is_csrf_exempt, require_csrf, skip_csrf
from csrfly.security.csrf.extractor import CsrfRequest, ExtractedToken, TokenExtractor, TokenLocation
from csrfly.security.csrf.gate import CsrfGate, GateDecision, HandlerMetadata
from csrfly.security.csrf.properties import CsrfProperties
from csrfly.security.csrf.rendering import csrf_hidden_input, csrf_meta_tags
from csrfly.security.csrf.service import CsrfService
from csrfly.security.csrf.store import SessionTokenStore
from csrfly.security.csrf.validator import CsrfFailureReason, CsrfValidator, ValidationResult

__all__ = [
    "CsrfFailureReason",
    "CsrfGate",
    "CsrfProperties",
    "CsrfRequest",
    "CsrfService",
    "CsrfValidator",
    "ExtractedToken",
    "GateDecision",
    "HandlerMetadata",
    "SessionTokenStore",
    "TokenExtractor",
    "TokenLocation",
    "ValidationResult",
    "constant_time_equals",
    "csrf_hidden_input",
    "csrf_meta_tags",
    "generate_token",
    "is_csrf_exempt",
    "require_csrf",
    "skip_csrf",
]
