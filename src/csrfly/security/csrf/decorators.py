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
"""CSRF opt-out markers for handlers and controllers.

Markers are plain metadata; :class:`~csrfly.web.routing.RouteRegistry`
flattens them into one boolean per handler when routes are registered, and
:class:`~csrfly.security.csrf.gate.CsrfGate` is their only consumer.

Routes using :func:`skip_csrf` must authenticate by other means (bearer
tokens, API keys, signed webhooks); cookie-authenticated form endpoints
should never be exempt.

Usage::

    @request_mapping("/api")
    @skip_csrf
    class WebhookController:

        @post_mapping("/github")
        async def github(self, request): ...

        @post_mapping("/settings")
        @require_csrf
        async def settings(self, request): ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T", bound=Callable[..., Any])

SKIP_CSRF_ATTR = "__csrfly_skip_csrf__"


def skip_csrf(target: T) -> T:
    """Exempt a handler, or every handler of a controller class, from CSRF checks."""
    setattr(target, SKIP_CSRF_ATTR, True)
    return target


def require_csrf(target: T) -> T:
    """Force CSRF checks on a handler even when its controller is exempt."""
    setattr(target, SKIP_CSRF_ATTR, False)
    return target


def is_csrf_exempt(handler: Any, owner: type | None = None) -> bool:
    """Resolve the effective exemption for *handler*.

    A marker on the handler wins over one on *owner*; unmarked means
    enforced.  Bound methods expose their function's attributes, so either
    form may be passed.
    """
    marker = getattr(handler, SKIP_CSRF_ATTR, None)
    if marker is None and owner is not None:
        marker = getattr(owner, SKIP_CSRF_ATTR, None)
    return bool(marker)
