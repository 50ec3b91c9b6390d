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
"""HTML helpers that embed the session's CSRF token in rendered pages.

The session is passed explicitly; there is no ambient request context.

Usage in a handler::

    session = request.state.session
    form = f"<form method='post'>{csrf_hidden_input(service, session)}...</form>"
"""

from __future__ import annotations

from typing import Any

from markupsafe import Markup

from csrfly.security.csrf.service import CsrfService


def csrf_hidden_input(
    service: CsrfService,
    session: Any,
    *,
    field_name: str | None = None,
    element_id: str | None = None,
    test_id: str = "csrf-token",
) -> Markup:
    """Render ``<input type="hidden">`` carrying the session's token.

    Returns empty markup when there is no session: nothing can be issued,
    and the gate still rejects unsafe requests.
    """
    if session is None:
        return Markup("")

    token = service.generate_token(session)
    name = field_name or service.field_name
    id_attr = Markup(' id="{}"').format(element_id) if element_id else Markup("")
    return Markup('<input type="hidden" name="{}" value="{}"{} data-testid="{}">').format(
        name, token, id_attr, test_id
    )


def csrf_meta_tags(service: CsrfService, session: Any) -> Markup:
    """Render ``<meta>`` tags exposing the token and header name to scripts."""
    if session is None:
        return Markup("")

    token = service.generate_token(session)
    return Markup('<meta name="csrf-token" content="{}">\n<meta name="csrf-header" content="{}">').format(
        token, service.display_header_name
    )
