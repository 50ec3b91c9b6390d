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
"""SessionFilter — binds a server-side session to each request by cookie.

The CSRF filter runs after this one and reads the token from
``request.state.session``; without a session every unsafe request is
rejected.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Literal

from csrfly.core.config import Config, config_properties
from csrfly.session.ports.outbound import SessionStore
from csrfly.session.session import HttpSession
from csrfly.web.filters import OncePerRequestFilter
from csrfly.web.ordering import HIGHEST_PRECEDENCE, order
from csrfly.web.ports.filter import CallNext

SESSION_ID_BYTES = 32


@config_properties(prefix="csrfly.session")
@dataclass(frozen=True)
class SessionProperties:
    cookie_name: str = "CSRFLY_SESSION"
    ttl: int = 1800
    secure_cookie: bool = False
    same_site: Literal["lax", "strict", "none"] = "lax"


@order(HIGHEST_PRECEDENCE + 150)
class SessionFilter(OncePerRequestFilter):
    """Loads the session named by the cookie, or starts a new one.

    After the handler returns, a modified session is saved with the
    configured TTL and an invalidated one is deleted along with its cookie.
    The session is persisted even when the handler raises.
    """

    def __init__(self, store: SessionStore, properties: SessionProperties | None = None) -> None:
        self._store = store
        self._properties = properties or SessionProperties()

    @classmethod
    def from_config(cls, store: SessionStore, config: Config) -> SessionFilter:
        return cls(store, config.bind(SessionProperties))

    @property
    def properties(self) -> SessionProperties:
        return self._properties

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session = await self._load(request)
        request.state.session = session

        try:
            response = await call_next(request)
        finally:
            await self._persist(session)

        props = self._properties
        if session.invalidated:
            response.delete_cookie(key=props.cookie_name)
        elif session.is_new:
            response.set_cookie(
                key=props.cookie_name,
                value=session.id,
                max_age=props.ttl,
                httponly=True,
                secure=props.secure_cookie,
                samesite=props.same_site,
            )
        return response

    async def _load(self, request: Any) -> HttpSession:
        session_id = getattr(request, "cookies", {}).get(self._properties.cookie_name)
        if session_id:
            data = await self._store.get(session_id)
            if data is not None:
                return HttpSession(session_id, data)
        return HttpSession(secrets.token_urlsafe(SESSION_ID_BYTES), is_new=True)

    async def _persist(self, session: HttpSession) -> None:
        if session.invalidated:
            await self._store.delete(session.id)
        elif session.modified:
            await self._store.save(session.id, session.get_data(), self._properties.ttl)
