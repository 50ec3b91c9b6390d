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
"""Session-backed token store — one token per session."""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

from csrfly.kernel.exceptions import SessionContractException
from csrfly.security.csrf.codec import generate_token
from csrfly.security.csrf.properties import CsrfProperties


class SessionTokenStore:
    """Reads and writes the CSRF token under ``session_key`` in a session.

    Accepted session shapes, checked in this order:

    * ``get_attribute`` / ``set_attribute`` (:class:`csrfly.session.HttpSession`)
    * any :class:`~collections.abc.MutableMapping` (``dict``, Starlette sessions)
    * ``get`` / ``set`` key-value objects

    The session's lifecycle belongs to the session manager; this store only
    touches one key inside it.
    """

    def __init__(self, properties: CsrfProperties | None = None) -> None:
        self._properties = properties or CsrfProperties()

    @property
    def session_key(self) -> str:
        return self._properties.session_key

    def generate_or_get_token(self, session: Any) -> str:
        """Return the session's token, generating and storing one if absent.

        Idempotent for a given session.  Concurrent first calls for the same
        session are last-write-wins; both writers store a valid token.
        """
        if session is None:
            raise SessionContractException(
                "Cannot issue a CSRF token without a session",
                code="NO_SESSION",
            )

        existing = self.get_token_if_present(session)
        if existing is not None:
            return existing

        token = generate_token(self._properties.token_byte_length)
        _write(session, self.session_key, token)
        return token

    def get_token_if_present(self, session: Any) -> str | None:
        """Return the stored token, or ``None``.  Never mutates the session."""
        if session is None:
            return None
        value = _read(session, self.session_key)
        if isinstance(value, str) and value:
            return value
        return None


def _read(session: Any, key: str) -> Any:
    if hasattr(session, "get_attribute"):
        return session.get_attribute(key)
    if callable(getattr(session, "get", None)):
        return session.get(key)
    raise SessionContractException(
        f"Session of type {type(session).__name__} does not support key lookup",
        code="INVALID_SESSION",
    )


def _write(session: Any, key: str, value: str) -> None:
    if hasattr(session, "set_attribute"):
        session.set_attribute(key, value)
    elif isinstance(session, MutableMapping):
        session[key] = value
    elif callable(getattr(session, "set", None)):
        session.set(key, value)
    else:
        raise SessionContractException(
            f"Session of type {type(session).__name__} does not support assignment",
            code="INVALID_SESSION",
        )
