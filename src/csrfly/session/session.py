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
"""HttpSession — the per-client store that holds the CSRF token.

A session is a mutable mapping over the data dictionary kept by the
:class:`~csrfly.session.ports.outbound.SessionStore`.  It also offers the
``get_attribute`` / ``set_attribute`` accessors handlers tend to use, and
tracks whether anything changed so unchanged sessions are not re-saved.
"""

from __future__ import annotations

import time
from collections.abc import Iterator, MutableMapping
from typing import Any

_CREATED_AT_KEY = "_created_at"


class HttpSession(MutableMapping[str, Any]):
    """Session data plus lifecycle flags.

    Keys starting with ``_`` are reserved for library bookkeeping (the
    creation timestamp, the CSRF token under ``_csrf``) and are left out of
    :meth:`get_attribute_names`.
    """

    def __init__(
        self,
        session_id: str,
        data: dict[str, Any] | None = None,
        *,
        is_new: bool = False,
    ) -> None:
        self._id = session_id
        self._data: dict[str, Any] = data if data is not None else {}
        self._is_new = is_new
        self._invalidated = False
        self._modified = is_new
        self._data.setdefault(_CREATED_AT_KEY, time.time())

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._modified = True

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._modified = True

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_new(self) -> bool:
        """``True`` if the session was created during the current request."""
        return self._is_new

    @property
    def created_at(self) -> float:
        return float(self._data[_CREATED_AT_KEY])

    @property
    def invalidated(self) -> bool:
        return self._invalidated

    @property
    def modified(self) -> bool:
        return self._modified

    def get_attribute(self, name: str) -> Any | None:
        return self._data.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self[name] = value

    def remove_attribute(self, name: str) -> None:
        self.pop(name, None)

    def get_attribute_names(self) -> list[str]:
        return [key for key in self._data if not key.startswith("_")]

    def invalidate(self) -> None:
        """Discard the session, and with it the CSRF token, after this request."""
        self._invalidated = True
        self._modified = True

    def get_data(self) -> dict[str, Any]:
        """The underlying dictionary, as handed to the store."""
        return self._data
