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
"""Base class for filters that apply to a subset of request paths."""

from __future__ import annotations

import abc
from collections.abc import Iterable
from fnmatch import fnmatch
from typing import Any

from csrfly.web.ports.filter import CallNext


def _matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch(path, pattern) for pattern in patterns)


class OncePerRequestFilter(abc.ABC):
    """Runs :meth:`do_filter` once per request whose path is in scope.

    ``url_patterns`` restricts the filter to matching paths (all paths when
    empty); ``exclude_patterns`` then removes paths from that set.  Both are
    :mod:`fnmatch` globs such as ``/api/*``.
    """

    url_patterns: list[str] = []
    exclude_patterns: list[str] = []

    def should_not_filter(self, request: Any) -> bool:
        path: str = request.url.path
        if self.url_patterns and not _matches_any(path, self.url_patterns):
            return True
        return _matches_any(path, self.exclude_patterns)

    @abc.abstractmethod
    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Handle *request*; delegate with ``await call_next(request)``."""
        ...
